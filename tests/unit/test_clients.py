"""
Unit tests for the store API clients.

Responses are served by ``httpx.MockTransport`` so no network is used.
"""

import json

import httpx
import pytest

from store_migration.client.base_client import BaseAPIClient
from store_migration.client.destination_client import BigCommerceClient
from store_migration.client.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError,
)
from store_migration.client.source_client import WooCommerceClient
from store_migration.config import DestinationStoreConfig, SourceStoreConfig

pytestmark = pytest.mark.unit


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def source_client(recorder):
    config = SourceStoreConfig(url="https://shop.test", consumer_key="ck", consumer_secret="cs")
    return WooCommerceClient(config, rate_limit=0, transport=httpx.MockTransport(recorder))


def destination_client(recorder):
    config = DestinationStoreConfig(store_hash="abc123", access_token="secret-token")
    return BigCommerceClient(config, rate_limit=0, transport=httpx.MockTransport(recorder))


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, AuthenticationError),
            (403, AuthorizationError),
            (404, NotFoundError),
            (409, ConflictError),
            (429, RateLimitError),
            (500, ServerError),
            (503, ServerError),
            (422, APIError),
        ],
    )
    async def test_status_codes(self, status_code, expected):
        recorder = Recorder(httpx.Response(status_code, json={"message": "nope"}))
        client = BaseAPIClient("https://api.test", rate_limit=0, transport=httpx.MockTransport(recorder))

        with pytest.raises(expected) as exc_info:
            await client.request("GET", "things")

        assert exc_info.value.status_code == status_code
        await client.close()

    @pytest.mark.asyncio
    async def test_retry_after_header(self):
        recorder = Recorder(httpx.Response(429, headers={"Retry-After": "7"}, json={}))
        client = BaseAPIClient("https://api.test", rate_limit=0, transport=httpx.MockTransport(recorder))

        with pytest.raises(RateLimitError) as exc_info:
            await client.request("GET", "things")

        assert exc_info.value.retry_after == 7
        await client.close()

    @pytest.mark.asyncio
    async def test_server_message_is_kept(self):
        recorder = Recorder(httpx.Response(500, json={"title": "Internal failure"}))
        client = BaseAPIClient("https://api.test", rate_limit=0, transport=httpx.MockTransport(recorder))

        with pytest.raises(ServerError, match="Server error: Internal failure"):
            await client.request("POST", "things", json_data={"a": 1})
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = BaseAPIClient("https://api.test", rate_limit=0, transport=httpx.MockTransport(refuse))

        with pytest.raises(NetworkError, match="connection refused"):
            await client.request("GET", "things")
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_body_decodes_to_empty_dict(self):
        recorder = Recorder(httpx.Response(204))
        client = BaseAPIClient("https://api.test", rate_limit=0, transport=httpx.MockTransport(recorder))

        assert await client.request("GET", "things") == {}
        await client.close()


# ---------------------------------------------------------------------------
# Source client
# ---------------------------------------------------------------------------


class TestWooCommerceClient:
    @pytest.mark.asyncio
    async def test_get_page(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": 1}, {"id": 2}]))
        client = source_client(recorder)

        items = await client.get_page("products", 2, 50, {"sku": "TEE"})

        request = recorder.requests[0]
        assert items == [{"id": 1}, {"id": 2}]
        assert request.url.path == "/wp-json/wc/v3/products"
        assert request.url.params["page"] == "2"
        assert request.url.params["per_page"] == "50"
        assert request.url.params["sku"] == "TEE"
        assert request.headers["Authorization"].startswith("Basic ")
        await client.close()

    @pytest.mark.asyncio
    async def test_variations_path(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = source_client(recorder)

        assert await client.get_page("products/20/variations", 1, 100) == []
        assert recorder.requests[0].url.path == "/wp-json/wc/v3/products/20/variations"
        await client.close()

    @pytest.mark.asyncio
    async def test_count_from_total_header(self):
        recorder = Recorder(httpx.Response(200, headers={"X-WP-Total": "42"}, json=[{"id": 1}]))
        client = source_client(recorder)

        assert await client.get_count("customers") == 42
        assert recorder.requests[0].url.params["per_page"] == "1"
        await client.close()

    @pytest.mark.asyncio
    async def test_categories_count_uses_product_categories_path(self):
        recorder = Recorder(httpx.Response(200, headers={"X-WP-Total": "3"}, json=[{"id": 1}]))
        client = source_client(recorder)

        assert await client.get_count("categories") == 3
        assert recorder.requests[0].url.path == "/wp-json/wc/v3/products/categories"
        await client.close()

    @pytest.mark.asyncio
    async def test_categories_page_uses_product_categories_path(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": 1, "name": "Shirts"}]))
        client = source_client(recorder)

        assert await client.get_page("categories", 1, 100) == [{"id": 1, "name": "Shirts"}]
        assert recorder.requests[0].url.path == "/wp-json/wc/v3/products/categories"
        await client.close()

    @pytest.mark.asyncio
    async def test_count_without_header_is_zero(self):
        recorder = Recorder(httpx.Response(200, json=[]))
        client = source_client(recorder)

        assert await client.get_count("customers") == 0
        await client.close()


# ---------------------------------------------------------------------------
# Destination client
# ---------------------------------------------------------------------------


class TestBigCommerceClient:
    @pytest.mark.asyncio
    async def test_create_product_unwraps_data(self):
        recorder = Recorder(httpx.Response(200, json={"data": {"id": 77, "sku": "TEE"}, "meta": {}}))
        client = destination_client(recorder)

        created = await client.create("products", {"name": "Tee", "sku": "TEE"})

        request = recorder.requests[0]
        assert created == {"id": 77, "sku": "TEE"}
        assert request.method == "POST"
        assert request.url.path == "/stores/abc123/v3/catalog/products"
        assert request.headers["X-Auth-Token"] == "secret-token"
        assert json.loads(request.content) == {"name": "Tee", "sku": "TEE"}
        await client.close()

    @pytest.mark.asyncio
    async def test_create_customer_sends_list(self):
        recorder = Recorder(httpx.Response(200, json={"data": [{"id": 5}], "meta": {}}))
        client = destination_client(recorder)

        created = await client.create("customers", {"email": "jane@example.com"})

        assert created == {"id": 5}
        assert json.loads(recorder.requests[0].content) == [{"email": "jane@example.com"}]
        await client.close()

    @pytest.mark.asyncio
    async def test_create_order_uses_v2(self):
        recorder = Recorder(httpx.Response(201, json={"id": 900, "external_id": "WC-500"}))
        client = destination_client(recorder)

        created = await client.create("orders", {"external_id": "WC-500"})

        assert created["id"] == 900
        assert recorder.requests[0].url.path == "/stores/abc123/v2/orders"
        await client.close()

    @pytest.mark.asyncio
    async def test_list_v3_with_pagination(self):
        body = {
            "data": [{"id": 1, "sku": "TEE"}],
            "meta": {
                "pagination": {
                    "total": 31,
                    "count": 1,
                    "per_page": 1,
                    "current_page": 1,
                    "total_pages": 31,
                }
            },
        }
        recorder = Recorder(httpx.Response(200, json=body))
        client = destination_client(recorder)

        result = await client.list("products", {"sku": "TEE"}, page=1, limit=1)

        assert result.items == [{"id": 1, "sku": "TEE"}]
        assert result.pagination.total == 31
        assert result.pagination.total_pages == 31
        assert recorder.requests[0].url.params["sku"] == "TEE"
        await client.close()

    @pytest.mark.asyncio
    async def test_list_v2_empty_is_no_content(self):
        recorder = Recorder(httpx.Response(204))
        client = destination_client(recorder)

        result = await client.list("orders", {"external_id": "WC-1"})

        assert result.items == []
        assert result.pagination is None
        await client.close()

    @pytest.mark.asyncio
    async def test_count_v3_from_pagination(self):
        body = {"data": [], "meta": {"pagination": {"total": 12}}}
        recorder = Recorder(httpx.Response(200, json=body))
        client = destination_client(recorder)

        assert await client.get_count("customers") == 12
        await client.close()

    @pytest.mark.asyncio
    async def test_count_v2_endpoint(self):
        recorder = Recorder(httpx.Response(200, json={"count": 8}))
        client = destination_client(recorder)

        assert await client.get_count("orders") == 8
        assert recorder.requests[0].url.path == "/stores/abc123/v2/orders/count"
        await client.close()

    @pytest.mark.asyncio
    async def test_unknown_entity_type(self):
        client = destination_client(Recorder())

        with pytest.raises(ConfigurationError):
            await client.create("coupons", {})
        await client.close()
