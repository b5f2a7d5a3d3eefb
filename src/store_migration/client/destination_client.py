"""Client for the destination store (BigCommerce API).

Catalog and customers live on the v3 API, which wraps bodies in ``data``
and reports pagination under ``meta``; orders live on the v2 API, which
returns bare objects and answers an empty listing with 204.
"""

from typing import Any

from store_migration.client.base_client import BaseAPIClient
from store_migration.client.exceptions import ConfigurationError
from store_migration.client.protocols import ListResult, PaginationSummary
from store_migration.config import DestinationStoreConfig
from store_migration.utils.logging import get_logger
from store_migration.utils.retry import retry_api_call

logger = get_logger(__name__)

ENDPOINTS = {
    "products": "v3/catalog/products",
    "categories": "v3/catalog/categories",
    "customers": "v3/customers",
    "orders": "v2/orders",
}

# v3 customer creation takes and returns a list
_LIST_BODY_ENTITIES = {"customers"}


def _is_v2(endpoint: str) -> bool:
    return endpoint.startswith("v2/")


class BigCommerceClient(BaseAPIClient):
    """Write and lookup access to the destination store."""

    def __init__(self, config: DestinationStoreConfig, rate_limit: int = 10, **kwargs: Any):
        self.config = config
        super().__init__(
            base_url=f"{config.api_base_url}/{config.store_hash}",
            timeout=config.timeout,
            rate_limit=rate_limit,
            **kwargs,
        )

    def _build_headers(self) -> dict[str, str]:
        headers = super()._build_headers()
        headers["X-Auth-Token"] = self.config.access_token
        return headers

    def _endpoint(self, entity_type: str) -> str:
        try:
            return ENDPOINTS[entity_type]
        except KeyError:
            raise ConfigurationError(f"Unsupported destination entity type: {entity_type}") from None

    async def create(self, entity_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        endpoint = self._endpoint(entity_type)
        body: Any = [payload] if entity_type in _LIST_BODY_ENTITIES else payload
        data = await self.request("POST", endpoint, json_data=body)

        if not _is_v2(endpoint):
            data = data.get("data", data)
        if isinstance(data, list):
            data = data[0] if data else {}

        logger.debug("destination_record_created", entity_type=entity_type, id=data.get("id"))
        return data

    @retry_api_call
    async def list(
        self,
        entity_type: str,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> ListResult:
        endpoint = self._endpoint(entity_type)
        params: dict[str, Any] = {"page": page, "limit": limit, **(filters or {})}
        data = await self.get(endpoint, params=params)

        if _is_v2(endpoint):
            return ListResult(items=data if isinstance(data, list) else [])

        pagination = (data.get("meta") or {}).get("pagination")
        summary = None
        if pagination:
            summary = PaginationSummary(
                total=pagination.get("total", 0),
                count=pagination.get("count", 0),
                per_page=pagination.get("per_page", limit),
                current_page=pagination.get("current_page", page),
                total_pages=pagination.get("total_pages", 1),
            )
        return ListResult(items=data.get("data", []), pagination=summary)

    @retry_api_call
    async def get_count(self, entity_type: str) -> int | None:
        endpoint = self._endpoint(entity_type)
        if _is_v2(endpoint):
            data = await self.get(f"{endpoint}/count")
            return data.get("count") if isinstance(data, dict) else None

        result = await self.list(entity_type, page=1, limit=1)
        return result.pagination.total if result.pagination else None
