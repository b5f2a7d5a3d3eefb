"""Client for the source store (WooCommerce REST API v3).

Entity types are REST collection paths relative to ``/wp-json/wc/v3``,
e.g. ``products``, ``customers``, ``orders`` or
``products/42/variations``.
"""

from typing import Any

from store_migration.client.base_client import BaseAPIClient
from store_migration.config import SourceStoreConfig
from store_migration.utils.logging import get_logger
from store_migration.utils.retry import retry_api_call

logger = get_logger(__name__)

API_PREFIX = "wp-json/wc/v3"
TOTAL_HEADER = "X-WP-Total"

# Entity types whose REST path differs from their name
SOURCE_ENDPOINTS = {"categories": "products/categories"}


def endpoint_for(entity_type: str) -> str:
    return SOURCE_ENDPOINTS.get(entity_type, entity_type)


class WooCommerceClient(BaseAPIClient):
    """Read-only access to the source store."""

    def __init__(self, config: SourceStoreConfig, rate_limit: int = 10, **kwargs: Any):
        super().__init__(
            base_url=f"{config.url}/{API_PREFIX}",
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            rate_limit=rate_limit,
            auth=(config.consumer_key, config.consumer_secret),
            **kwargs,
        )
        self.config = config

    @retry_api_call
    async def get_page(
        self,
        entity_type: str,
        page: int,
        per_page: int,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"page": page, "per_page": per_page, **(filters or {})}
        data = await self.get(endpoint_for(entity_type), params=params)
        return data if isinstance(data, list) else []

    @retry_api_call
    async def get_count(self, entity_type: str) -> int:
        """Read the collection size from the total header of a one-item page."""
        response = await self.send(
            "GET", endpoint_for(entity_type), params={"page": 1, "per_page": 1}
        )
        total = response.headers.get(TOTAL_HEADER)
        if total is None or not total.isdigit():
            logger.warning("count_header_missing", entity_type=entity_type)
            return 0
        return int(total)

