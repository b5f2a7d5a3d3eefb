"""Entity-specific behaviour plugged into the generic orchestrator.

A handler knows how to read one entity type from the source, how to find
an already-migrated copy on the destination (the idempotency marker), and
how to turn a source record into a create payload.
"""

from dataclasses import dataclass, field
from typing import Any

import pydantic

from store_migration.client.exceptions import ValidationError
from store_migration.client.protocols import SourceClient
from store_migration.schema.source import (
    SourceCustomer,
    SourceOrder,
    SourceProduct,
    SourceRecord,
    SourceVariation,
)
from store_migration.schema.warnings import TransformWarning
from store_migration.transform.catalog import (
    CategoryMap,
    is_variable,
    product_sku,
    transform_product,
)
from store_migration.transform.customers import customer_email, transform_customer
from store_migration.transform.orders import external_id_for, transform_order
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PreparedPayload:
    payload: dict[str, Any]
    warnings: list[TransformWarning] = field(default_factory=list)


class EntityHandler:
    """Base class; subclasses set the class attributes and the hooks."""

    entity_type: str = ""
    source_endpoint: str = ""
    label: str = ""
    model: type[SourceRecord] = SourceRecord

    @property
    def fetch_filters(self) -> dict[str, Any]:
        return {}

    def source_id(self, raw: dict[str, Any]) -> int:
        return int(raw["id"])

    def describe(self, raw: dict[str, Any]) -> str:
        return f"{self.label} {raw.get('id')}"

    def parse(self, raw: dict[str, Any]) -> Any:
        try:
            return self.model.model_validate(raw)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid source {self.entity_type} record",
                errors=[f"Invalid source record: {error['loc']}: {error['msg']}" for error in e.errors()],
            ) from e

    def marker_filter(self, record: Any) -> dict[str, Any]:
        raise NotImplementedError

    async def prepare(self, record: Any, source: SourceClient) -> PreparedPayload:
        raise NotImplementedError


class ProductHandler(EntityHandler):
    """Products, including fetching the variations of variable products."""

    entity_type = "products"
    source_endpoint = "products"
    label = "Product"
    model = SourceProduct

    def __init__(
        self,
        category_map: CategoryMap | None = None,
        variations_per_page: int = 100,
        max_pages: int = 100,
    ):
        self.category_map = category_map or {}
        self.variations_per_page = variations_per_page
        self.max_pages = max_pages

    def describe(self, raw: dict[str, Any]) -> str:
        return raw.get("name") or super().describe(raw)

    def marker_filter(self, record: SourceProduct) -> dict[str, Any]:
        return {"sku": product_sku(record)}

    async def fetch_variations(
        self, product: SourceProduct, source: SourceClient
    ) -> list[SourceVariation]:
        variations: list[SourceVariation] = []
        for page in range(1, self.max_pages + 1):
            batch = await source.get_page(
                f"products/{product.id}/variations", page, self.variations_per_page
            )
            variations.extend(SourceVariation.model_validate(raw) for raw in batch)
            if len(batch) < self.variations_per_page:
                break
        else:
            logger.warning(
                "page_cap_reached",
                entity_type="variations",
                product_id=product.id,
                max_pages=self.max_pages,
                fetched=len(variations),
            )
        return variations

    async def prepare(self, record: SourceProduct, source: SourceClient) -> PreparedPayload:
        variations = None
        if is_variable(record) and record.variations:
            variations = await self.fetch_variations(record, source)

        result = transform_product(record, variations, self.category_map)
        if not result.ok or result.product is None:
            raise ValidationError(result.errors[0], errors=result.errors)
        return PreparedPayload(payload=result.product.to_payload(), warnings=result.warnings)


class CustomerHandler(EntityHandler):
    """Customers, matched on the destination by email."""

    entity_type = "customers"
    source_endpoint = "customers"
    label = "Customer"
    model = SourceCustomer

    @property
    def fetch_filters(self) -> dict[str, Any]:
        return {"role": "all"}

    def describe(self, raw: dict[str, Any]) -> str:
        return raw.get("email") or super().describe(raw)

    def marker_filter(self, record: SourceCustomer) -> dict[str, Any]:
        return {"email:in": customer_email(record)}

    async def prepare(self, record: SourceCustomer, source: SourceClient) -> PreparedPayload:
        result = transform_customer(record)
        if result.customer is None:
            raise ValidationError(result.errors[0], errors=result.errors)
        return PreparedPayload(payload=result.customer.to_payload())

    def parse(self, raw: dict[str, Any]) -> SourceCustomer:
        customer = super().parse(raw)
        # No email means no idempotency marker either
        if not customer_email(customer):
            raise ValidationError("Customer email is required")
        return customer


class OrderHandler(EntityHandler):
    """Orders, matched on the destination by their external id."""

    entity_type = "orders"
    source_endpoint = "orders"
    label = "Order"
    model = SourceOrder

    def __init__(
        self,
        product_id_map: dict[int, int] | None = None,
        customer_id_map: dict[int, int] | None = None,
    ):
        self.product_id_map = product_id_map or {}
        self.customer_id_map = customer_id_map or {}

    @property
    def fetch_filters(self) -> dict[str, Any]:
        return {"orderby": "id", "order": "asc"}

    def describe(self, raw: dict[str, Any]) -> str:
        return f"Order #{raw.get('number') or raw.get('id')}"

    def marker_filter(self, record: SourceOrder) -> dict[str, Any]:
        return {"external_id": external_id_for(record.id)}

    async def prepare(self, record: SourceOrder, source: SourceClient) -> PreparedPayload:
        result = transform_order(record, self.product_id_map, self.customer_id_map)
        return PreparedPayload(payload=result.order.to_payload(), warnings=result.warnings)
