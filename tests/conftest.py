"""
Pytest configuration and shared fixtures for Store Bridge tests.

Provides in-memory source and destination stores, sample source records
and a temporary SQLite state database.
"""

from typing import Any

import pytest

from store_migration.client.protocols import ListResult, PaginationSummary
from store_migration.config import (
    DestinationStoreConfig,
    MigrationConfig,
    PerformanceConfig,
    SourceStoreConfig,
    StateConfig,
)
from store_migration.migration.state import MigrationState


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class FakeSource:
    """Source store backed by lists of raw records keyed by entity path."""

    def __init__(self, records: dict[str, list[dict[str, Any]]] | None = None):
        self.records = records or {}
        self.page_calls: list[tuple[str, int, int, dict[str, Any] | None]] = []
        self.fail_with: Exception | None = None

    async def get_page(
        self,
        entity_type: str,
        page: int,
        per_page: int,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        self.page_calls.append((entity_type, page, per_page, filters))
        if self.fail_with is not None:
            raise self.fail_with

        items = self.records.get(entity_type, [])
        if filters and "sku" in filters:
            items = [item for item in items if item.get("sku") == filters["sku"]]
        start = (page - 1) * per_page
        return items[start : start + per_page]

    async def get_count(self, entity_type: str) -> int:
        return len(self.records.get(entity_type, []))


class FakeDestination:
    """Destination store that assigns ids and answers marker lookups."""

    MARKER_FIELDS = {"sku": "sku", "email:in": "email", "external_id": "external_id"}

    def __init__(self, aggregate_counts: bool = True):
        self.records: dict[str, list[dict[str, Any]]] = {}
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.aggregate_counts = aggregate_counts
        self.create_errors: dict[str, Exception] = {}
        self._next_id = 1000

    def seed(self, entity_type: str, record: dict[str, Any]) -> dict[str, Any]:
        record = {"id": self._next_id, **record}
        self._next_id += 1
        self.records.setdefault(entity_type, []).append(record)
        return record

    async def create(self, entity_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        key = payload.get("sku") or payload.get("email") or payload.get("external_id")
        if key in self.create_errors:
            raise self.create_errors[key]
        self.created.append((entity_type, payload))
        return self.seed(entity_type, payload)

    async def list(
        self,
        entity_type: str,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> ListResult:
        items = self.records.get(entity_type, [])
        for key, value in (filters or {}).items():
            field_name = self.MARKER_FIELDS.get(key)
            if field_name:
                items = [item for item in items if item.get(field_name) == value]

        start = (page - 1) * limit
        window = items[start : start + limit]
        pagination = PaginationSummary(
            total=len(items),
            count=len(window),
            per_page=limit,
            current_page=page,
            total_pages=max(1, -(-len(items) // limit)),
        )
        return ListResult(items=window, pagination=pagination)

    async def get_count(self, entity_type: str) -> int | None:
        if not self.aggregate_counts:
            return None
        return len(self.records.get(entity_type, []))


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def no_sleep():
    """Replacement for asyncio.sleep that returns immediately."""
    return _no_sleep


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def fake_destination():
    return FakeDestination()


# ---------------------------------------------------------------------------
# Sample source records
# ---------------------------------------------------------------------------


@pytest.fixture
def simple_product_data():
    return {
        "id": 11,
        "name": "Canvas Tote",
        "type": "simple",
        "status": "publish",
        "sku": "TOTE-1",
        "price": "19.99",
        "regular_price": "24.99",
        "sale_price": "19.99",
        "weight": "0.4",
        "dimensions": {"length": "40", "width": "35", "height": "2"},
        "manage_stock": True,
        "stock_quantity": 12,
        "stock_status": "instock",
        "categories": [{"id": 3, "name": "Bags", "slug": "bags"}],
        "tags": [{"id": 1, "name": "cotton", "slug": "cotton"}],
        "images": [
            {"id": 1, "src": "https://shop.test/tote.jpg", "alt": "Tote"},
            {"id": 2, "src": "https://shop.test/tote-back.jpg", "alt": ""},
        ],
    }


@pytest.fixture
def variable_product_data():
    return {
        "id": 20,
        "name": "Classic Tee",
        "type": "variable",
        "sku": "TEE",
        "price": "15.00",
        "weight": "0.2",
        "attributes": [
            {"id": 1, "name": "Color", "position": 0, "variation": True, "options": ["Red", "Blue"]},
            {"id": 2, "name": "Size", "position": 1, "variation": True, "options": ["S", "M"]},
            {"id": 3, "name": "Material", "position": 2, "variation": False, "options": ["Cotton"]},
        ],
        "variations": [201, 202],
    }


@pytest.fixture
def variation_data():
    return [
        {
            "id": 201,
            "sku": "TEE-RED-S",
            "price": "15.00",
            "stock_quantity": 4,
            "stock_status": "instock",
            "attributes": [{"name": "Color", "option": "Red"}, {"name": "Size", "option": "S"}],
        },
        {
            "id": 202,
            "sku": "",
            "price": "17.50",
            "stock_status": "outofstock",
            "attributes": [{"name": "color", "option": "blue"}, {"name": "Size", "option": "M"}],
        },
    ]


@pytest.fixture
def customer_data():
    return {
        "id": 7,
        "email": "Jane@Example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "billing": {
            "first_name": "Jane",
            "last_name": "Doe",
            "address_1": "1 Main St",
            "city": "Boston",
            "state": "MA",
            "postcode": "02101",
            "country": "US",
            "phone": "555-0100",
            "email": "jane@example.com",
        },
        "shipping": {
            "first_name": "Jane",
            "last_name": "Doe",
            "address_1": "9 Dock Rd",
            "city": "Salem",
            "state": "MA",
            "postcode": "01970",
            "country": "US",
        },
    }


@pytest.fixture
def order_data():
    return {
        "id": 500,
        "number": "500",
        "status": "completed",
        "date_created": "2024-03-01T10:00:00",
        "total": "55.00",
        "total_tax": "5.00",
        "shipping_total": "10.00",
        "shipping_tax": "0.00",
        "discount_total": "2.00",
        "customer_id": 7,
        "customer_note": "Leave at door",
        "payment_method_title": "Credit Card",
        "billing": {
            "first_name": "Jane",
            "last_name": "Doe",
            "address_1": "1 Main St",
            "city": "Boston",
            "state": "MA",
            "postcode": "02101",
            "country": "US",
            "email": "jane@example.com",
        },
        "shipping": {},
        "line_items": [
            {
                "id": 1,
                "name": "Canvas Tote",
                "product_id": 11,
                "quantity": 2,
                "sku": "TOTE-1",
                "total": "40.00",
                "total_tax": "4.00",
            }
        ],
        "refunds": [],
    }


# ---------------------------------------------------------------------------
# Configuration and state
# ---------------------------------------------------------------------------


@pytest.fixture
def migration_config(tmp_path):
    return MigrationConfig(
        source=SourceStoreConfig(
            url="https://shop.test", consumer_key="ck_test", consumer_secret="cs_test"
        ),
        destination=DestinationStoreConfig(store_hash="abc123", access_token="token"),
        performance=PerformanceConfig(page_size=2, max_pages=10, request_delay=0),
        state=StateConfig(db_path=str(tmp_path / "state.db")),
        category_map={"Bags": 31},
    )


@pytest.fixture
def migration_state(tmp_path):
    return MigrationState(StateConfig(db_path=str(tmp_path / "state.db")), migration_id="test-run")
