"""The interfaces the migration engine needs from each store.

Anything satisfying these protocols can drive a migration; the httpx
clients in this package are one implementation, the in-memory fakes in the
test suite are another.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class PaginationSummary:
    total: int
    count: int = 0
    per_page: int = 0
    current_page: int = 1
    total_pages: int = 1


@dataclass
class ListResult:
    items: list[dict[str, Any]] = field(default_factory=list)
    pagination: PaginationSummary | None = None


@runtime_checkable
class SourceClient(Protocol):
    async def get_page(
        self,
        entity_type: str,
        page: int,
        per_page: int,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return one page of records; an empty list means no more pages."""
        ...

    async def get_count(self, entity_type: str) -> int: ...


@runtime_checkable
class DestinationClient(Protocol):
    async def create(self, entity_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a record and return it, including its new ``id``."""
        ...

    async def list(
        self,
        entity_type: str,
        filters: dict[str, Any] | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> ListResult: ...

    async def get_count(self, entity_type: str) -> int | None:
        """Cheap aggregate count, or None when the store cannot provide one."""
        ...
