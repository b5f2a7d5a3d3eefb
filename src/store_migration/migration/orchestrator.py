"""Generic batch runner for one entity type.

A run fetches every source record, drops the ones already migrated, then
handles the rest strictly one at a time: idempotency lookup on the
destination, transform, write, fixed delay, progress event. Ordering
between entity types is the caller's job (see ``MigrationCoordinator``).

All mutable run state lives in the ``RunContext`` handed to ``run()``; the
orchestrator itself keeps nothing between runs.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from store_migration.client.exceptions import (
    StoreMigrationError,
    TransportError,
    ValidationError,
)
from store_migration.client.protocols import DestinationClient, SourceClient
from store_migration.config import PerformanceConfig
from store_migration.migration.handlers import EntityHandler
from store_migration.schema.warnings import TransformWarning, WarningKind, render_warnings
from store_migration.utils.logging import get_logger, log_error, log_migration_progress

logger = get_logger(__name__)


class RunStatus(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    FILTERING = "filtering"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class EventType(str, Enum):
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({EventType.COMPLETE, EventType.ERROR})


@dataclass
class MigrationStats:
    """Counters for one run plus every warning raised during it."""

    total: int = 0
    successful: int = 0
    skipped: int = 0
    failed: int = 0
    warnings: list[TransformWarning] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.successful + self.skipped + self.failed

    def snapshot(self) -> "MigrationStats":
        return MigrationStats(
            total=self.total,
            successful=self.successful,
            skipped=self.skipped,
            failed=self.failed,
            warnings=list(self.warnings),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "skipped": self.skipped,
            "failed": self.failed,
            "warnings": render_warnings(self.warnings),
        }


@dataclass
class RunContext:
    """Everything a run reads and mutates.

    ``already_migrated`` and ``id_mapping`` are normally seeded from
    persisted state; ``migrated_ids`` collects the source ids confirmed on
    the destination during this run.
    """

    entity_type: str
    already_migrated: set[int] = field(default_factory=set)
    id_mapping: dict[int, int] = field(default_factory=dict)
    migrated_ids: list[int] = field(default_factory=list)
    stats: MigrationStats = field(default_factory=MigrationStats)
    status: RunStatus = RunStatus.PENDING
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def new_mappings(self) -> dict[int, int]:
        return {source_id: self.id_mapping[source_id] for source_id in self.migrated_ids}


@dataclass
class ProgressEvent:
    type: EventType
    entity_type: str
    stats: MigrationStats | None = None
    total: int | None = None
    total_in_source: int | None = None
    already_migrated: int | None = None
    current: dict[str, Any] | None = None
    migrated_ids: list[int] | None = None
    id_mapping: dict[int, int] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "entity_type": self.entity_type}
        for name in (
            "total",
            "total_in_source",
            "already_migrated",
            "current",
            "migrated_ids",
            "id_mapping",
            "error",
        ):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.stats is not None:
            data["stats"] = self.stats.to_dict()
        return data


EventCallback = Callable[[ProgressEvent], None]


class MigrationOrchestrator:
    """Runs one entity type from source to destination."""

    def __init__(
        self,
        source: SourceClient,
        destination: DestinationClient,
        handler: EntityHandler,
        performance: PerformanceConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the orchestrator.

        Args:
            source: Client for the source store
            destination: Client for the destination store
            handler: Entity-specific parsing, lookup and transform
            performance: Page size, page cap and inter-item delay
            sleep: Awaitable used for the inter-item delay
        """
        self.source = source
        self.destination = destination
        self.handler = handler
        self.performance = performance or PerformanceConfig()
        self._sleep = sleep

    @property
    def entity_type(self) -> str:
        return self.handler.entity_type

    async def run(self, context: RunContext, on_event: EventCallback | None = None) -> RunContext:
        """Migrate every pending record and return the updated context.

        Events go to ``on_event`` synchronously, in order. ``complete`` or
        ``error`` is always the last event of a run.
        """
        terminated = False

        def emit(event: ProgressEvent) -> None:
            nonlocal terminated
            if terminated:
                return
            if event.type in TERMINAL_EVENTS:
                terminated = True
            if on_event is not None:
                on_event(event)

        context.started_at = datetime.now(UTC)
        context.stats = MigrationStats()
        logger.info("migration_run_started", entity_type=self.entity_type)

        try:
            context.status = RunStatus.FETCHING
            records = await self._fetch_all()

            context.status = RunStatus.FILTERING
            pending = [
                raw
                for raw in records
                if self.handler.source_id(raw) not in context.already_migrated
            ]
        except (StoreMigrationError, KeyError, TypeError, ValueError) as e:
            context.status = RunStatus.ABORTED
            context.error = str(e)
            context.completed_at = datetime.now(UTC)
            log_error(logger, e, context="migration_setup", entity_type=self.entity_type)
            emit(ProgressEvent(EventType.ERROR, self.entity_type, error=str(e)))
            return context

        context.stats.total = len(pending)
        emit(
            ProgressEvent(
                EventType.STARTED,
                self.entity_type,
                total=len(pending),
                total_in_source=len(records),
                already_migrated=len(records) - len(pending),
            )
        )

        context.status = RunStatus.PROCESSING
        for raw in pending:
            current = await self._process_item(raw, context)
            await self._sleep(self.performance.request_delay)
            emit(
                ProgressEvent(
                    EventType.PROGRESS,
                    self.entity_type,
                    stats=context.stats.snapshot(),
                    total=context.stats.total,
                    current=current,
                )
            )
            log_migration_progress(
                logger, self.entity_type, context.stats.processed, context.stats.total
            )

        context.status = RunStatus.COMPLETED
        context.completed_at = datetime.now(UTC)
        emit(
            ProgressEvent(
                EventType.COMPLETE,
                self.entity_type,
                stats=context.stats.snapshot(),
                total=context.stats.total,
                migrated_ids=list(context.migrated_ids),
                id_mapping=context.new_mappings,
            )
        )
        logger.info(
            "migration_run_completed",
            entity_type=self.entity_type,
            successful=context.stats.successful,
            skipped=context.stats.skipped,
            failed=context.stats.failed,
            warnings=len(context.stats.warnings),
        )
        return context

    async def _fetch_all(self) -> list[dict[str, Any]]:
        """Read source pages until an empty one, up to the page cap."""
        records: list[dict[str, Any]] = []
        page_size = self.performance.page_size
        max_pages = self.performance.max_pages

        for page in range(1, max_pages + 1):
            batch = await self.source.get_page(
                self.handler.source_endpoint, page, page_size, self.handler.fetch_filters
            )
            if not batch:
                break
            records.extend(batch)
        else:
            logger.warning(
                "page_cap_reached",
                entity_type=self.entity_type,
                max_pages=max_pages,
                fetched=len(records),
            )

        logger.info("source_records_fetched", entity_type=self.entity_type, count=len(records))
        return records

    async def _find_existing(self, record: Any) -> int | None:
        result = await self.destination.list(
            self.entity_type, self.handler.marker_filter(record), 1, 1
        )
        if result.items:
            return int(result.items[0]["id"])
        return None

    def _record_mapping(self, context: RunContext, source_id: int, destination_id: int) -> None:
        context.id_mapping[source_id] = destination_id
        context.migrated_ids.append(source_id)

    async def _process_item(self, raw: dict[str, Any], context: RunContext) -> dict[str, Any]:
        """Handle one record; every failure is recorded, none escapes."""
        stats = context.stats
        source_id = self.handler.source_id(raw)
        current: dict[str, Any] = {"source_id": source_id, "label": self.handler.describe(raw)}

        def fail(kind: WarningKind, message: str) -> None:
            stats.failed += 1
            stats.warnings.append(
                TransformWarning(
                    kind,
                    source_id=source_id,
                    details={"entity": self.handler.label, "message": message},
                )
            )
            current["outcome"] = "failed"
            current["error"] = message

        try:
            record = self.handler.parse(raw)

            existing_id = await self._find_existing(record)
            if existing_id is not None:
                self._record_mapping(context, source_id, existing_id)
                stats.skipped += 1
                current["outcome"] = "skipped"
                current["destination_id"] = existing_id
                logger.debug(
                    "item_already_migrated",
                    entity_type=self.entity_type,
                    source_id=source_id,
                    destination_id=existing_id,
                )
                return current

            prepared = await self.handler.prepare(record, self.source)
            stats.warnings.extend(prepared.warnings)

            created = await self.destination.create(self.entity_type, prepared.payload)
            if created.get("id") is None:
                raise TransportError("Destination response did not include an id")

            destination_id = int(created["id"])
            self._record_mapping(context, source_id, destination_id)
            stats.successful += 1
            current["outcome"] = "created"
            current["destination_id"] = destination_id
            logger.info(
                "item_migrated",
                entity_type=self.entity_type,
                source_id=source_id,
                destination_id=destination_id,
            )

        except ValidationError as e:
            fail(WarningKind.TRANSFORM_FAILED, "; ".join(e.errors))
            logger.warning(
                "item_rejected", entity_type=self.entity_type, source_id=source_id, errors=e.errors
            )
        except TransportError as e:
            fail(WarningKind.WRITE_FAILED, str(e))
            logger.warning(
                "item_write_failed", entity_type=self.entity_type, source_id=source_id, error=str(e)
            )
        except Exception as e:
            fail(WarningKind.WRITE_FAILED, f"Unexpected error: {e}")
            log_error(logger, e, context="migrate_item", entity_type=self.entity_type, source_id=source_id)

        return current
