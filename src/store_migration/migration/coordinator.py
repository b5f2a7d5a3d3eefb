"""Migration coordinator for running every entity type in dependency order.

The coordinator owns the glue around the orchestrator: it builds the
handler for each entity type, seeds the run context from persisted state,
and writes the new id mappings and the run record back afterwards.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from store_migration.client.protocols import DestinationClient, SourceClient
from store_migration.config import MigrationConfig
from store_migration.migration.handlers import (
    CustomerHandler,
    EntityHandler,
    OrderHandler,
    ProductHandler,
)
from store_migration.migration.orchestrator import (
    EventCallback,
    MigrationOrchestrator,
    RunContext,
    RunStatus,
)
from store_migration.migration.state import MigrationState
from store_migration.resources import get_info, get_migration_order
from store_migration.utils.logging import get_logger
from store_migration.validation.engine import ValidationEngine, ValidationResult

logger = get_logger(__name__)

SKIPPED_STATUS = "skipped"


class MigrationCoordinator:
    """Coordinates a full migration.

    Runs products, customers and orders one after another, persisting id
    mappings between runs so orders can resolve their references.
    """

    def __init__(
        self,
        config: MigrationConfig,
        source: SourceClient,
        destination: DestinationClient,
        state: MigrationState,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize migration coordinator.

        Args:
            config: Migration configuration
            source: Source store client
            destination: Destination store client
            state: Migration state manager
            sleep: Awaitable used for the orchestrator's inter-item delay
        """
        self.config = config
        self.source = source
        self.destination = destination
        self.state = state
        self._sleep = sleep

        logger.info(
            "migration_coordinator_initialized",
            source_url=config.source.url,
            store_hash=config.destination.store_hash,
            migration_id=state.migration_id,
        )

    def build_handler(self, entity_type: str) -> EntityHandler:
        """Create the handler for one entity type.

        The order handler reads the product and customer mappings at build
        time, so it must be built after those types have been persisted.
        """
        if entity_type == "products":
            return ProductHandler(
                category_map=self.config.category_map,
                variations_per_page=self.config.performance.page_size,
                max_pages=self.config.performance.max_pages,
            )
        if entity_type == "customers":
            return CustomerHandler()
        if entity_type == "orders":
            return OrderHandler(
                product_id_map=self.state.get_mappings("products"),
                customer_id_map=self.state.get_mappings("customers"),
            )
        raise ValueError(f"Unknown entity type: {entity_type}")

    async def migrate_entity(
        self, entity_type: str, on_event: EventCallback | None = None
    ) -> RunContext:
        """Run one entity type and persist its outcome."""
        handler = self.build_handler(entity_type)
        orchestrator = MigrationOrchestrator(
            self.source,
            self.destination,
            handler,
            performance=self.config.performance,
            sleep=self._sleep,
        )

        context = RunContext(
            entity_type=entity_type,
            already_migrated=self.state.get_migrated_ids(entity_type),
            id_mapping=self.state.get_mappings(entity_type),
        )
        context = await orchestrator.run(context, on_event)

        self.state.record_mappings(entity_type, context.new_mappings)
        self.state.record_run(context)
        return context

    async def migrate(
        self,
        entity_types: list[str] | None = None,
        on_event: EventCallback | None = None,
    ) -> dict[str, Any]:
        """Migrate the selected entity types.

        Args:
            entity_types: Types to migrate; defaults to those enabled in config
            on_event: Synchronous progress callback

        Returns:
            Migration summary with per-entity statistics
        """
        start_time = datetime.now(UTC)
        order = get_migration_order(entity_types or self.config.entities.enabled())
        logger.info("migration_started", entity_types=order)

        entities: dict[str, dict[str, Any]] = {}
        aborted: set[str] = set()

        for entity_type in order:
            blocked_by = [dep for dep in get_info(entity_type).depends_on if dep in aborted]
            if blocked_by:
                logger.warning(
                    "entity_type_skipped", entity_type=entity_type, blocked_by=blocked_by
                )
                aborted.add(entity_type)
                entities[entity_type] = {
                    "status": SKIPPED_STATUS,
                    "stats": None,
                    "warnings": [],
                    "error": f"Skipped because {', '.join(blocked_by)} did not complete",
                }
                continue

            context = await self.migrate_entity(entity_type, on_event)
            if context.status == RunStatus.ABORTED:
                aborted.add(entity_type)

            stats = context.stats.to_dict()
            entities[entity_type] = {
                "status": context.status.value,
                "stats": {key: value for key, value in stats.items() if key != "warnings"},
                "warnings": stats["warnings"],
                "error": context.error,
            }

        end_time = datetime.now(UTC)
        summary = {
            "migration_id": self.state.migration_id,
            "status": "completed" if not aborted else "completed_with_errors",
            "start_time": start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "duration_seconds": (end_time - start_time).total_seconds(),
            "entities": entities,
        }

        logger.info(
            "migration_completed",
            status=summary["status"],
            duration_seconds=summary["duration_seconds"],
            aborted=sorted(aborted),
        )
        return summary

    async def validate(self) -> ValidationResult:
        """Reconcile the destination against the source."""
        engine = ValidationEngine(self.source, self.destination, self.config.validation)
        return await engine.run()
