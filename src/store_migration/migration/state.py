"""
Persisted migration state.

``MigrationState`` stores the id mappings produced by each run and a
history of runs. Mappings are append-only: once a source record is known
to correspond to a destination record, that pair is never rewritten.
"""

import threading
import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select

from store_migration.client.exceptions import StateError
from store_migration.config import StateConfig
from store_migration.migration.database import database_url_for, init_database, session_scope
from store_migration.migration.models import IDMapping, MigrationRun
from store_migration.migration.orchestrator import RunContext
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


class MigrationState:
    """
    Reads and writes id mappings and run history.

    Usage:
        state = MigrationState(config.state)
        already = state.get_migrated_ids("products")
        ...
        state.record_mappings("products", context.new_mappings)
        state.record_run(context)
    """

    def __init__(self, config: StateConfig, migration_id: str | None = None):
        """
        Initialize the state store.

        Args:
            config: State configuration
            migration_id: Identifier grouping the runs of one migration

        Raises:
            StateError: If the database cannot be initialized
        """
        self.config = config
        self.migration_id = migration_id or uuid.uuid4().hex
        self.database_url = database_url_for(config.db_path)
        self._lock = threading.RLock()

        try:
            self._session_factory = init_database(self.database_url)
        except Exception as e:
            logger.error("state_init_failed", error=str(e))
            raise StateError(f"Failed to initialize migration state: {e}") from e

        logger.debug("state_initialized", migration_id=self.migration_id, db_path=config.db_path)

    def record_mappings(self, entity_type: str, mapping: dict[int, int]) -> int:
        """
        Insert mappings that are not stored yet.

        Args:
            entity_type: Entity type of the mapped records
            mapping: Source id to destination id

        Returns:
            Number of new rows
        """
        if not mapping:
            return 0

        with self._lock, session_scope(self._session_factory) as session:
            existing = set(
                session.scalars(
                    select(IDMapping.source_id).where(
                        IDMapping.entity_type == entity_type,
                        IDMapping.source_id.in_(list(mapping)),
                    )
                )
            )
            new_rows = [
                IDMapping(entity_type=entity_type, source_id=source_id, destination_id=dest_id)
                for source_id, dest_id in mapping.items()
                if source_id not in existing
            ]
            session.add_all(new_rows)

        logger.info(
            "id_mappings_recorded",
            entity_type=entity_type,
            inserted=len(new_rows),
            already_known=len(mapping) - len(new_rows),
        )
        return len(new_rows)

    def get_mapped_id(self, entity_type: str, source_id: int) -> int | None:
        with self._lock, session_scope(self._session_factory) as session:
            return session.scalar(
                select(IDMapping.destination_id).where(
                    IDMapping.entity_type == entity_type, IDMapping.source_id == source_id
                )
            )

    def get_mappings(self, entity_type: str) -> dict[int, int]:
        """All stored mappings for one entity type."""
        with self._lock, session_scope(self._session_factory) as session:
            rows = session.execute(
                select(IDMapping.source_id, IDMapping.destination_id).where(
                    IDMapping.entity_type == entity_type
                )
            )
            return {source_id: destination_id for source_id, destination_id in rows}

    def get_migrated_ids(self, entity_type: str) -> set[int]:
        """Source ids to skip on the next run."""
        with self._lock, session_scope(self._session_factory) as session:
            return set(
                session.scalars(
                    select(IDMapping.source_id).where(IDMapping.entity_type == entity_type)
                )
            )

    def get_mapping_counts(self) -> dict[str, int]:
        with self._lock, session_scope(self._session_factory) as session:
            rows = session.execute(
                select(IDMapping.entity_type, func.count(IDMapping.id)).group_by(
                    IDMapping.entity_type
                )
            )
            return {entity_type: count for entity_type, count in rows}

    def record_run(self, context: RunContext) -> None:
        """Store the outcome of one orchestrator run."""
        stats = context.stats
        run = MigrationRun(
            migration_id=self.migration_id,
            entity_type=context.entity_type,
            status=context.status.value,
            started_at=(context.started_at or datetime.now(UTC)).replace(tzinfo=None),
            completed_at=context.completed_at.replace(tzinfo=None) if context.completed_at else None,
            total=stats.total,
            successful=stats.successful,
            skipped=stats.skipped,
            failed=stats.failed,
            warnings=[warning.render() for warning in stats.warnings],
            error=context.error[:2000] if context.error else None,
        )
        with self._lock, session_scope(self._session_factory) as session:
            session.add(run)

    def get_run_history(self, entity_type: str | None = None, limit: int = 20) -> list[dict[str, Any]]:
        with self._lock, session_scope(self._session_factory) as session:
            query = select(MigrationRun)
            if entity_type:
                query = query.where(MigrationRun.entity_type == entity_type)
            query = query.order_by(MigrationRun.id.desc()).limit(limit)
            return [
                {
                    "migration_id": run.migration_id,
                    "entity_type": run.entity_type,
                    "status": run.status,
                    "started_at": run.started_at.isoformat(),
                    "completed_at": run.completed_at.isoformat() if run.completed_at else None,
                    "total": run.total,
                    "successful": run.successful,
                    "skipped": run.skipped,
                    "failed": run.failed,
                    "warnings": len(run.warnings or []),
                }
                for run in session.scalars(query)
            ]

    def reset(self, entity_type: str | None = None) -> int:
        """
        Forget stored mappings, for one entity type or all of them.

        Returns:
            Number of mappings removed
        """
        with self._lock, session_scope(self._session_factory) as session:
            statement = delete(IDMapping)
            if entity_type:
                statement = statement.where(IDMapping.entity_type == entity_type)
            removed = session.execute(statement).rowcount or 0

        logger.warning("id_mappings_reset", entity_type=entity_type or "all", removed=removed)
        return removed
