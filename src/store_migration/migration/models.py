"""
SQLAlchemy models for persisted migration state.

Id mappings outlive a single run: they make re-runs resumable and give
later entity types (orders) the destination ids of earlier ones
(products, customers).
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class IDMapping(Base):
    """
    One source record and the destination record created for it.

    Rows are only ever inserted; an existing pair is never rewritten.
    """

    __tablename__ = "id_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True, comment="products, customers or orders"
    )
    source_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Id in the source store"
    )
    destination_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Id in the destination store"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), comment="When mapping was created"
    )

    __table_args__ = (
        UniqueConstraint("entity_type", "source_id", name="uq_entity_type_source_id"),
        Index("idx_entity_type_destination_id", "entity_type", "destination_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<IDMapping(entity_type='{self.entity_type}', "
            f"source_id={self.source_id}, destination_id={self.destination_id})>"
        )


class MigrationRun(Base):
    """
    Outcome of one orchestrator run for one entity type.
    """

    __tablename__ = "migration_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    migration_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="completed or aborted"
    )
    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    warnings: Mapped[list | None] = mapped_column(
        JSON, nullable=True, comment="Rendered warnings for the run"
    )
    error: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MigrationRun(entity_type='{self.entity_type}', status='{self.status}', "
            f"successful={self.successful}, failed={self.failed})>"
        )
