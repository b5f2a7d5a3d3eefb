"""Migration reporting and progress display."""

from store_migration.reporting.progress import ProgressTracker
from store_migration.reporting.report import MigrationReport, generate_migration_report

__all__ = [
    "MigrationReport",
    "ProgressTracker",
    "generate_migration_report",
]
