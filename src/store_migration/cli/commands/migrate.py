"""
Migration command.

Runs products, customers and orders in dependency order, then validates
the destination and writes the reports.
"""

import asyncio
from pathlib import Path
from typing import Any

import click

from store_migration.cli.context import MigrationContext
from store_migration.cli.decorators import handle_errors, pass_context, requires_config
from store_migration.cli.utils import (
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    format_duration,
    print_migration_results,
    print_validation_checks,
)
from store_migration.migration.coordinator import MigrationCoordinator
from store_migration.reporting.progress import ProgressTracker
from store_migration.reporting.report import generate_migration_report
from store_migration.resources import ENTITY_REGISTRY
from store_migration.utils.logging import get_logger
from store_migration.validation.engine import ValidationResult

logger = get_logger(__name__)


@click.command(name="migrate")
@click.option(
    "--entity",
    "-e",
    "entities",
    multiple=True,
    type=click.Choice(list(ENTITY_REGISTRY), case_sensitive=False),
    help="Entity type to migrate (repeatable). Defaults to those enabled in config.",
)
@click.option(
    "--skip-validation",
    is_flag=True,
    help="Skip post-migration validation",
)
@click.option(
    "--report-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("./reports"),
    show_default=True,
    help="Directory for migration reports",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable progress bars (for CI/automation)",
)
@pass_context
@requires_config
@handle_errors
def migrate(
    ctx: MigrationContext,
    entities: tuple[str, ...],
    skip_validation: bool,
    report_dir: Path,
    no_progress: bool,
) -> None:
    """Migrate catalog, customers and orders to the destination store.

    Records that already exist on the destination are detected and
    skipped, so an interrupted migration can simply be run again.

    Examples:

        # Migrate everything enabled in config
        store-bridge --config config.yaml migrate

        # Only products, without validation
        store-bridge --config config.yaml migrate -e products --skip-validation
    """
    config = ctx.config
    selected = [entity.lower() for entity in entities] or None
    validate_after = not (skip_validation or config.skip_validation)

    async def run() -> tuple[dict[str, Any], ValidationResult | None]:
        coordinator = MigrationCoordinator(
            config, ctx.source_client, ctx.destination_client, ctx.migration_state
        )
        try:
            with ProgressTracker(enable=not no_progress) as tracker:
                summary = await coordinator.migrate(selected, on_event=tracker)
            validation = await coordinator.validate() if validate_after else None
        finally:
            await ctx.close_clients()
        return summary, validation

    echo_info(f"Starting migration {ctx.migration_state.migration_id}")
    summary, validation = asyncio.run(run())

    click.echo()
    print_migration_results(summary["entities"])

    for name, entity in summary["entities"].items():
        if entity.get("error"):
            echo_error(f"{name}: {entity['error']}")

    if validation is not None:
        click.echo()
        print_validation_checks(validation.checks)

    report_files = generate_migration_report(
        summary["migration_id"], summary, validation, output_dir=str(report_dir)
    )
    for fmt, path in report_files.items():
        echo_info(f"{fmt} report: {path}")

    duration = format_duration(summary["duration_seconds"])
    if summary["status"] == "completed":
        echo_success(f"Migration completed in {duration}")
    else:
        echo_warning(f"Migration finished with errors in {duration}")
        raise click.exceptions.Exit(1)
