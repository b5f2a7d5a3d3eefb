"""
State management commands.

Inspect the stored id mappings and run history, or forget mappings so
records are looked up again on the next run.
"""

import click

from store_migration.cli.context import MigrationContext
from store_migration.cli.decorators import handle_errors, pass_context, requires_config
from store_migration.cli.utils import (
    echo_info,
    echo_success,
    format_count,
    print_table,
    styled_status,
)
from store_migration.resources import ENTITY_REGISTRY
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


@click.group(name="state")
def state() -> None:
    """Migration state management commands."""


@state.command(name="show")
@click.option(
    "--history",
    "history_limit",
    type=int,
    default=10,
    show_default=True,
    help="Number of recent runs to list",
)
@pass_context
@requires_config
@handle_errors
def show_state(ctx: MigrationContext, history_limit: int) -> None:
    """Show stored id mappings and recent runs.

    Examples:

        store-bridge --config config.yaml state show
    """
    migration_state = ctx.migration_state
    click.echo(f"Database: {ctx.config.state.db_path}")
    click.echo()

    counts = migration_state.get_mapping_counts()
    rows = [[name, format_count(counts.get(name, 0))] for name in ENTITY_REGISTRY]
    print_table("ID Mappings", ["Entity", "Mapped"], rows)

    runs = migration_state.get_run_history(limit=history_limit)
    if not runs:
        echo_info("No runs recorded yet")
        return

    click.echo()
    print_table(
        "Recent Runs",
        ["Started", "Entity", "Status", "Total", "Created", "Skipped", "Failed", "Warnings"],
        [
            [
                run["started_at"],
                run["entity_type"],
                styled_status(run["status"]),
                format_count(run["total"]),
                format_count(run["successful"]),
                format_count(run["skipped"]),
                format_count(run["failed"]),
                format_count(run["warnings"]),
            ]
            for run in runs
        ],
    )


@state.command(name="reset")
@click.option(
    "--entity",
    "-e",
    type=click.Choice(list(ENTITY_REGISTRY), case_sensitive=False),
    help="Only reset mappings for this entity type",
)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@pass_context
@requires_config
@handle_errors
def reset_state(ctx: MigrationContext, entity: str | None, yes: bool) -> None:
    """Forget stored id mappings.

    Records already on the destination are still detected by the
    destination lookup, so a reset never causes duplicates.

    Examples:

        store-bridge --config config.yaml state reset --entity orders --yes
    """
    target = entity.lower() if entity else None
    scope = f"{target} mappings" if target else "ALL mappings"
    if not yes and not click.confirm(f"This will delete {scope}. Continue?"):
        click.echo("Operation cancelled.")
        raise click.exceptions.Exit(0)

    removed = ctx.migration_state.reset(target)
    echo_success(f"Removed {format_count(removed)} mappings")
