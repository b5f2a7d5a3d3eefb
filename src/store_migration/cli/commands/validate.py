"""
Validation command.
"""

import asyncio
import json

import click

from store_migration.cli.context import MigrationContext
from store_migration.cli.decorators import handle_errors, pass_context, requires_config
from store_migration.cli.utils import (
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    print_validation_checks,
)
from store_migration.utils.logging import get_logger
from store_migration.validation.engine import CheckStatus, ValidationEngine, ValidationResult

logger = get_logger(__name__)


@click.command(name="validate")
@click.option(
    "--sample-size",
    type=int,
    default=None,
    help="Number of destination products to sample (overrides config)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the result as JSON",
)
@pass_context
@requires_config
@handle_errors
def validate(ctx: MigrationContext, sample_size: int | None, as_json: bool) -> None:
    """Validate the destination store against the source.

    Compares product, category and customer counts, spot-checks prices by
    SKU and probes a sample of product images.

    Examples:

        store-bridge --config config.yaml validate

        store-bridge --config config.yaml validate --sample-size 25 --json
    """
    validation_config = ctx.config.validation
    if sample_size is not None:
        validation_config = validation_config.model_copy(update={"sample_size": sample_size})

    async def run() -> ValidationResult:
        engine = ValidationEngine(ctx.source_client, ctx.destination_client, validation_config)
        try:
            return await engine.run()
        finally:
            await ctx.close_clients()

    if not as_json:
        echo_info("Running post-migration validation...")

    result = asyncio.run(run())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_validation_checks(result.checks)
        summary = result.summary
        click.echo(
            f"{summary['pass']} passed, {summary['warning']} warnings, "
            f"{summary['fail']} failed, {summary['skipped']} skipped"
        )

    if result.overall_status == CheckStatus.FAIL:
        echo_error("Validation failed")
        raise click.exceptions.Exit(1)
    if result.overall_status == CheckStatus.WARNING:
        echo_warning("Validation passed with warnings")
    else:
        echo_success("Validation passed")
