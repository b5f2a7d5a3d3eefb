"""
Main CLI entry point for Store Bridge.

Command-line interface for migrating a WooCommerce store to BigCommerce.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from store_migration import __version__
from store_migration.cli.commands import migrate as migrate_commands
from store_migration.cli.commands import state as state_commands
from store_migration.cli.commands import validate as validate_commands
from store_migration.cli.context import MigrationContext
from store_migration.utils.logging import configure_logging, get_logger

load_dotenv()

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="store-bridge")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
    envvar="STORE_BRIDGE_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Console logging level (file logging stays at DEBUG)",
    envvar="STORE_BRIDGE_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=Path("logs/migration.log"),
    help="Log file path",
    envvar="STORE_BRIDGE_LOG_FILE",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str,
    log_file: Path,
) -> None:
    """Store Bridge - migrate a WooCommerce store to BigCommerce.

    Moves products (with variants), customers and orders, skipping anything
    already present on the destination.

    Examples:

        # Run the full migration
        store-bridge --config config.yaml migrate

        # Check the destination against the source
        store-bridge --config config.yaml validate

        # Inspect stored id mappings
        store-bridge --config config.yaml state show
    """
    configure_logging(level=log_level, log_file=str(log_file))

    ctx.obj = MigrationContext(
        config_path=config,
        log_level=log_level,
        log_file=log_file,
    )

    logger.debug("cli_initialized", config=str(config) if config else None, log_level=log_level)


cli.add_command(migrate_commands.migrate)
cli.add_command(state_commands.state)
cli.add_command(validate_commands.validate)


def main() -> int:
    """Main entry point for CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except Exception as e:
        logger.error("unexpected_error", error=str(e), exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
