"""
Decorators for CLI commands.

Context passing, configuration checks and the mapping from exceptions to
exit codes.
"""

import functools
from collections.abc import Callable
from dataclasses import dataclass

import click

from store_migration.cli.context import MigrationContext
from store_migration.client.exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    StateError,
)
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ErrorExit:
    error_type: type[Exception]
    exit_code: int
    label: str
    hint: str


# First match wins, so subclasses come before their parents
ERROR_EXITS = (
    ErrorExit(
        ConfigurationError,
        2,
        "Configuration Error",
        "Check the configuration file and the environment variables it references.",
    ),
    ErrorExit(
        AuthenticationError,
        3,
        "Authentication Error",
        "Verify the WooCommerce consumer key/secret and the BigCommerce access token.",
    ),
    ErrorExit(
        APIError,
        4,
        "API Error",
        "A store API rejected the request. Re-running skips records already migrated.",
    ),
    ErrorExit(
        NetworkError,
        4,
        "Network Error",
        "Could not reach a store API. Check the store URL and your connection.",
    ),
    ErrorExit(
        StateError,
        5,
        "State Error",
        "The migration state database could not be read or written.",
    ),
)


def pass_context(f: Callable) -> Callable:
    """
    Pass the MigrationContext as the first argument of the command.

    Usage:
        @click.command()
        @pass_context
        def my_command(ctx: MigrationContext):
            print(ctx.config)
    """

    @click.pass_context
    @functools.wraps(f)
    def wrapper(click_ctx: click.Context, *args, **kwargs):
        return f(click_ctx.obj, *args, **kwargs)

    return wrapper


def handle_errors(f: Callable) -> Callable:
    """
    Turn errors into a short message and an exit code.

    Exit codes:
        0: Success
        1: Unexpected error
        2: Configuration error
        3: Authentication error
        4: API or network error
        5: State error
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except Exception as e:
            known = next((entry for entry in ERROR_EXITS if isinstance(e, entry.error_type)), None)
            if known is None:
                logger.error("unexpected_error", error=str(e), exc_info=True)
                click.echo(f"Unexpected Error: {e}", err=True)
                click.echo("\nSee the log file for details.", err=True)
                raise click.exceptions.Exit(1) from e

            logger.error("command_failed", error_type=type(e).__name__, error=str(e))
            click.echo(f"{known.label}: {e}", err=True)
            if isinstance(e, APIError) and e.status_code:
                click.echo(f"Response status: {e.status_code}", err=True)
            click.echo(f"\n{known.hint}", err=True)
            raise click.exceptions.Exit(known.exit_code) from e

    return wrapper


def requires_config(f: Callable) -> Callable:
    """Fail early with exit code 2 unless a configuration file loads."""

    @functools.wraps(f)
    def wrapper(ctx: MigrationContext, *args, **kwargs):
        if ctx.config_path is None:
            click.echo(
                "Error: Configuration file required. Use --config or set STORE_BRIDGE_CONFIG.",
                err=True,
            )
            raise click.exceptions.Exit(2)

        try:
            ctx.config
        except Exception as e:
            click.echo(f"Error loading configuration: {e}", err=True)
            raise click.exceptions.Exit(2) from e

        return f(ctx, *args, **kwargs)

    return wrapper
