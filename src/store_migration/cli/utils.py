"""
Console output for CLI commands: status lines and rich result tables.
"""

from collections.abc import Iterable
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from store_migration.validation.engine import ValidationCheck

console = Console()

STATUS_STYLES = {
    "pass": "green",
    "completed": "green",
    "warning": "yellow",
    "skipped": "yellow",
    "fail": "red",
    "aborted": "red",
}

COUNT_COLUMNS = ("total", "successful", "skipped", "failed")


def echo_success(message: str) -> None:
    click.secho(f"✓ {message}", fg="green")


def echo_error(message: str) -> None:
    click.secho(f"✗ {message}", fg="red", err=True)


def echo_warning(message: str) -> None:
    click.secho(f"⚠ {message}", fg="yellow")


def echo_info(message: str) -> None:
    click.secho(f"ℹ {message}", fg="blue")


def format_duration(seconds: float) -> str:
    """Render a run duration, e.g. ``12.3s``, ``2m 5s`` or ``1h 2m 3s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


def format_count(count: int) -> str:
    return f"{count:,}"


def styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def print_table(title: str, columns: Iterable[str], rows: Iterable[Iterable[Any]]) -> None:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(cell) for cell in row))
    console.print(table)


def print_migration_results(entities: dict[str, dict[str, Any]]) -> None:
    """One row per entity type from a coordinator summary."""
    rows = []
    for name, entity in entities.items():
        stats = entity.get("stats") or {}
        counts = [format_count(stats.get(column, 0)) for column in COUNT_COLUMNS]
        warnings = format_count(len(entity.get("warnings", [])))
        rows.append([name, styled_status(entity["status"]), *counts, warnings])

    print_table(
        "Migration Results",
        ["Entity", "Status", "Total", "Created", "Skipped", "Failed", "Warnings"],
        rows,
    )


def print_validation_checks(checks: list[ValidationCheck]) -> None:
    print_table(
        "Validation",
        ["Check", "Status", "Message"],
        [[check.name, styled_status(check.status.value), check.message] for check in checks],
    )
