"""
Utility functions for CLI commands.

This module provides helper functions for formatting command output.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import click
from rich.console import Console
from rich.table import Table

console = Console()


def echo_success(message: str) -> None:
    """Print success message in green."""
    click.secho(f"✓ {message}", fg="green")


def echo_warning(message: str) -> None:
    """Print warning message in yellow."""
    click.secho(f"⚠ {message}", fg="yellow")


def echo_info(message: str) -> None:
    """Print info message in blue."""
    click.secho(f"ℹ {message}", fg="blue")


def format_count(count: int) -> str:
    """
    Format large numbers with thousands separator.

    Args:
        count: Number to format

    Returns:
        Formatted number (e.g., "1,234,567")
    """
    return f"{count:,}"


def format_ids(values: Mapping[str, Any] | Sequence[Any]) -> str:
    """
    Format an id tuple the way id lists are typed on the command line.

    Args:
        values: Keyed or positional id values

    Returns:
        Values joined by ``:`` (e.g., "1:en")
    """
    if isinstance(values, Mapping):
        values = list(values.values())
    return ":".join("" if value is None else str(value) for value in values)


def print_table(
    title: str,
    columns: list[str],
    rows: list[list[Any]],
    show_header: bool = True,
) -> None:
    """
    Print a formatted table using rich.

    Args:
        title: Table title
        columns: Column headers
        rows: List of row data
        show_header: Whether to show header row
    """
    table = Table(title=title, show_header=show_header)

    # Add columns
    for col in columns:
        table.add_column(col)

    # Add rows
    for row in rows:
        table.add_row(*[str(cell) for cell in row])

    console.print(table)
