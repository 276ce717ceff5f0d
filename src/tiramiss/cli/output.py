"""Output utilities for CLI commands with clear intent.

user_output is for progress and diagnostics meant for a human (stderr);
machine_output is for data another program may consume (stdout).
"""

from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from tiramiss.core.integration import TopicResult


def user_output(message: Any = "", nl: bool = True) -> None:
    """Write a human-facing message to stderr."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: Any = "", nl: bool = True) -> None:
    """Write machine-readable output to stdout."""
    click.echo(message, nl=nl)


def format_topic_summary(results: "list[TopicResult]") -> Table:
    """Build the per-topic summary table shown at the end of a run.

    Args:
        results: Topic results in application order

    Returns:
        Rich Table with one row per topic
    """
    table = Table(title="Topics", title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Topic")
    table.add_column("Ref")
    table.add_column("Outcome")
    table.add_column("Detail", style="dim")

    for index, result in enumerate(results, start=1):
        style = "green" if result.outcome.value == "applied" else "yellow"
        table.add_row(
            str(index),
            result.topic,
            result.ref,
            f"[{style}]{result.outcome.value}[/{style}]",
            result.detail,
        )
    return table


def print_topic_summary(results: "list[TopicResult]") -> None:
    """Render the per-topic summary to stderr."""
    if not results:
        return
    Console(stderr=True).print(format_topic_summary(results))
