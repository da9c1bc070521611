"""Rich rendering of messages, scores and compression results."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ...config import CompressionResult
from ...messages import Message
from ...transforms.scoring import ImportanceScore

# Shared console instance for consistent output
console = Console()

ROLE_STYLES = {
    "system": "magenta",
    "user": "cyan",
    "assistant": "green",
}


def preview(text: str, width: int = 50) -> str:
    """One-line preview of message content, cut to ``width`` with an ellipsis."""
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def role_text(role: str) -> Text:
    return Text(role, style=ROLE_STYLES.get(role, "white"))


def messages_table(messages: Sequence[Message], title: str | None = None) -> Table:
    """Table of messages. Summary messages are dimmed and have no index."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Content")

    for message in messages:
        index = "-" if message.sequence_index is None else str(message.sequence_index)
        table.add_row(
            index,
            role_text(message.role),
            Text(preview(message.content, 70)),
            style="dim italic" if message.is_compressed else None,
        )
    return table


def scores_table(scores: Sequence[ImportanceScore], title: str = "Importance") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Role")
    table.add_column("Score", justify="right")
    table.add_column("Reasons")
    table.add_column("Content")

    for score in scores:
        table.add_row(
            str(score.index),
            role_text(score.message.role),
            f"{score.score:.1f}",
            ", ".join(score.reasons),
            Text(preview(score.message.content)),
        )
    return table


def compression_panel(result: CompressionResult) -> Panel:
    """Panel with the counts and ratio of one compression pass."""
    lines = [
        f"[bold]Messages:[/bold] {len(result.original_messages)} -> "
        f"{len(result.compressed_messages)}",
        f"[bold]Preserved:[/bold] {result.preserved_messages}",
        f"[bold]Removed:[/bold] {result.removed_messages}",
        f"[bold]Ratio:[/bold] {result.compression_ratio:.2f}",
        f"[bold]Strategy:[/bold] {result.compression_strategy}",
    ]
    return Panel("\n".join(lines), title="Compression")


def print_error(msg: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(msg)}")
