"""Context compression CLI commands."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from ..config import ContextStrategy, RetentionRules
from ..exceptions import BladeError, MessageError
from ..messages import Message, messages_from_dicts, messages_to_dicts
from ..tokenizers import get_tokenizer
from ..transforms import ContextCompressor, ImportanceScorer
from ._utils.formatting import (
    compression_panel,
    console,
    messages_table,
    print_error,
    scores_table,
)
from .main import main


def history_argument(fn: Any) -> Any:
    """Shared FILE argument: a JSON conversation history."""
    return click.argument("history_file", type=click.Path(exists=True, dir_okay=False))(fn)


def load_history(path: str | Path) -> list[Message]:
    """Load messages from a JSON file.

    Accepts either a list of message dicts or an object with a
    ``messages`` list. Missing sequence indices are assigned by position.

    Raises:
        click.BadParameter: If the file is not valid JSON, not a message list, or
            has malformed sequence indices.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise click.BadParameter(f"{path} must contain a list of message objects")
    try:
        return messages_from_dicts(data)
    except MessageError as e:
        raise click.BadParameter(f"{path}: {e}") from e


def load_rules(
    config_path: str | None,
    keep_recent: int | None,
    no_system: bool,
    no_important: bool,
) -> RetentionRules:
    """Build retention rules from an optional config file plus CLI overrides.

    The config file may hold retention rules directly or a full context
    strategy with a ``retention_rules``/``retentionRules`` entry.
    """
    base = RetentionRules()
    if config_path:
        try:
            raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"{config_path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise click.BadParameter(f"{config_path} must contain a JSON object")
        if "retention_rules" in raw or "retentionRules" in raw:
            base = ContextStrategy.from_dict(raw).retention_rules
        else:
            base = RetentionRules.from_dict(raw)

    return RetentionRules(
        keep_recent_messages=base.keep_recent_messages if keep_recent is None else keep_recent,
        keep_system_messages=base.keep_system_messages and not no_system,
        keep_important_messages=base.keep_important_messages and not no_important,
    )


@main.group()
@click.pass_context
def context(ctx: click.Context) -> None:
    """Inspect and compress conversation histories.

    \b
    Examples:
        blade context compress history.json --keep-recent 4
        blade context compress history.json --json > compacted.json
        blade context score history.json
    """
    pass


@context.command("compress")
@history_argument
@click.option("--keep-recent", type=int, default=None, help="Messages always kept from the end.")
@click.option("--no-system", is_flag=True, help="Do not pin system messages.")
@click.option("--no-important", is_flag=True, help="Do not keep the top 30% by importance.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with retention rules or a context strategy.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the compacted history as JSON.")
def compress_command(
    history_file: str,
    keep_recent: int | None,
    no_system: bool,
    no_important: bool,
    config_path: str | None,
    as_json: bool,
) -> None:
    """Compress a conversation history.

    \b
    Examples:
        blade context compress history.json
        blade context compress history.json --keep-recent 2 --no-important
    """
    try:
        history = load_history(history_file)
        rules = load_rules(config_path, keep_recent, no_system, no_important)
        result = ContextCompressor().compress_with_result(history, rules)
    except (click.BadParameter, BladeError) as e:
        print_error(str(e))
        sys.exit(1)

    if as_json:
        payload = messages_to_dicts(result.compressed_messages, include_metadata=True)
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    console.print(compression_panel(result))
    console.print(messages_table(result.compressed_messages, title="Compacted history"))


@context.command("score")
@history_argument
@click.option("--top", type=int, default=None, help="Only show the N highest scores.")
def score_command(history_file: str, top: int | None) -> None:
    """Show the importance score of every message."""
    try:
        history = load_history(history_file)
    except click.BadParameter as e:
        print_error(str(e))
        sys.exit(1)

    scorer = ImportanceScorer()
    scores = scorer.score(history)
    if top is not None:
        scores = scorer.rank(scores)[:top]

    console.print(scores_table(scores))


@context.command("estimate")
@history_argument
@click.option("--model", default=None, help="Model name, selects tiktoken when available.")
@click.option(
    "--backend",
    type=click.Choice(["auto", "estimate", "tiktoken"]),
    default="auto",
    show_default=True,
)
def estimate_command(history_file: str, model: str | None, backend: str) -> None:
    """Estimate the token count of a conversation history."""
    try:
        history = load_history(history_file)
        tokenizer = get_tokenizer(model, backend=backend)  # type: ignore[arg-type]
    except (click.BadParameter, BladeError) as e:
        print_error(str(e))
        sys.exit(1)

    tokens = tokenizer.count_messages(history)
    console.print(f"[bold]{tokens}[/bold] tokens across {len(history)} messages ({tokenizer!r})")
