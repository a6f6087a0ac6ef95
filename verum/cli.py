"""Command-line tools for the Verum protocol engine.

Commands:
    chunk        Show how a story would be split into segments
    validate     Decode and validate a single payload
    reconstruct  Rebuild stories, posts and subscriptions from a dump
"""

import asyncio
import json
import logging
import sys
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from verum import __version__
from verum.application.services.chain_reconstruction_service import (
    ChainReconstructionService,
)
from verum.bootstrap.logging import configure_logging
from verum.config.protocol_config import ChunkerConfig
from verum.domain.errors.chunking import ChunkingError, ContentTooLargeError
from verum.domain.errors.payload import PayloadDecodeError
from verum.domain.models.chain import ChainPointers
from verum.domain.models.feed import Reconstruction
from verum.domain.models.transaction import Transaction
from verum.domain.services.content_chunker import ContentChunker
from verum.domain.services.payload_builder import PayloadBuilder
from verum.domain.services.payload_codec import PayloadCodec
from verum.domain.services.payload_validator import PayloadValidator

PLACEHOLDER_ID = "f" * 64


class OutputFormat(str, Enum):
    """Output format options."""

    text = "text"
    json = "json"


app = typer.Typer(
    name="verum",
    help="Chunk, validate and reconstruct Verum protocol payloads",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"verum version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log engine events to stderr.",
    ),
) -> None:
    """Verum protocol tools.

    Works offline: nothing is submitted and no indexer is contacted.
    """
    configure_logging(
        "development",
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
    )


@app.command()
def chunk(
    file: Path = typer.Argument(
        ...,
        help="Text file holding the story",
    ),
    max_segments: Optional[int] = typer.Option(
        None,
        "--max-segments",
        "-m",
        help="Segment ceiling, 0 for none (default: VERUM_MAX_SEGMENTS or 20)",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Show the segments a story would be published as.

    Payload sizes are measured with worst-case placeholder ids, so real
    segments are never larger.

    Example:
        verum chunk story.txt
        verum chunk story.txt --max-segments 0 --format json
    """
    content = _read_text(file)
    config = ChunkerConfig.from_environment()
    if max_segments is not None:
        config = replace(config, max_segments=max_segments or None)

    codec = PayloadCodec()
    chunker = ContentChunker(config=config, codec=codec)
    try:
        chunks = chunker.split(content)
    except ContentTooLargeError as e:
        console.print(f"[red]Too large:[/red] {e}", style="bold")
        console.print(
            f"  Needs about {e.estimated_segments} segments; "
            f"keep it under roughly {e.suggested_max_chars} characters."
        )
        raise typer.Exit(code=1)
    except ChunkingError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1)

    builder = PayloadBuilder(clock=lambda: 9_999_999_999)
    pointers = ChainPointers(
        last_tx_id=PLACEHOLDER_ID,
        last_subscribe_id=PLACEHOLDER_ID,
        start_tx_id=PLACEHOLDER_ID,
    )
    rows = []
    for item in chunks:
        payload = builder.story_segment(item, pointers, parent_id=PLACEHOLDER_ID)
        rows.append(
            {
                "segment": item.segment_index,
                "total": item.total,
                "is_final": item.is_final,
                "characters": len(item.content),
                "payload_bytes": codec.encoded_size(payload),
                "preview": _preview(item.content),
            }
        )

    if output_format == OutputFormat.json:
        console.print_json(
            json.dumps(
                {
                    "segments": rows,
                    "max_content_bytes": chunker.max_content_bytes,
                }
            )
        )
        return

    if not rows:
        console.print("[yellow]Nothing to publish: content is empty[/yellow]")
        return

    table = Table(title=f"{len(rows)} segment(s)")
    table.add_column("#", justify="right")
    table.add_column("Chars", justify="right")
    table.add_column("Payload bytes", justify="right")
    table.add_column("Final")
    table.add_column("Starts with")
    for row in rows:
        table.add_row(
            str(row["segment"]),
            str(row["characters"]),
            str(row["payload_bytes"]),
            "yes" if row["is_final"] else "",
            row["preview"],
        )
    console.print(table)


@app.command()
def validate(
    payload: str = typer.Argument(
        ...,
        help="Payload as JSON or hex, or a file holding one",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Decode a payload and check it against the protocol rules.

    Exits with status 1 if the payload cannot be decoded or breaks a rule.

    Example:
        verum validate '{"verum":"0.3","type":"post","content":"hi",...}'
        verum validate payload.hex
    """
    raw = payload
    candidate = Path(payload)
    if len(payload) < 4096 and candidate.is_file():
        raw = _read_text(candidate)

    codec = PayloadCodec()
    try:
        decoded = codec.decode(raw)
    except PayloadDecodeError as e:
        if output_format == OutputFormat.json:
            console.print_json(json.dumps({"valid": False, "error": e.reason}))
        else:
            console.print(f"[red]INVALID[/red] - {e}")
        raise typer.Exit(code=1)

    issues = PayloadValidator(codec=codec).validate(decoded)
    size = codec.encoded_size(decoded)

    if output_format == OutputFormat.json:
        console.print_json(
            json.dumps(
                {
                    "valid": not issues,
                    "type": decoded.kind,
                    "size": size,
                    "issues": [
                        {"field": i.field, "code": i.code, "message": i.message}
                        for i in issues
                    ],
                }
            )
        )
    elif not issues:
        console.print(f"[green]VALID[/green] - {decoded.kind} payload, {size} bytes")
    else:
        console.print(f"[red]INVALID[/red] - {len(issues)} issue(s)")
        table = Table()
        table.add_column("Field")
        table.add_column("Code")
        table.add_column("Message")
        for issue in issues:
            table.add_row(issue.field, issue.code, issue.message)
        console.print(table)

    if issues:
        raise typer.Exit(code=1)


@app.command()
def reconstruct(
    dump: Path = typer.Argument(
        ...,
        help="JSON array of transactions",
    ),
    viewer: Optional[str] = typer.Option(
        None,
        "--viewer",
        help="Only show notes written by this address",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Rebuild complete stories, posts and subscriptions from a dump.

    Each transaction needs id, author_address and block_time, and may
    carry recipient_address, accepted and payload.

    Example:
        verum reconstruct transactions.json
    """
    try:
        data = json.loads(_read_text(dump))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON in {dump}: {e.msg}", style="bold")
        raise typer.Exit(code=1)
    if not isinstance(data, list):
        console.print(
            f"[red]Error:[/red] {dump} must hold a JSON array of transactions",
            style="bold",
        )
        raise typer.Exit(code=1)

    try:
        transactions = [Transaction.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        console.print(f"[red]Error:[/red] Malformed transaction: {e}", style="bold")
        raise typer.Exit(code=1)

    result = asyncio.run(
        ChainReconstructionService().reconstruct(transactions, viewer_address=viewer)
    )

    if output_format == OutputFormat.json:
        console.print_json(json.dumps(_reconstruction_to_dict(result)))
    else:
        _print_reconstruction(result)


def _reconstruction_to_dict(result: Reconstruction) -> dict[str, Any]:
    return {
        "stories": [
            {
                "first_segment_id": story.first_segment_id,
                "author_address": story.author_address,
                "segments": len(story.segments),
                "timestamp": story.timestamp,
                "content": story.full_content,
            }
            for story in result.stories
        ],
        "posts": [
            {
                "tx_id": post.tx_id,
                "author_address": post.author_address,
                "timestamp": post.timestamp,
                "content": post.content,
            }
            for post in result.posts
        ],
        "notes": [note.tx_id for note in result.notes],
        "profiles": {
            address: profile.nickname for address, profile in result.profiles.items()
        },
        "subscriptions": {
            subscriber: [edge.target for edge in edges]
            for subscriber, edges in result.subscriptions_by_subscriber.items()
        },
        "incomplete": [
            {"root_id": error.root_id, "reason": error.reason}
            for error in result.incomplete
        ],
    }


def _print_reconstruction(result: Reconstruction) -> None:
    stories = Table(title=f"Stories ({len(result.stories)})")
    stories.add_column("First segment")
    stories.add_column("Author")
    stories.add_column("Segments", justify="right")
    stories.add_column("Starts with")
    for story in result.stories:
        stories.add_row(
            _short(story.first_segment_id),
            _short(story.author_address),
            str(len(story.segments)),
            _preview(story.full_content),
        )
    console.print(stories)

    posts = Table(title=f"Posts ({len(result.posts)})")
    posts.add_column("Transaction")
    posts.add_column("Author")
    posts.add_column("Content")
    for post in result.posts:
        posts.add_row(
            _short(post.tx_id), _short(post.author_address), _preview(post.content)
        )
    console.print(posts)

    if result.subscriptions_by_subscriber:
        subscriptions = Table(title="Subscriptions")
        subscriptions.add_column("Subscriber")
        subscriptions.add_column("Targets")
        for subscriber, edges in result.subscriptions_by_subscriber.items():
            subscriptions.add_row(
                _short(subscriber), ", ".join(_short(edge.target) for edge in edges)
            )
        console.print(subscriptions)

    if result.incomplete:
        console.print(
            f"[yellow]Warning: {len(result.incomplete)} incomplete chain(s) "
            "left out[/yellow]"
        )
        for error in result.incomplete:
            console.print(f"  {_short(error.root_id)}: {error.reason}", style="dim")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] File not found: {path}", style="bold")
        raise typer.Exit(code=1)


def _preview(text: str, length: int = 40) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= length else flat[: length - 3] + "..."


def _short(value: str, keep: int = 12) -> str:
    return value if len(value) <= keep + 3 else value[:keep] + "..."


if __name__ == "__main__":
    app()
