"""ragcore chunk: show how sources split into chunks (no embedding)."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ragcore.cli.errors import render_error
from ragcore.cli.ingest import load_sources, prepare
from ragcore.errors import RagError
from ragcore.ingest.plaintext import PlainTextChunker

console = Console()

_PREVIEW_CHARS = 60


def chunk_cmd(
    source: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="File or directory to chunk (repeatable)."),
    ] = None,
    chunk_size: Annotated[
        int | None,
        typer.Option("--chunk-size", help="Window size in characters."),
    ] = None,
    chunk_overlap: Annotated[
        int | None,
        typer.Option("--chunk-overlap", help="Overlap between windows in characters."),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", help="Recurse into subdirectories."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    ] = None,
) -> None:
    """Split sources into chunks and print a table of them."""
    try:
        config = prepare(log_level, chunk_size, chunk_overlap)
        chunker = PlainTextChunker(
            chunk_size=config.chunking.chunk_size,
            chunk_overlap=config.chunking.chunk_overlap,
        )
        documents = load_sources(source or [], recursive, None)
    except RagError as exc:
        console.print(render_error(exc))
        raise typer.Exit(1)

    table = Table(title=f"Chunks (size={chunker.chunk_size}, overlap={chunker.chunk_overlap})")
    table.add_column("ID", style="cyan")
    table.add_column("Offset", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Preview")

    total = 0
    for document in documents:
        for c in chunker.split(document):
            preview = c.content[:_PREVIEW_CHARS].replace("\n", " ")
            table.add_row(escape(c.id), str(c.offset), str(len(c.content)), escape(preview))
            total += 1

    console.print(table)
    console.print(f"{total} chunk(s) from {len(documents)} document(s)")
