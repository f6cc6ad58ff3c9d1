"""ragcore search: index sources and print the top-k chunks for a query."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ragcore.cli.errors import render_error
from ragcore.cli.ingest import build_system, index_documents, load_sources, prepare
from ragcore.errors import RagError

console = Console()


def search_cmd(
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Query text (required)."),
    ],
    source: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="File or directory to index (repeatable)."),
    ] = None,
    k: Annotated[
        int,
        typer.Option("--top-k", "-k", help="Number of chunks to return."),
    ] = 3,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", help="Recurse into subdirectories."),
    ] = False,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use local hashing embeddings (no API calls)."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    ] = None,
) -> None:
    """Index sources and show the chunks most similar to the query."""
    try:
        config = prepare(log_level)
        documents = load_sources(source or [], recursive, None)
        system = build_system(config, offline=offline, needs_generation=False)
        index_documents(system, documents)
        results = system.retriever.retrieve_with_scores(query, k)
    except RagError as exc:
        console.print(render_error(exc))
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No chunks indexed: nothing to search.[/]")
        return

    table = Table(title=f"Top {len(results)} for: {escape(query)}")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Chunk", style="cyan")
    table.add_column("Content")
    for i, sc in enumerate(results, start=1):
        preview = escape(sc.chunk.content.strip()[:120])
        table.add_row(str(i), f"{sc.score:.4f}", escape(sc.chunk.id), preview)
    console.print(table)
