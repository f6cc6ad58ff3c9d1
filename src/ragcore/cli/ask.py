"""ragcore ask: index sources, retrieve context, and answer a question.

Flags:
  --query TEXT           Question (required)
  --source PATH          File or directory to index (repeatable)
  --num-documents N      Chunks placed in the context (default from config: 3)
  --include-metadata     Add each chunk's metadata to the context
  --template TEXT        Prompt template with {{context}} and {{query}}
  --offline              Local hashing embeddings instead of the embedding API
  --dry-run              Print the assembled prompt, skip generation
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ragcore.cli.errors import render_error
from ragcore.cli.ingest import build_system, index_documents, load_sources, prepare
from ragcore.errors import RagError
from ragcore.models import QueryOptions

console = Console()


def ask_cmd(
    query: Annotated[
        str,
        typer.Option("--query", "-q", help="Question to answer (required)."),
    ],
    source: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="File or directory to index (repeatable)."),
    ] = None,
    num_documents: Annotated[
        int | None,
        typer.Option("--num-documents", "-n", help="Number of chunks in the context."),
    ] = None,
    include_metadata: Annotated[
        bool | None,
        typer.Option("--include-metadata/--no-metadata", help="Include chunk metadata."),
    ] = None,
    template: Annotated[
        str | None,
        typer.Option("--template", help="Prompt template with {{context}} and {{query}}."),
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
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use local hashing embeddings (no embedding API calls)."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the assembled prompt without calling the model."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    ] = None,
) -> None:
    """Answer a question from the given sources using RAG + LLM."""
    try:
        config = prepare(log_level, chunk_size, chunk_overlap)
        defaults = config.query
        options = QueryOptions(
            num_documents=num_documents if num_documents is not None else defaults.num_documents,
            include_metadata=(
                include_metadata if include_metadata is not None else defaults.include_metadata
            ),
            prompt_template=template or defaults.prompt_template,
        )
        documents = load_sources(source or [], recursive, None)
        system = build_system(config, offline=offline, needs_generation=not dry_run)
        system.set_query_options(options)
        index_documents(system, documents)

        if dry_run:
            assembled = system.assemble(query)
            console.print(
                Panel(
                    Text(assembled.request.text),
                    title=f"Prompt ({len(assembled.chunks)} chunk(s))",
                    expand=False,
                )
            )
            return

        result = system.query(query)
    except RagError as exc:
        console.print(render_error(exc))
        raise typer.Exit(1)

    console.print(result.text, markup=False)
    if result.total_tokens:
        console.print(f"[dim]Tokens used: {result.total_tokens} ({result.model})[/]")
