"""Shared ingest step for the CLI commands.

Sources are loaded and indexed on every invocation; the index lives in
memory for the duration of the command only.

  file       → one document
  directory  → one document per file (--recursive for subdirs)
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from ragcore.config import RagConfig, load_config
from ragcore.errors import ConfigurationError
from ragcore.ingest.loader import load_documents
from ragcore.logging_config import get_logger, setup_logging
from ragcore.models import Document
from ragcore.rag.llm_client import validate_api_key
from ragcore.rag.system import RagSystem

console = Console()
log = get_logger("cli")


def prepare(
    log_level: str | None,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
) -> RagConfig:
    """Load config, apply CLI overrides, and configure logging."""
    config = load_config()
    if chunk_size is not None:
        config.chunking.chunk_size = chunk_size
    if chunk_overlap is not None:
        config.chunking.chunk_overlap = chunk_overlap
    setup_logging(log_level or config.logging.level)
    return config


def load_sources(
    sources: list[str], recursive: bool, exclude: list[str] | None
) -> list[Document]:
    """Load every --source into Documents, in the order given."""
    if not sources:
        raise ConfigurationError("No --source specified. Use --source PATH.")
    documents: list[Document] = []
    for src in sources:
        documents.extend(load_documents(Path(src), recursive=recursive, exclude=exclude))
    log.info("Loaded %d document(s) from %d source(s)", len(documents), len(sources))
    return documents


def build_system(config: RagConfig, offline: bool, needs_generation: bool) -> RagSystem:
    """Build a RagSystem, checking API keys for the models it will call."""
    if not offline:
        validate_api_key(config.embedding.model)
    if needs_generation:
        validate_api_key(config.generation.model)
    return RagSystem.from_config(config, offline=offline)


def index_documents(system: RagSystem, documents: list[Document]) -> None:
    """Add *documents* through the retriever with a progress bar.

    Raises BatchIngestError at the first failure; documents already added
    stay indexed.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Indexing", total=len(documents))

        def advance(document: Document, chunk_ids: list[str]) -> None:
            progress.update(task, description=f"Indexed {escape(document.id)}")
            progress.advance(task)

        committed = system.retriever.add_documents(documents, on_added=advance)

    console.print(
        f"[green]✓[/] Indexed {len(committed)} document(s), {len(system.index)} chunk(s)"
    )
