"""Rich error messages for the CLI: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from ragcore.cli.errors import render_error
    console.print(render_error(exc))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape

from ragcore.errors import (
    BatchIngestError,
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    GenerationError,
    RagError,
    VectorIndexError,
)


def err_no_api_key(provider: str, env_var: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-...\n"
        "  Or run with --offline to use local hashing embeddings."
    )


def err_configuration(message: str) -> str:
    return f"[red]Error:[/] {message}\n  Check the command flags and ragcore.yaml."


def err_source_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] Source not found: '{path}'\n"
        "  Pass an existing file or directory with --source."
    )


def err_embedding(message: str, document_id: str | None) -> str:
    where = f" for document '{document_id}'" if document_id else ""
    return (
        f"[red]Error:[/] Embedding failed{where}.\n"
        f"  {message}\n"
        "  Check the embedding model name and your network, then retry."
    )


def err_dimension_mismatch(expected: int, actual: int) -> str:
    return (
        f"[red]Error:[/] Embedding dimension mismatch: index expects {expected}, got {actual}.\n"
        "  Use one embedding model per run, or set embedding.dimensions to match it."
    )


def err_generation(message: str) -> str:
    return (
        f"[red]Error:[/] Generation failed.\n"
        f"  {message}\n"
        "  Use --dry-run to inspect the assembled prompt without calling the model."
    )


def err_batch(document_id: str, committed: list[str], cause: str) -> str:
    done = ", ".join(committed) if committed else "(none)"
    return (
        f"[red]Error:[/] Ingest stopped at '{document_id}': {cause}\n"
        f"  Already indexed: {done}"
    )


def render_error(exc: RagError) -> str:
    """Pick the message for *exc* by error kind. Free text from the error is escaped."""
    if isinstance(exc, BatchIngestError):
        cause = exc.__cause__
        reason = cause.message if isinstance(cause, RagError) else str(cause)
        return err_batch(
            escape(exc.document_id), [escape(d) for d in exc.committed], escape(reason)
        )
    if isinstance(exc, ConfigurationError):
        if "env_var" in exc.context:
            return err_no_api_key(exc.context["provider"], exc.context["env_var"])
        if "path" in exc.context and exc.message.startswith("Path not found"):
            return err_source_not_found(escape(exc.context["path"]))
        return err_configuration(escape(exc.message))
    if isinstance(exc, EmbeddingError):
        document_id = escape(exc.document_id) if exc.document_id else None
        return err_embedding(escape(exc.message), document_id)
    if isinstance(exc, DimensionMismatchError):
        return err_dimension_mismatch(exc.expected, exc.actual)
    if isinstance(exc, GenerationError):
        return err_generation(escape(exc.message))
    if isinstance(exc, VectorIndexError):
        return f"[red]Error:[/] Vector index failure: {escape(exc.message)}"
    return f"[red]Error:[/] {escape(exc.message)}"
