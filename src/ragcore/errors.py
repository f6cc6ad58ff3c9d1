"""Error hierarchy for the RAG core.

Every error carries a human-readable message plus a structured ``context``
dict, so callers can log it as JSON or render it for the CLI.

    RagError
    ├── ConfigurationError      invalid chunking / options / config files
    ├── EmbeddingError          embedding gateway call failed
    ├── DimensionMismatchError  embedding width disagrees with the index
    ├── VectorIndexError        store-level failure
    ├── GenerationError         generation backend failed
    └── BatchIngestError        add_documents stopped on a failing document

Nothing in the core retries; retry and backoff belong to the caller.
"""

from __future__ import annotations

from typing import Any


class RagError(Exception):
    """Base class for all ragcore errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": type(self).__name__, "message": self.message}
        if self.context:
            result["context"] = self.context
        if self.__cause__ is not None:
            result["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return result


class ConfigurationError(RagError, ValueError):
    """Invalid chunk_size/overlap, a missing required option, or a bad config file."""


class EmbeddingError(RagError):
    """The embedding gateway failed for a query or a document."""

    def __init__(
        self,
        message: str,
        *,
        document_id: str | None = None,
        text: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if document_id is not None:
            ctx["document_id"] = document_id
        if text is not None:
            ctx["text"] = _preview(text)
        super().__init__(message, context=ctx)
        self.document_id = document_id
        self.text = text


class DimensionMismatchError(RagError):
    """An embedding's length disagrees with the index dimension."""

    def __init__(self, expected: int, actual: int, *, chunk_id: str | None = None) -> None:
        where = f" for chunk '{chunk_id}'" if chunk_id else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: index expects {expected}, got {actual}.",
            context={"expected": expected, "actual": actual, "chunk_id": chunk_id},
        )
        self.expected = expected
        self.actual = actual
        self.chunk_id = chunk_id


class VectorIndexError(RagError):
    """Store-level failure (unknown ids on delete are not one)."""


class GenerationError(RagError):
    """The generation backend failed."""


class BatchIngestError(RagError):
    """``add_documents`` stopped at the first failing document.

    Documents listed in ``committed`` stay in the index.
    """

    def __init__(self, document_id: str, committed: list[str], cause: Exception) -> None:
        super().__init__(
            f"Failed to add document '{document_id}' "
            f"({len(committed)} earlier document(s) committed): {cause}",
            context={"document_id": document_id, "committed": list(committed)},
        )
        self.document_id = document_id
        self.committed = list(committed)


def _preview(text: str, limit: int = 80) -> str:
    return text if len(text) <= limit else text[:limit] + "..."
