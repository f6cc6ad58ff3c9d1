"""Retrieval orchestrator: chunk → embed → index on the way in, embed → search on the way out.

Write path (per document, all-or-nothing):
  1. Split the document with PlainTextChunker (chunk_size / chunk_overlap).
  2. Embed every chunk in one ``embed_documents()`` call.
  3. Insert the embedded chunks into the vector index.
  A failure in step 2 leaves the index untouched for that document.

Batch ingestion is sequential; the first failing document stops the batch and
documents already added stay committed.

Read path:
  embed_query(query) → index.search_with_scores(vector, k)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from ragcore.errors import BatchIngestError, EmbeddingError, RagError, VectorIndexError
from ragcore.index.base import VectorIndex
from ragcore.ingest.base import validate_chunking
from ragcore.ingest.plaintext import PlainTextChunker
from ragcore.models import Chunk, Document, ScoredChunk
from ragcore.rag.gateways import EmbeddingGateway

logger = logging.getLogger(__name__)


class Retriever:
    """Coordinates chunker, embedding gateway, and vector index.

    The index is owned by the caller and passed in, so several retrievers (or
    tests) never share hidden global state.

    Args:
        embeddings: Gateway used for both documents and queries.
        index: Vector index that stores the embedded chunks.
        chunk_size: Default window size in characters.
        chunk_overlap: Default overlap in characters.
    """

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        index: VectorIndex,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
    ) -> None:
        validate_chunking(chunk_size, chunk_overlap)
        self.embeddings = embeddings
        self.index = index
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._documents: dict[str, list[str]] = {}  # document id → chunk ids
        self._sources: dict[str, object] = {}  # document id → metadata["path"]
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def add_document(
        self,
        document: Document,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> list[str]:
        """Chunk, embed, and index *document*. Returns the new chunk ids.

        Re-adding a document id replaces its chunks; chunks the new split no
        longer produces are removed once the new ones are indexed. A warning
        is logged when the replacing document comes from a different path.

        Raises:
            ConfigurationError: Invalid chunk_size / chunk_overlap.
            EmbeddingError: The gateway failed; nothing was inserted.
            DimensionMismatchError: Embedding width disagrees with the index.
        """
        chunker = PlainTextChunker(
            chunk_size=self.chunk_size if chunk_size is None else chunk_size,
            chunk_overlap=self.chunk_overlap if chunk_overlap is None else chunk_overlap,
        )
        chunks = chunker.split(document)
        embedded = self._embed_chunks(document, chunks)

        self.index.insert(embedded)

        new_ids = [c.id for c in embedded]
        source = document.metadata.get("path")
        with self._lock:
            replaced = document.id in self._documents
            previous = self._documents.get(document.id, [])
            previous_source = self._sources.get(document.id)
            self._documents[document.id] = new_ids
            self._sources[document.id] = source
        if replaced and previous_source != source:
            logger.warning(
                "Document id %r from %r replaces the one added from %r",
                document.id,
                source,
                previous_source,
            )
        stale = set(previous) - set(new_ids)
        if stale:
            self.index.delete(stale)

        logger.info(
            "Added document %r: %d chunk(s)%s",
            document.id,
            len(new_ids),
            f", {len(stale)} stale chunk(s) removed" if stale else "",
        )
        return new_ids

    def add_documents(
        self,
        documents: Iterable[Document],
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        *,
        on_added: Callable[[Document, list[str]], None] | None = None,
    ) -> list[str]:
        """Add *documents* one after another. Returns the committed document ids.

        Args:
            on_added: Called with each document and its chunk ids once the
                document is committed.

        Raises:
            BatchIngestError: On the first failing document. Its ``committed``
                attribute lists the documents that stay in the index; the
                original error is chained as ``__cause__``.
        """
        committed: list[str] = []
        for document in documents:
            try:
                chunk_ids = self.add_document(document, chunk_size, chunk_overlap)
            except Exception as exc:
                logger.warning(
                    "Batch ingest stopped at document %r after %d committed: %s",
                    document.id,
                    len(committed),
                    exc,
                )
                raise BatchIngestError(document.id, committed, exc) from exc
            committed.append(document.id)
            if on_added is not None:
                on_added(document, chunk_ids)
        return committed

    def _embed_chunks(self, document: Document, chunks: list[Chunk]) -> list[Chunk]:
        texts = [c.content for c in chunks]
        try:
            vectors = self.embeddings.embed_documents(texts)
        except EmbeddingError as exc:
            raise EmbeddingError(
                f"Failed to embed document '{document.id}': {exc.message}",
                document_id=document.id,
                context=exc.context,
            ) from exc
        except Exception as exc:
            raise EmbeddingError(
                f"Failed to embed document '{document.id}': {exc}",
                document_id=document.id,
            ) from exc

        if len(vectors) != len(chunks):
            raise EmbeddingError(
                f"Embedding gateway returned {len(vectors)} vector(s) "
                f"for {len(chunks)} chunk(s) of document '{document.id}'.",
                document_id=document.id,
            )
        return [chunk.with_embedding(vector) for chunk, vector in zip(chunks, vectors)]

    def remove_document(self, document_id: str) -> int:
        """Delete every chunk produced by *document_id*. Unknown ids remove nothing."""
        with self._lock:
            chunk_ids = self._documents.pop(document_id, [])
            self._sources.pop(document_id, None)
        if not chunk_ids:
            return 0
        removed = self.index.delete(chunk_ids)
        logger.info("Removed document %r (%d chunk(s))", document_id, removed)
        return removed

    def document_ids(self) -> list[str]:
        """Ids of documents added through this retriever, in insertion order."""
        with self._lock:
            return list(self._documents)

    def clear(self) -> None:
        """Empty the index and forget every tracked document."""
        with self._lock:
            self._documents.clear()
            self._sources.clear()
        self.index.clear()

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def retrieve(self, query_text: str, k: int) -> list[Chunk]:
        """Return the *k* chunks most similar to *query_text*, best-first."""
        return [sc.chunk for sc in self.retrieve_with_scores(query_text, k)]

    def retrieve_with_scores(self, query_text: str, k: int) -> list[ScoredChunk]:
        """Like ``retrieve()`` but keeps each chunk's cosine score.

        Raises:
            EmbeddingError: The query could not be embedded.
            VectorIndexError: The index search failed.
        """
        try:
            query_vector = self.embeddings.embed_query(query_text)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(
                f"Failed to embed query: {exc}", text=query_text
            ) from exc

        try:
            results = self.index.search_with_scores(query_vector, k)
        except RagError:
            raise
        except Exception as exc:
            raise VectorIndexError(f"Vector index search failed: {exc}") from exc

        logger.debug("Retrieved %d chunk(s) for query (k=%d)", len(results), k)
        return results
