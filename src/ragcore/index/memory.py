"""In-memory vector index: exact brute-force cosine search.

One ``threading.Lock`` guards the chunk list and the embedding matrix for the
whole of every operation. Search is O(n*d); insert is amortised O(1).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence

import numpy as np

from ragcore.errors import ConfigurationError, DimensionMismatchError, VectorIndexError
from ragcore.index.base import VectorIndex, cosine_scores
from ragcore.models import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


class InMemoryVectorIndex(VectorIndex):
    """Thread-safe in-memory store of embedded chunks.

    Args:
        dimension: Fix the embedding width up front. When omitted, the first
            inserted chunk sets it and ``clear()`` resets it.
    """

    def __init__(self, dimension: int | None = None) -> None:
        if dimension is not None and dimension < 1:
            raise ConfigurationError(f"dimension must be >= 1, got {dimension}")
        self._fixed_dimension = dimension
        self._dimension = dimension
        self._chunks: list[Chunk] = []
        self._vectors: list[np.ndarray] = []
        self._positions: dict[str, int] = {}
        self._matrix: np.ndarray | None = None  # stacked _vectors, rebuilt lazily
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int | None:
        with self._lock:
            return self._dimension

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __contains__(self, chunk_id: object) -> bool:
        with self._lock:
            return chunk_id in self._positions

    def get(self, chunk_id: str) -> Chunk | None:
        with self._lock:
            pos = self._positions.get(chunk_id)
            return None if pos is None else self._chunks[pos]

    def chunk_ids(self) -> list[str]:
        """Stored chunk ids in insertion order."""
        with self._lock:
            return [c.id for c in self._chunks]

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def insert(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return
        with self._lock:
            dimension = self._check_batch(chunks)

            for chunk in chunks:
                vector = np.asarray(chunk.embedding, dtype=np.float64)
                pos = self._positions.get(chunk.id)
                if pos is None:
                    self._positions[chunk.id] = len(self._chunks)
                    self._chunks.append(chunk)
                    self._vectors.append(vector)
                else:
                    # Same id again: replace in place, keep insertion position.
                    self._chunks[pos] = chunk
                    self._vectors[pos] = vector

            self._dimension = dimension
            self._matrix = None
            total = len(self._chunks)

        logger.debug("Inserted %d chunk(s); index holds %d", len(chunks), total)

    def _check_batch(self, chunks: Sequence[Chunk]) -> int:
        """Validate the whole batch before anything is stored. Caller holds the lock."""
        for chunk in chunks:
            if chunk.embedding is None:
                raise VectorIndexError(
                    f"Chunk '{chunk.id}' has no embedding; embed it before inserting.",
                    context={"chunk_id": chunk.id},
                )

        # An empty index takes its dimension from the first chunk of the batch.
        expected = self._dimension
        if expected is None:
            expected = len(chunks[0].embedding or ())
        for chunk in chunks:
            actual = len(chunk.embedding or ())
            if actual != expected:
                logger.warning(
                    "Rejected batch of %d chunk(s): chunk %r has dimension %d, expected %d",
                    len(chunks),
                    chunk.id,
                    actual,
                    expected,
                )
                raise DimensionMismatchError(expected=expected, actual=actual, chunk_id=chunk.id)
        return expected

    def delete(self, ids: Iterable[str]) -> int:
        doomed = set(ids)
        with self._lock:
            keep = [i for i, c in enumerate(self._chunks) if c.id not in doomed]
            removed = len(self._chunks) - len(keep)
            if removed:
                self._chunks = [self._chunks[i] for i in keep]
                self._vectors = [self._vectors[i] for i in keep]
                self._positions = {c.id: i for i, c in enumerate(self._chunks)}
                self._matrix = None
        if removed:
            logger.debug("Deleted %d chunk(s)", removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            count = len(self._chunks)
            self._chunks = []
            self._vectors = []
            self._positions = {}
            self._matrix = None
            self._dimension = self._fixed_dimension
        logger.info("Cleared vector index (%d chunk(s) removed)", count)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def search_with_scores(
        self, query_embedding: Sequence[float], k: int
    ) -> list[ScoredChunk]:
        if k < 1:
            raise ConfigurationError(f"k must be >= 1, got {k}")

        query = np.asarray(query_embedding, dtype=np.float64)
        with self._lock:
            if not self._chunks:
                return []
            if query.shape != (self._dimension,):
                raise VectorIndexError(
                    f"Query embedding has shape {query.shape}, index dimension is {self._dimension}.",
                    context={"expected": self._dimension, "actual": int(query.size)},
                )
            if self._matrix is None:
                self._matrix = np.vstack(self._vectors)

            scores = cosine_scores(self._matrix, query)
            # Stable sort on the negated scores keeps insertion order for ties.
            order = np.argsort(-scores, kind="stable")[:k]
            results = [ScoredChunk(chunk=self._chunks[i], score=float(scores[i])) for i in order]

        logger.debug("Searched %d chunk(s), returning %d", len(scores), len(results))
        return results
