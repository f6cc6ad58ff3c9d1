"""Vector index interface.

Any store (in-memory, remote, disk-backed) implements the same four
operations, so the Retriever never depends on a concrete backend:

  insert(chunks)              append embedded chunks (all-or-nothing)
  search_with_scores(q, k)    exact top-k by cosine similarity, best-first
  delete(ids)                 remove by chunk id; unknown ids are ignored
  clear()                     drop everything; dimension resets
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

import numpy as np

from ragcore.models import Chunk, ScoredChunk


class VectorIndex(ABC):
    """Abstract store of embedded chunks."""

    @abstractmethod
    def insert(self, chunks: Sequence[Chunk]) -> None:
        """Add embedded *chunks*.

        Raises:
            DimensionMismatchError: If any embedding disagrees with the index
                dimension. Nothing from the batch is stored in that case.
            VectorIndexError: If a chunk carries no embedding, or on a
                store-level failure.
        """

    @abstractmethod
    def search_with_scores(
        self, query_embedding: Sequence[float], k: int
    ) -> list[ScoredChunk]:
        """Return up to *k* chunks with their cosine scores, highest first.

        Ties keep insertion order. An empty index returns ``[]``.
        """

    @abstractmethod
    def delete(self, ids: Iterable[str]) -> int:
        """Remove chunks whose id is in *ids*. Returns the number removed."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every chunk."""

    @abstractmethod
    def __len__(self) -> int: ...

    def search(self, query_embedding: Sequence[float], k: int) -> list[Chunk]:
        """Like ``search_with_scores()`` but returns bare chunks."""
        return [sc.chunk for sc in self.search_with_scores(query_embedding, k)]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b|)``; 0.0 when either vector has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vectors differ in shape: {va.shape} vs {vb.shape}")
    norm = float(np.sqrt((va * va).sum()) * np.sqrt((vb * vb).sum()))
    if norm == 0.0:
        return 0.0
    return float((va * vb).sum() / norm)


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*.

    Rows are reduced independently, so identical rows always get identical
    scores. Zero-norm rows (or a zero query) score 0.
    """
    dots = (matrix * query).sum(axis=1)
    norms = np.sqrt((matrix * matrix).sum(axis=1)) * np.sqrt((query * query).sum())
    scores = np.zeros_like(dots)
    np.divide(dots, norms, out=scores, where=norms != 0.0)
    return scores
