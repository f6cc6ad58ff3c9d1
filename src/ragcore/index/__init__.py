"""Vector index layer."""

from ragcore.index.base import VectorIndex, cosine_scores, cosine_similarity
from ragcore.index.memory import InMemoryVectorIndex

__all__ = [
    "InMemoryVectorIndex",
    "VectorIndex",
    "cosine_scores",
    "cosine_similarity",
]
