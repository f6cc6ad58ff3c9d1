"""Base chunker interface: fixed character windows with overlap."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod

from ragcore.errors import ConfigurationError
from ragcore.models import Chunk, Document


def validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    """Raise ConfigurationError unless ``chunk_size > 0`` and ``0 <= overlap < size``.

    An overlap equal to or larger than the window would never advance the
    window, so it is rejected rather than clamped.
    """
    if chunk_size < 1:
        raise ConfigurationError(f"chunk_size must be >= 1, got {chunk_size}")
    if chunk_overlap < 0:
        raise ConfigurationError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ConfigurationError(
            f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
        )


class BaseChunker(ABC):
    """Abstract base for chunkers.

    Subclasses implement ``split()`` and may use ``_windows()`` and
    ``_make_chunks()`` for the fixed-window path. Sizes are in characters.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        validate_chunking(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @abstractmethod
    def split(self, document: Document) -> list[Chunk]:
        """Split *document* into ordered Chunk objects.

        Chunk ids are ``"{document.id}-{start_offset}"`` so splitting the same
        document twice with the same parameters yields the same ids.
        """

    @property
    def stride(self) -> int:
        return self.chunk_size - self.chunk_overlap

    def _windows(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every window over *text*.

        The last window is clipped to ``len(text)``; the loop stops as soon as
        a window reaches the end.
        """
        length = len(text)
        if length <= self.chunk_size:
            return [(0, length)]

        windows: list[tuple[int, int]] = []
        pos = 0
        while True:
            end = min(pos + self.chunk_size, length)
            windows.append((pos, end))
            if end >= length:
                break
            pos += self.stride
        return windows

    def _make_chunks(self, document: Document, windows: list[tuple[int, int]]) -> list[Chunk]:
        return [
            Chunk(
                id=f"{document.id}-{start}",
                document_id=document.id,
                content=document.content[start:end],
                offset=start,
                metadata=copy.deepcopy(document.metadata),
            )
            for start, end in windows
        ]
