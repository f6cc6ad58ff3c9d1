"""Plain text chunker: fixed character window with overlap."""

from __future__ import annotations

import logging

from ragcore.ingest.base import BaseChunker
from ragcore.models import Chunk, Document

logger = logging.getLogger(__name__)


class PlainTextChunker(BaseChunker):
    """Split text into windows of ``chunk_size`` characters, stride ``size - overlap``.

    Default: 1000 characters / 200 overlap. Content is never stripped, so the
    windows cover the document losslessly.
    """

    def split(self, document: Document) -> list[Chunk]:
        chunks = self._make_chunks(document, self._windows(document.content))
        logger.debug(
            "Split document %r (%d chars) into %d chunk(s)",
            document.id,
            len(document.content),
            len(chunks),
        )
        return chunks


def split(document: Document, chunk_size: int, chunk_overlap: int) -> list[Chunk]:
    """Split *document* with a one-off PlainTextChunker."""
    return PlainTextChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split(document)
