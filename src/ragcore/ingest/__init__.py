"""Ingest pipeline: chunkers and the file loader."""

from ragcore.ingest.base import BaseChunker, validate_chunking
from ragcore.ingest.loader import load_document, load_documents
from ragcore.ingest.plaintext import PlainTextChunker, split

__all__ = [
    "BaseChunker",
    "PlainTextChunker",
    "load_document",
    "load_documents",
    "split",
    "validate_chunking",
]
