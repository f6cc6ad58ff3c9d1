"""Tests for PlainTextChunker and split()."""

from __future__ import annotations

import math

import pytest

from ragcore.errors import ConfigurationError
from ragcore.ingest.plaintext import PlainTextChunker, split
from ragcore.models import Chunk, Document


def _doc(content: str, doc_id: str = "doc", **metadata) -> Document:
    return Document(id=doc_id, content=content, metadata=metadata)


def _reconstruct(chunks: list[Chunk], stride: int) -> str:
    """Each chunk but the last contributes its first *stride* chars; the last contributes all."""
    return "".join(c.content[:stride] for c in chunks[:-1]) + chunks[-1].content


def test_plaintext_default_settings():
    chunker = PlainTextChunker()
    assert chunker.chunk_size == 1000
    assert chunker.chunk_overlap == 200
    assert chunker.stride == 800


def test_short_document_single_chunk():
    chunks = split(_doc("Short text."), chunk_size=100, chunk_overlap=10)
    assert len(chunks) == 1
    assert chunks[0].content == "Short text."
    assert chunks[0].id == "doc-0"
    assert chunks[0].offset == 0


def test_document_exactly_chunk_size_single_chunk():
    chunks = split(_doc("x" * 50), chunk_size=50, chunk_overlap=10)
    assert len(chunks) == 1
    assert chunks[0].content == "x" * 50


def test_empty_document_single_empty_chunk():
    chunks = split(_doc(""), chunk_size=10, chunk_overlap=0)
    assert len(chunks) == 1
    assert chunks[0].content == ""


def test_window_offsets_and_ids():
    content = "abcdefghijklmnopqrstuvwxyz"  # 26 chars
    chunks = split(_doc(content), chunk_size=10, chunk_overlap=3)
    assert [c.offset for c in chunks] == [0, 7, 14, 21]
    assert [c.id for c in chunks] == ["doc-0", "doc-7", "doc-14", "doc-21"]
    assert chunks[0].content == "abcdefghij"
    assert chunks[1].content == "hijklmnopq"
    assert chunks[-1].content == "vwxyz"  # clipped final window


def test_loop_stops_when_window_reaches_end():
    # 20 chars, size 10, overlap 5: windows at 0, 5, 10; the one at 10 ends at 20.
    chunks = split(_doc("y" * 20), chunk_size=10, chunk_overlap=5)
    assert [c.offset for c in chunks] == [0, 5, 10]
    assert len(chunks[-1].content) == 10


def test_zero_overlap_tiles_without_overlap():
    content = "0123456789" * 3
    chunks = split(_doc(content), chunk_size=10, chunk_overlap=0)
    assert [c.content for c in chunks] == ["0123456789"] * 3


@pytest.mark.parametrize(
    "length,size,overlap",
    [(101, 10, 0), (101, 10, 3), (1000, 64, 16), (37, 5, 4), (250, 100, 99)],
)
def test_lossless_coverage_and_chunk_count(length, size, overlap):
    content = "".join(chr(ord("a") + i % 26) for i in range(length))
    chunks = split(_doc(content), chunk_size=size, chunk_overlap=overlap)

    expected = math.ceil((length - overlap) / (size - overlap))
    assert len(chunks) == expected
    assert _reconstruct(chunks, size - overlap) == content
    assert all(len(c.content) <= size for c in chunks)


def test_chunks_are_substrings_at_their_offset():
    content = "The quick brown fox jumps over the lazy dog. " * 5
    for c in split(_doc(content), chunk_size=30, chunk_overlap=7):
        assert content[c.offset : c.offset + len(c.content)] == c.content


def test_ids_idempotent_across_runs():
    document = _doc("lorem ipsum dolor sit amet " * 20)
    first = [c.id for c in split(document, chunk_size=40, chunk_overlap=10)]
    second = [c.id for c in split(document, chunk_size=40, chunk_overlap=10)]
    assert first == second
    assert len(set(first)) == len(first)


def test_chunks_inherit_document_metadata():
    chunks = split(_doc("z" * 30, path="a.txt", tag="x"), chunk_size=10, chunk_overlap=0)
    assert all(c.metadata == {"path": "a.txt", "tag": "x"} for c in chunks)
    assert all(c.document_id == "doc" for c in chunks)


def test_chunk_metadata_is_independent_of_document():
    document = Document(id="doc", content="z" * 30, metadata={"tag": "x", "origin": {"site": "a"}})
    chunks = split(document, chunk_size=10, chunk_overlap=0)

    document.metadata["tag"] = "changed"
    document.metadata["origin"]["site"] = "b"

    assert all(c.metadata == {"tag": "x", "origin": {"site": "a"}} for c in chunks)
    assert chunks[0].metadata is not chunks[1].metadata


def test_chunks_not_embedded():
    chunks = split(_doc("text"), chunk_size=10, chunk_overlap=0)
    assert chunks[0].embedding is None


def test_whitespace_preserved():
    content = "  leading\n\ntrailing  "
    chunks = split(_doc(content), chunk_size=100, chunk_overlap=0)
    assert chunks[0].content == content


@pytest.mark.parametrize(
    "size,overlap",
    [(0, 0), (-5, 0), (10, 10), (10, 11), (10, -1)],
)
def test_invalid_parameters_rejected(size, overlap):
    with pytest.raises(ConfigurationError):
        split(_doc("abc"), chunk_size=size, chunk_overlap=overlap)


def test_overlap_equal_size_message():
    with pytest.raises(ConfigurationError, match="must be smaller than chunk_size"):
        PlainTextChunker(chunk_size=5, chunk_overlap=5)
