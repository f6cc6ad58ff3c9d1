"""Tests for context assembly and the query engine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ragcore.errors import GenerationError
from ragcore.index.memory import InMemoryVectorIndex
from ragcore.models import Chunk, Document, GenerationResult, QueryOptions
from ragcore.rag.assembler import QueryEngine, build_context, render_prompt
from ragcore.rag.gateways import GenerationBackend
from ragcore.rag.retriever import Retriever


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _chunk(content: str, chunk_id: str = "c", **metadata) -> Chunk:
    return Chunk(id=chunk_id, document_id="doc", content=content, metadata=metadata)


def _engine(embeddings, generator, *docs: Document, **kwargs) -> QueryEngine:
    retriever = Retriever(embeddings, InMemoryVectorIndex())
    retriever.add_documents(docs)
    return QueryEngine(retriever, generator, **kwargs)


# ------------------------------------------------------------------
# build_context
# ------------------------------------------------------------------


def test_build_context_labels_chunks_in_order():
    context = build_context([_chunk("first"), _chunk("second")])
    assert context == "Context 1:\nfirst\n\nContext 2:\nsecond\n\n"


def test_build_context_empty():
    assert build_context([]) == ""


def test_build_context_with_metadata():
    chunk = _chunk("body", source="wiki", page=3, draft=False, extra=None)
    context = build_context([chunk], include_metadata=True)
    assert context == (
        "Context 1:\nbody\n\n"
        "Metadata:\n"
        "source: wiki\n"
        "page: 3\n"
        "draft: false\n"
        "extra: null\n"
        "\n"
    )


def test_build_context_nested_metadata_is_compact_json():
    chunk = _chunk("body", origin={"site": "x", "rank": 1})
    context = build_context([chunk], include_metadata=True)
    assert 'origin: {"site":"x","rank":1}\n' in context


def test_build_context_metadata_ignored_when_disabled():
    assert "Metadata" not in build_context([_chunk("body", source="wiki")])


def test_build_context_chunk_without_metadata_has_no_block():
    assert build_context([_chunk("body")], include_metadata=True) == "Context 1:\nbody\n\n"


# ------------------------------------------------------------------
# render_prompt
# ------------------------------------------------------------------


def test_render_prompt_replaces_every_occurrence():
    out = render_prompt("{{query}} / {{context}} / {{query}}", "CTX", "Q")
    assert out == "Q / CTX / Q"


def test_render_prompt_without_placeholders_is_unchanged():
    assert render_prompt("Just answer.", "CTX", "Q") == "Just answer."


def test_render_prompt_single_braces_untouched():
    assert render_prompt("{query} {{query}}", "", "Q") == "{query} Q"


# ------------------------------------------------------------------
# QueryEngine
# ------------------------------------------------------------------


def test_custom_template_exact_text(capital_embeddings, generator):
    engine = _engine(
        capital_embeddings,
        generator,
        Document(id="y", content="Y"),
        options=QueryOptions(num_documents=1, prompt_template="Q: {{query}} C: {{context}}"),
    )

    engine.answer("X")

    assert generator.requests[0].text == "Q: X C: Context 1:\nY\n\n"


def test_answer_returns_backend_result_unchanged(capital_embeddings):
    expected = GenerationResult(text="Paris.", model="m", prompt_tokens=9, completion_tokens=1)
    backend = MagicMock(spec=GenerationBackend)
    backend.generate.return_value = expected
    engine = _engine(capital_embeddings, backend, Document(id="fr", content="Paris France"))

    assert engine.answer("capital of france?") is expected
    backend.generate.assert_called_once()


def test_answer_empty_index_still_generates(capital_embeddings, generator):
    engine = _engine(
        capital_embeddings,
        generator,
        options=QueryOptions(prompt_template="[{{context}}] {{query}}"),
    )

    result = engine.answer("anything?")

    assert result.text == "stub answer"
    assert generator.requests[0].text == "[] anything?"


def test_per_call_options_override_defaults(capital_embeddings, generator):
    engine = _engine(
        capital_embeddings,
        generator,
        Document(id="fr", content="Paris France"),
        Document(id="de", content="Berlin Germany"),
        options=QueryOptions(num_documents=2),
    )

    assembled = engine.assemble("paris", QueryOptions(num_documents=1))

    assert [c.document_id for c in assembled.chunks] == ["fr"]
    assert "Context 2" not in assembled.request.text


def test_include_metadata_flows_into_prompt(capital_embeddings, generator):
    engine = _engine(
        capital_embeddings,
        generator,
        Document(id="fr", content="Paris France", metadata={"source": "atlas"}),
        options=QueryOptions(num_documents=1, include_metadata=True),
    )
    engine.answer("paris")
    assert "Metadata:\nsource: atlas\n" in generator.requests[0].text


def test_request_carries_generation_settings(capital_embeddings, generator):
    engine = _engine(
        capital_embeddings,
        generator,
        Document(id="fr", content="Paris"),
        system_message="Answer in one word.",
        temperature=0.1,
        max_tokens=32,
    )
    engine.answer("paris")
    request = generator.requests[0]
    assert request.system_message == "Answer in one word."
    assert request.temperature == 0.1
    assert request.max_tokens == 32


def test_generation_error_propagates(capital_embeddings):
    backend = MagicMock(spec=GenerationBackend)
    backend.generate.side_effect = GenerationError("model overloaded")
    engine = _engine(capital_embeddings, backend, Document(id="fr", content="Paris"))

    with pytest.raises(GenerationError, match="model overloaded"):
        engine.answer("paris")


def test_assemble_does_not_call_backend(capital_embeddings, generator):
    engine = _engine(capital_embeddings, generator, Document(id="fr", content="Paris"))
    assembled = engine.assemble("paris")
    assert generator.requests == []
    assert "Question: paris" in assembled.request.text
