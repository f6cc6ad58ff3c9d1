"""Tests for the embedding and generation adapters."""

from __future__ import annotations

import math
from unittest.mock import MagicMock, patch

import pytest

from ragcore.errors import ConfigurationError, EmbeddingError, GenerationError
from ragcore.models import GenerationRequest
from ragcore.rag.gateways import HashingEmbeddings, LiteLLMEmbeddings, LiteLLMGenerator


def _embedding_response(vectors: list[list[float]]) -> MagicMock:
    response = MagicMock()
    response.data = [{"embedding": v} for v in vectors]
    return response


# ------------------------------------------------------------------
# LiteLLMEmbeddings
# ------------------------------------------------------------------


def test_embed_query_single_input():
    with patch(
        "ragcore.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[1.0, 2.0]]),
    ) as mock_e:
        vector = LiteLLMEmbeddings(model="openai/text-embedding-3-small").embed_query("hi")

    assert vector == [1.0, 2.0]
    assert mock_e.call_args.kwargs["input"] == ["hi"]
    assert mock_e.call_args.kwargs["model"] == "openai/text-embedding-3-small"


def test_embed_documents_batched_in_one_call():
    with patch(
        "ragcore.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[1.0], [2.0], [3.0]]),
    ) as mock_e:
        vectors = LiteLLMEmbeddings(batch=True).embed_documents(["a", "b", "c"])

    assert vectors == [[1.0], [2.0], [3.0]]
    assert mock_e.call_count == 1


def test_embed_documents_unbatched_one_call_per_text():
    with patch(
        "ragcore.rag.llm_client.litellm.embedding",
        side_effect=[_embedding_response([[1.0]]), _embedding_response([[2.0]])],
    ) as mock_e:
        vectors = LiteLLMEmbeddings(batch=False).embed_documents(["a", "b"])

    assert vectors == [[1.0], [2.0]]
    assert mock_e.call_count == 2


def test_embed_documents_empty_list_no_call():
    with patch("ragcore.rag.llm_client.litellm.embedding") as mock_e:
        assert LiteLLMEmbeddings().embed_documents([]) == []
    mock_e.assert_not_called()


def test_embed_provider_failure_becomes_embedding_error():
    with patch(
        "ragcore.rag.llm_client.litellm.embedding", side_effect=RuntimeError("rate limited")
    ):
        with pytest.raises(EmbeddingError, match="rate limited") as excinfo:
            LiteLLMEmbeddings().embed_query("what?")

    assert excinfo.value.text == "what?"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_embed_count_mismatch_raises():
    with patch(
        "ragcore.rag.llm_client.litellm.embedding",
        return_value=_embedding_response([[1.0]]),
    ):
        with pytest.raises(EmbeddingError, match="returned 1 vector"):
            LiteLLMEmbeddings().embed_documents(["a", "b"])


# ------------------------------------------------------------------
# LiteLLMGenerator
# ------------------------------------------------------------------


def test_generate_returns_result_with_usage():
    response = MagicMock()
    response.choices[0].message.content = "Paris."
    response.model = "gpt-4o-mini"
    response.usage.prompt_tokens = 12
    response.usage.completion_tokens = 3

    with patch("ragcore.rag.llm_client.litellm.completion", return_value=response) as mock_c:
        result = LiteLLMGenerator(model="openai/gpt-4o-mini").generate(
            GenerationRequest(text="Question?", temperature=0.2, max_tokens=50)
        )

    assert result.text == "Paris."
    assert result.total_tokens == 15
    kwargs = mock_c.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "Question?"}]
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 50


def test_generate_includes_system_message():
    response = MagicMock()
    response.choices[0].message.content = "ok"

    with patch("ragcore.rag.llm_client.litellm.completion", return_value=response) as mock_c:
        LiteLLMGenerator(system_message="Be brief.").generate(GenerationRequest(text="Q"))

    messages = mock_c.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": "Be brief."}


def test_generate_none_content_is_empty_string():
    response = MagicMock()
    response.choices[0].message.content = None

    with patch("ragcore.rag.llm_client.litellm.completion", return_value=response):
        result = LiteLLMGenerator().generate(GenerationRequest(text="Q"))

    assert result.text == ""


def test_generate_failure_becomes_generation_error():
    with patch(
        "ragcore.rag.llm_client.litellm.completion", side_effect=RuntimeError("boom")
    ):
        with pytest.raises(GenerationError, match="boom"):
            LiteLLMGenerator().generate(GenerationRequest(text="Q"))


# ------------------------------------------------------------------
# HashingEmbeddings
# ------------------------------------------------------------------


def test_hashing_embeddings_deterministic_and_normalised():
    gateway = HashingEmbeddings(dimensions=64)
    a = gateway.embed_query("The capital of France is Paris.")
    b = gateway.embed_documents(["The capital of France is Paris."])[0]
    assert a == b
    assert len(a) == 64
    assert math.sqrt(sum(v * v for v in a)) == pytest.approx(1.0)


def test_hashing_embeddings_empty_text_is_zero_vector():
    assert HashingEmbeddings(dimensions=8).embed_query("  ...  ") == [0.0] * 8


def test_hashing_embeddings_invalid_dimensions():
    with pytest.raises(ConfigurationError):
        HashingEmbeddings(dimensions=0)
