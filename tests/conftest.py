"""Shared pytest fixtures."""

from __future__ import annotations

import re

import pytest

from ragcore.models import GenerationRequest, GenerationResult
from ragcore.rag.gateways import EmbeddingGateway, GenerationBackend


class KeywordEmbeddings(EmbeddingGateway):
    """Counts of fixed keywords plus a constant bias component.

    Deterministic and easy to reason about: texts mentioning the same
    keywords get similar vectors.
    """

    def __init__(self, keywords: list[str]) -> None:
        self.keywords = keywords
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    def _vector(self, text: str) -> list[float]:
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(k)) for k in self.keywords] + [0.1]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self._vector(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self._vector(t) for t in texts]


class RecordingGenerator(GenerationBackend):
    """Generation backend that records requests and echoes a fixed answer."""

    def __init__(self, answer: str = "stub answer") -> None:
        self.answer = answer
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        return GenerationResult(text=self.answer, model="stub", prompt_tokens=5, completion_tokens=2)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """No global config, no RAGCORE_* env vars, CWD in tmp_path."""
    monkeypatch.setattr(
        "ragcore.config._GLOBAL_CONFIG_PATH", tmp_path / "no-home" / "config.yaml"
    )
    for var in ("RAGCORE_EMBEDDING_MODEL", "RAGCORE_GENERATION_MODEL", "RAGCORE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def capital_embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings(["france", "paris", "germany", "berlin"])


@pytest.fixture
def generator() -> RecordingGenerator:
    return RecordingGenerator()
