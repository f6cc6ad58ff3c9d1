"""Embedding gateway and generation backend interfaces, plus their adapters.

  EmbeddingGateway   embed_query(text) / embed_documents(texts)
  GenerationBackend  generate(request) -> GenerationResult

Adapters:
  LiteLLMEmbeddings  provider embeddings via litellm.embedding()
  LiteLLMGenerator   single-shot completion via litellm.completion()
  HashingEmbeddings  deterministic offline embeddings (feature hashing)
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
from abc import ABC, abstractmethod

from ragcore.errors import ConfigurationError, EmbeddingError, GenerationError
from ragcore.models import GenerationRequest, GenerationResult
from ragcore.rag import llm_client

logger = logging.getLogger(__name__)


class EmbeddingGateway(ABC):
    """Turns text into fixed-dimension vectors.

    Both methods must return vectors of the same width for one instance.
    Implementations raise EmbeddingError on failure.
    """

    @abstractmethod
    def embed_query(self, text: str) -> list[float]: ...

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...


class GenerationBackend(ABC):
    """Turns an assembled prompt into a completion (single-shot, no streaming)."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GenerationResult: ...


# ------------------------------------------------------------------
# LiteLLM adapters
# ------------------------------------------------------------------


class LiteLLMEmbeddings(EmbeddingGateway):
    """Embeddings from any LiteLLM-supported provider.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        batch: Send all texts of ``embed_documents()`` in one request.
        num_retries: Passed to LiteLLM; the core itself never retries.
    """

    def __init__(
        self,
        model: str = "openai/text-embedding-3-small",
        batch: bool = True,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.batch = batch
        self.num_retries = num_retries

    def embed_query(self, text: str) -> list[float]:
        return self._embed([text])[0]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        if self.batch:
            return self._embed(texts)
        return [self._embed([t])[0] for t in texts]

    def _embed(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = llm_client.embed(self.model, texts, num_retries=self.num_retries)
        except Exception as exc:
            logger.warning("Embedding call to %s failed: %s", self.model, exc)
            raise EmbeddingError(
                f"Embedding call to '{self.model}' failed: {exc}",
                text=texts[0] if len(texts) == 1 else None,
                context={"model": self.model, "count": len(texts)},
            ) from exc

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding model '{self.model}' returned {len(vectors)} vector(s) "
                f"for {len(texts)} text(s).",
                context={"model": self.model},
            )
        return vectors


class LiteLLMGenerator(GenerationBackend):
    """Single-shot completion through LiteLLM.

    The request's ``system_message`` wins over the generator's default one.
    """

    def __init__(
        self,
        model: str = "openai/gpt-4o-mini",
        system_message: str | None = None,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.system_message = system_message
        self.num_retries = num_retries

    def generate(self, request: GenerationRequest) -> GenerationResult:
        messages: list[dict] = []
        system = request.system_message or self.system_message
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": request.text})

        try:
            response = llm_client.complete(
                self.model,
                messages,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                num_retries=self.num_retries,
            )
        except Exception as exc:
            logger.warning("Generation call to %s failed: %s", self.model, exc)
            raise GenerationError(
                f"Generation call to '{self.model}' failed: {exc}",
                context={"model": self.model},
            ) from exc

        usage = getattr(response, "usage", None)
        return GenerationResult(
            text=response.choices[0].message.content or "",
            model=getattr(response, "model", None) or self.model,
            prompt_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            completion_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
        )


# ------------------------------------------------------------------
# Offline embeddings
# ------------------------------------------------------------------

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class HashingEmbeddings(EmbeddingGateway):
    """Deterministic bag-of-words embeddings, no network access.

    Each lower-cased alphanumeric token is hashed (md5) to a bucket and a
    sign; the vector is L2-normalised. Texts sharing words point in similar
    directions, which is enough for offline runs and tests.
    """

    def __init__(self, dimensions: int = 256) -> None:
        if dimensions < 1:
            raise ConfigurationError(f"dimensions must be >= 1, got {dimensions}")
        self.dimensions = dimensions

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "little") % self.dimensions
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            return vector
        return [v / norm for v in vector]
