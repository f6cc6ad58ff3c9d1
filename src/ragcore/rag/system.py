"""RagSystem: one object wiring loader, retriever, index, and query engine."""

from __future__ import annotations

from pathlib import Path

from ragcore.config import RagConfig
from ragcore.index.base import VectorIndex
from ragcore.index.memory import InMemoryVectorIndex
from ragcore.ingest.loader import load_document, load_documents
from ragcore.models import GenerationResult, QueryOptions
from ragcore.rag.assembler import AssembledPrompt, QueryEngine
from ragcore.rag.gateways import (
    EmbeddingGateway,
    GenerationBackend,
    HashingEmbeddings,
    LiteLLMEmbeddings,
    LiteLLMGenerator,
)
from ragcore.rag.retriever import Retriever


class RagSystem:
    """Convenience facade over Retriever + QueryEngine.

    Args:
        embeddings: Embedding gateway for documents and queries.
        generator: Generation backend for answers.
        index: Vector index; a fresh InMemoryVectorIndex when omitted.
        chunk_size: Default chunk size in characters.
        chunk_overlap: Default overlap in characters.
        options: Default query options.
    """

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        generator: GenerationBackend,
        index: VectorIndex | None = None,
        *,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        options: QueryOptions | None = None,
        system_message: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> None:
        self.index = index if index is not None else InMemoryVectorIndex()
        self.retriever = Retriever(
            embeddings, self.index, chunk_size=chunk_size, chunk_overlap=chunk_overlap
        )
        self.engine = QueryEngine(
            self.retriever,
            generator,
            options,
            system_message=system_message,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @classmethod
    def from_config(cls, config: RagConfig, *, offline: bool = False) -> RagSystem:
        """Build a system from *config*.

        With ``offline=True`` the embeddings come from HashingEmbeddings so
        ingestion and retrieval need no network access.
        """
        embeddings: EmbeddingGateway
        if offline:
            embeddings = HashingEmbeddings(dimensions=config.embedding.dimensions or 256)
        else:
            embeddings = LiteLLMEmbeddings(
                model=config.embedding.model, batch=config.embedding.batch
            )
        index = InMemoryVectorIndex(dimension=config.embedding.dimensions)
        return cls(
            embeddings,
            LiteLLMGenerator(model=config.generation.model),
            index,
            chunk_size=config.chunking.chunk_size,
            chunk_overlap=config.chunking.chunk_overlap,
            options=config.query.to_options(),
            system_message=config.generation.system_message,
            temperature=config.generation.temperature,
            max_tokens=config.generation.max_tokens,
        )

    @property
    def options(self) -> QueryOptions:
        return self.engine.options

    def set_query_options(self, options: QueryOptions) -> None:
        self.engine.options = options

    def add_file(self, path: str | Path) -> list[str]:
        """Load one file and index it. Returns the chunk ids."""
        return self.retriever.add_document(load_document(path))

    def add_directory(
        self,
        path: str | Path,
        *,
        recursive: bool = False,
        exclude: list[str] | None = None,
    ) -> list[str]:
        """Load every file under *path* and index them. Returns committed document ids."""
        documents = load_documents(path, recursive=recursive, exclude=exclude)
        return self.retriever.add_documents(documents)

    def assemble(self, query_text: str) -> AssembledPrompt:
        return self.engine.assemble(query_text)

    def query(self, query_text: str) -> GenerationResult:
        return self.engine.answer(query_text)
