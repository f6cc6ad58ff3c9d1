"""Context assembler and query engine.

Pipeline for ``QueryEngine.answer()``:
  1. Retrieve ``options.num_documents`` chunks for the query.
  2. Build the context block, one labelled section per chunk in rank order:
       Context {i}:\\n{content}\\n\\n
     followed, with include_metadata, by ``Metadata:`` and one
     ``key: value`` line per entry.
  3. Replace every ``{{context}}`` and ``{{query}}`` in the prompt template.
  4. Send the text to the generation backend once and return its result.

No retrieved chunks is not an error: the context block is simply empty.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ragcore.models import (
    Chunk,
    GenerationRequest,
    GenerationResult,
    QueryOptions,
    format_metadata_value,
)
from ragcore.rag.gateways import GenerationBackend
from ragcore.rag.retriever import Retriever

logger = logging.getLogger(__name__)

CONTEXT_PLACEHOLDER = "{{context}}"
QUERY_PLACEHOLDER = "{{query}}"


def build_context(chunks: Sequence[Chunk], include_metadata: bool = False) -> str:
    """Concatenate *chunks* into labelled ``Context {i}:`` blocks (1-indexed)."""
    parts: list[str] = []
    for i, chunk in enumerate(chunks, start=1):
        parts.append(f"Context {i}:\n{chunk.content}\n\n")
        if include_metadata and chunk.metadata:
            parts.append("Metadata:\n")
            for key, value in chunk.metadata.items():
                parts.append(f"{key}: {format_metadata_value(value)}\n")
            parts.append("\n")
    return "".join(parts)


def render_prompt(template: str, context: str, query: str) -> str:
    """Replace every ``{{context}}`` and ``{{query}}`` in *template*.

    Context is substituted first, then the query; a literal ``{{query}}``
    inside retrieved text is therefore replaced as well.
    """
    return template.replace(CONTEXT_PLACEHOLDER, context).replace(QUERY_PLACEHOLDER, query)


@dataclass
class AssembledPrompt:
    """The generation request plus the chunks that produced it."""

    request: GenerationRequest
    chunks: list[Chunk]


class QueryEngine:
    """Answer queries with retrieved context.

    Args:
        retriever: Retrieval orchestrator holding the indexed chunks.
        generator: Generation backend for the final completion.
        options: Default QueryOptions; ``answer()`` may override per call.
        system_message: Optional system message attached to every request.
        temperature: Sampling temperature for the request.
        max_tokens: Completion token limit for the request.
    """

    def __init__(
        self,
        retriever: Retriever,
        generator: GenerationBackend,
        options: QueryOptions | None = None,
        *,
        system_message: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> None:
        self.retriever = retriever
        self.generator = generator
        self.options = options or QueryOptions()
        self.system_message = system_message
        self.temperature = temperature
        self.max_tokens = max_tokens

    def assemble(self, query_text: str, options: QueryOptions | None = None) -> AssembledPrompt:
        """Retrieve and build the generation request without calling the backend."""
        opts = options or self.options
        chunks = self.retriever.retrieve(query_text, opts.num_documents)
        if not chunks:
            logger.info("No chunks retrieved; answering without context")

        context = build_context(chunks, include_metadata=opts.include_metadata)
        request = GenerationRequest(
            text=render_prompt(opts.prompt_template, context, query_text),
            system_message=self.system_message,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return AssembledPrompt(request=request, chunks=chunks)

    def answer(self, query_text: str, options: QueryOptions | None = None) -> GenerationResult:
        """Retrieve, assemble, and generate. The backend's result is returned as is."""
        assembled = self.assemble(query_text, options)
        logger.debug(
            "Generating with %d context chunk(s), prompt %d chars",
            len(assembled.chunks),
            len(assembled.request.text),
        )
        return self.generator.generate(assembled.request)
