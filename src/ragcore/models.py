"""Domain models for the RAG core."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Union

from ragcore.errors import ConfigurationError

# Closed set of metadata value types; nested mappings use the same set.
MetadataValue = Union[str, int, float, bool, None, Mapping[str, "MetadataValue"]]
Metadata = dict[str, MetadataValue]

DEFAULT_PROMPT_TEMPLATE = (
    "Answer the question based on the following context:\n\n"
    "{{context}}\n\n"
    "Question: {{query}}"
)


def validate_metadata(metadata: Mapping[str, object], path: str = "") -> None:
    """Raise ConfigurationError if *metadata* holds a value outside the closed set."""
    for key, value in metadata.items():
        full = f"{path}.{key}" if path else str(key)
        if not isinstance(key, str):
            raise ConfigurationError(f"Metadata key '{full}' must be a string.")
        if isinstance(value, Mapping):
            validate_metadata(value, full)
        elif value is not None and not isinstance(value, (str, int, float, bool)):
            raise ConfigurationError(
                f"Metadata value for '{full}' has unsupported type "
                f"{type(value).__name__}; use str, int, float, bool, None or a mapping."
            )


def format_metadata_value(value: MetadataValue) -> str:
    """Render a metadata value for the context block, deterministically."""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(value)


@dataclass
class Document:
    id: str
    content: str
    metadata: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_metadata(self.metadata)


@dataclass(frozen=True)
class Chunk:
    """A retrievable fragment of a Document.

    Frozen: the embedding is fixed once a chunk instance carries one.
    ``with_embedding()`` returns an embedded copy.
    """

    id: str
    document_id: str
    content: str
    offset: int = 0
    metadata: Metadata = field(default_factory=dict)
    embedding: tuple[float, ...] | None = None

    @property
    def dimension(self) -> int | None:
        return None if self.embedding is None else len(self.embedding)

    def with_embedding(self, vector: list[float] | tuple[float, ...]) -> Chunk:
        if self.embedding is not None:
            raise ValueError(f"Chunk '{self.id}' is already embedded.")
        return replace(self, embedding=tuple(float(v) for v in vector))


@dataclass(frozen=True)
class ScoredChunk:
    """A retrieved chunk together with its cosine similarity to the query."""

    chunk: Chunk
    score: float


@dataclass
class QueryOptions:
    """Options for one retrieve + assemble + generate call.

    Attributes:
        num_documents: Top-K count, must be >= 1.
        include_metadata: Serialize each chunk's metadata into the context.
        prompt_template: Text with ``{{context}}`` and ``{{query}}`` placeholders.
    """

    num_documents: int = 3
    include_metadata: bool = False
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE

    def __post_init__(self) -> None:
        if self.num_documents < 1:
            raise ConfigurationError(
                f"num_documents must be >= 1, got {self.num_documents}"
            )
        if not self.prompt_template:
            raise ConfigurationError("prompt_template must not be empty")


@dataclass
class GenerationRequest:
    text: str
    system_message: str | None = None
    temperature: float = 0.7
    max_tokens: int = 1024


@dataclass
class GenerationResult:
    text: str
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens
