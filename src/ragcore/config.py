"""ragcore configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (RAGCORE_EMBEDDING_MODEL, RAGCORE_GENERATION_MODEL,
                             RAGCORE_LOG_LEVEL)
  3. Per-project ragcore.yaml  (current working directory)
  4. Global ~/.ragcore/config.yaml  (model defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ragcore.errors import ConfigurationError
from ragcore.ingest.base import validate_chunking
from ragcore.models import DEFAULT_PROMPT_TEMPLATE, QueryOptions

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".ragcore"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "ragcore.yaml"

# Key names that suggest a credential, forbidden in global config.
# Does NOT match legitimate keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "chunking", "query", "logging"]
)

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding gateway configuration (ragcore.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Fix the index dimension up front; None lets the first
            insert decide.
        batch: Embed all chunks of a document in one request.
    """

    model: str = "openai/text-embedding-3-small"
    dimensions: int | None = None
    batch: bool = True


@dataclass
class GenerationCfg:
    """Generation backend configuration (ragcore.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.7
    system_message: str | None = None


@dataclass
class ChunkingCfg:
    """Character window size and overlap (ragcore.yaml: chunking:)."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass
class QueryCfg:
    """Default query options (ragcore.yaml: query:)."""

    num_documents: int = 3
    include_metadata: bool = False
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE

    def to_options(self) -> QueryOptions:
        return QueryOptions(
            num_documents=self.num_documents,
            include_metadata=self.include_metadata,
            prompt_template=self.prompt_template,
        )


@dataclass
class LoggingCfg:
    level: str = "WARNING"


@dataclass
class RagConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    query: QueryCfg = field(default_factory=QueryCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigurationError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigurationError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>",
                        context={"key": full, "path": str(source)},
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Config file '{path}' is not valid YAML: {exc}", context={"path": str(path)}
        ) from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Config file '{path}' must contain a mapping at the top level.",
            context={"path": str(path)},
        )
    return raw


def _validate(cfg: RagConfig) -> None:
    validate_chunking(cfg.chunking.chunk_size, cfg.chunking.chunk_overlap)
    cfg.query.to_options()  # raises on num_documents < 1 / empty template
    if cfg.embedding.dimensions is not None and cfg.embedding.dimensions < 1:
        raise ConfigurationError(
            f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}"
        )
    if cfg.logging.level.upper() not in _LOG_LEVELS:
        raise ConfigurationError(
            f"logging.level must be one of {sorted(_LOG_LEVELS)}, got '{cfg.logging.level}'"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> RagConfig:
    """Build a *RagConfig* from a merged raw YAML dict."""
    cfg = RagConfig()

    try:
        if "embedding" in data:
            e = data["embedding"] or {}
            dims = e.get("dimensions", cfg.embedding.dimensions)
            cfg.embedding = EmbeddingCfg(
                model=str(e.get("model", cfg.embedding.model)),
                dimensions=int(dims) if dims is not None else None,
                batch=bool(e.get("batch", cfg.embedding.batch)),
            )

        if "generation" in data:
            g = data["generation"] or {}
            cfg.generation = GenerationCfg(
                model=str(g.get("model", cfg.generation.model)),
                max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
                temperature=float(g.get("temperature", cfg.generation.temperature)),
                system_message=g.get("system_message") or cfg.generation.system_message,
            )

        if "chunking" in data:
            c = data["chunking"] or {}
            cfg.chunking = ChunkingCfg(
                chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
                chunk_overlap=int(c.get("chunk_overlap", cfg.chunking.chunk_overlap)),
            )

        if "query" in data:
            q = data["query"] or {}
            cfg.query = QueryCfg(
                num_documents=int(q.get("num_documents", cfg.query.num_documents)),
                include_metadata=bool(q.get("include_metadata", cfg.query.include_metadata)),
                prompt_template=str(q.get("prompt_template", cfg.query.prompt_template)),
            )

        if "logging" in data:
            lg = data["logging"] or {}
            cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: RagConfig) -> RagConfig:
    """Apply RAGCORE_* environment variable overrides."""
    if model := os.environ.get("RAGCORE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("RAGCORE_GENERATION_MODEL"):
        cfg.generation.model = model
    if level := os.environ.get("RAGCORE_LOG_LEVEL"):
        cfg.logging.level = level
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RagConfig:
    """Load and return a merged *RagConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *ragcore.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigurationError: If global config contains API-key-like fields, a
            file is not a YAML mapping, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.ragcore/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# ragcore global configuration: model defaults only.\n"
            "# NEVER store API keys here, use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o-mini\n"
            "\n"
            "chunking:\n"
            "  chunk_size: 1000\n"
            "  chunk_overlap: 200\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
