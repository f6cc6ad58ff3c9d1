"""File loader: read text files from disk into Documents.

  file       -> one Document (id = file name)
  directory  -> one Document per regular file, sorted by path
                (subdirectories only with recursive=True, max 10 levels;
                id = path relative to the directory, "/" separated)
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from ragcore.errors import ConfigurationError
from ragcore.models import Document

logger = logging.getLogger(__name__)

_MAX_DEPTH = 10


def load_document(
    source: str | Path,
    base_path: str | Path | None = None,
    *,
    doc_id: str | None = None,
) -> Document:
    """Read *source* as UTF-8 text and return it as a Document.

    Relative paths resolve against *base_path* (default: CWD). The id is
    *doc_id* when given, otherwise the file name.

    Raises:
        ConfigurationError: If the file cannot be read or decoded.
    """
    path = _resolve(source, base_path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot read document '{path}': {exc}", context={"path": str(path)}
        ) from exc

    return Document(
        id=doc_id or path.name,
        content=content,
        metadata={"path": str(path), "type": "file"},
    )


def load_documents(
    source: str | Path,
    base_path: str | Path | None = None,
    *,
    recursive: bool = False,
    exclude: list[str] | None = None,
) -> list[Document]:
    """Load a single file or every file in a directory.

    Args:
        source: File or directory path.
        base_path: Base for relative paths.
        recursive: Descend into subdirectories.
        exclude: Glob patterns matched against file names; matches are skipped.

    Raises:
        ConfigurationError: If *source* does not exist or a file cannot be read.
    """
    path = _resolve(source, base_path)
    if not path.exists():
        raise ConfigurationError(f"Path not found: '{path}'", context={"path": str(path)})

    if path.is_file():
        return [load_document(path)]

    files = _collect_files(path, recursive=recursive, exclude=exclude or [], depth=0)
    logger.debug("Found %d file(s) under %s", len(files), path)
    return [load_document(f, doc_id=f.relative_to(path).as_posix()) for f in files]


def _resolve(source: str | Path, base_path: str | Path | None) -> Path:
    path = Path(source)
    if not path.is_absolute() and base_path is not None:
        path = Path(base_path) / path
    return path


def _collect_files(
    directory: Path, recursive: bool, exclude: list[str], depth: int
) -> list[Path]:
    files: list[Path] = []
    for entry in sorted(directory.iterdir()):
        if any(fnmatch.fnmatch(entry.name, pat) for pat in exclude):
            continue
        if entry.is_dir():
            if recursive and depth < _MAX_DEPTH:
                files.extend(_collect_files(entry, recursive, exclude, depth + 1))
        elif entry.is_file():
            files.append(entry)
    return files
