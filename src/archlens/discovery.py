"""File discovery: source files under a root, filtered by include/exclude globs."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from .config import AnalysisConfig
from .errors import FileSystemError, PathNotFound
from .lexer import CSHARP, JAVA
from .logging_config import get_logger
from .models import SourceFile

logger = get_logger(__name__)

DIALECT_BY_EXTENSION = {
    ".cs": CSHARP,
    ".java": JAVA,
}


def dialect_for(path: str) -> str | None:
    """Dialect tag for a file name, or None if the extractor cannot read it."""
    return DIALECT_BY_EXTENSION.get(PurePosixPath(path).suffix.lower())


def _dir_patterns(patterns: list[str]) -> list[str]:
    return [p.rstrip("/") for p in patterns if p.endswith("/")]


def _file_patterns(patterns: list[str]) -> list[str]:
    return [p for p in patterns if not p.endswith("/")]


def _matches(rel_path: str, pattern: str) -> bool:
    """Glob match against a relative POSIX path.

    ``*`` crosses directory separators, a leading ``**/`` also matches
    at the root, and a pattern without a slash matches the basename.
    """
    if fnmatchcase(rel_path, pattern):
        return True
    if pattern.startswith("**/") and fnmatchcase(rel_path, pattern[3:]):
        return True
    return "/" not in pattern and fnmatchcase(PurePosixPath(rel_path).name, pattern)


def _segment_matches(parts: tuple[str, ...], dir_patterns: list[str]) -> bool:
    return any(fnmatchcase(part, pat) for part in parts for pat in dir_patterns)


def is_included(rel_path: str, config: AnalysisConfig) -> bool:
    """Whether a relative POSIX path passes the include and exclude globs."""
    parts = PurePosixPath(rel_path).parts
    if _segment_matches(parts[:-1], _dir_patterns(config.exclude_globs)):
        return False
    if any(_matches(rel_path, p) for p in _file_patterns(config.exclude_globs)):
        return False

    include_dirs = _dir_patterns(config.include_globs)
    if include_dirs and _segment_matches(parts[:-1], include_dirs):
        return True
    return any(_matches(rel_path, p) for p in _file_patterns(config.include_globs))


def discover_files(config: AnalysisConfig) -> list[str]:
    """Enumerate files under ``config.root_path``.

    Returns sorted, deduplicated POSIX paths relative to the root. An
    empty list is a valid result.

    Raises:
        PathNotFound: root does not exist or is not a directory
        FileSystemError: root cannot be listed
    """
    root = Path(config.root_path)
    if not root.is_dir():
        raise PathNotFound(str(root))
    if not os.access(root, os.R_OK | os.X_OK):
        raise FileSystemError(f"Cannot read directory: {root}")

    excluded_dirs = _dir_patterns(config.exclude_globs)
    found: set[str] = set()

    for dirpath, dirnames, filenames in os.walk(root):
        # Prune excluded directories before descending
        kept = []
        for d in dirnames:
            if any(fnmatchcase(d, pat) for pat in excluded_dirs):
                logger.debug("Skipping directory %s", os.path.join(dirpath, d))
            else:
                kept.append(d)
        dirnames[:] = sorted(kept)

        rel_dir = os.path.relpath(dirpath, root)
        for fname in filenames:
            rel = fname if rel_dir == "." else f"{rel_dir}/{fname}"
            rel = rel.replace(os.sep, "/")
            if is_included(rel, config):
                found.add(rel)
            else:
                logger.debug("Skipping file %s", rel)

    return sorted(found)


def read_source(root: str | Path, relative_path: str) -> SourceFile:
    """Read one discovered file. Undecodable bytes are replaced."""
    path = Path(root) / relative_path
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    return SourceFile(
        path=str(path),
        relative_path=relative_path,
        text=text,
        dialect=dialect_for(relative_path) or "",
    )
