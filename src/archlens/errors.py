"""Error taxonomy for an analysis run.

Fatal errors abort the run and no report is produced. A per-file
``ParseError`` is the only recoverable failure: the pipeline turns it
into a ``ParseWarning`` entry on the report and moves on.
"""

from __future__ import annotations

from typing import Any


class ArchLensError(Exception):
    """Base class for every error raised by the analysis core."""


class ConfigurationError(ArchLensError):
    """Invalid or missing configuration field."""


class FileSystemError(ArchLensError):
    """The source tree cannot be read."""


class PathNotFound(FileSystemError):
    """Root path does not exist or is not a readable directory."""

    def __init__(self, path: Any):
        self.path = str(path)
        super().__init__(f"Not a directory: {self.path}")


class ParseError(ArchLensError):
    """A single file could not be structurally extracted."""

    def __init__(self, reason: str, line: int | None = None):
        self.reason = reason
        self.line = line
        if line is not None:
            super().__init__(f"{reason} (line {line})")
        else:
            super().__init__(reason)


class AnalysisTimeout(ArchLensError):
    """The run exceeded its deadline before every file was parsed."""

    def __init__(self, timeout_ms: int, warnings: list | None = None):
        self.timeout_ms = timeout_ms
        self.warnings = list(warnings or [])
        super().__init__(f"Analysis timed out after {timeout_ms}ms")


class AnalysisError(ArchLensError):
    """Unexpected failure in an aggregation stage."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"{stage} failed: {message}")
