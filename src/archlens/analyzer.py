"""Architecture analyzer - the analysis pipeline.

Discovery, then per-file extraction on a bounded thread pool (each task
writes only its own result slot), then a join, then the whole-program
stages run single-threaded over the merged class list: layers, data
flow, patterns, dependencies, metrics, debt. The report is assembled
in a fixed order so identical input gives byte-identical output.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Sequence

from .config import AnalysisConfig
from .debt import identify_debt
from .discovery import dialect_for, discover_files, read_source
from .errors import AnalysisError, AnalysisTimeout, ArchLensError, ParseError
from .extractor import extract_classes
from .graph import ClassIndex, build_dependencies, map_data_flow
from .layers import classify_classes, group_layers
from .logging_config import LogContext, get_logger
from .metrics import compute_metrics
from .models import AnalysisReport, ClassModel, ParseWarning
from .patterns import detect_patterns

logger = get_logger(__name__)


@dataclass
class FileResult:
    """Outcome of parsing one file."""

    relative_path: str
    classes: list[ClassModel] = field(default_factory=list)
    warning: ParseWarning | None = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def parse_file(root: str | Path, relative_path: str, cancel: threading.Event | None = None) -> FileResult | None:
    """Read and extract one file. Returns None if the run was cancelled first.

    Parse and read failures come back as a warning, never as an exception.
    """
    if cancel is not None and cancel.is_set():
        return None

    if dialect_for(relative_path) is None:
        logger.warning("Skipping %s: unsupported file type", relative_path)
        return FileResult(relative_path, warning=ParseWarning(relative_path, "unsupported file type"))

    try:
        source = read_source(root, relative_path)
        classes = extract_classes(source)
    except ParseError as e:
        logger.warning("Skipping %s: %s", relative_path, e)
        return FileResult(relative_path, warning=ParseWarning(relative_path, str(e)))
    except OSError as e:
        logger.warning("Skipping %s: %s", relative_path, e)
        return FileResult(relative_path, warning=ParseWarning(relative_path, f"unreadable: {e.strerror or e}"))

    logger.debug("Parsed %s: %d types", relative_path, len(classes))
    return FileResult(relative_path, classes)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


def parse_files(config: AnalysisConfig, files: Sequence[str], deadline: float | None = None) -> list[FileResult]:
    """Parse ``files`` on a worker pool; results are in ``files`` order.

    Raises:
        AnalysisTimeout: the deadline passed before every file was parsed
    """
    results: list[FileResult | None] = [None] * len(files)
    if not files:
        return []

    cancel = threading.Event()
    executor = ThreadPoolExecutor(max_workers=config.worker_count, thread_name_prefix="archlens")
    timed_out = False
    try:
        futures = {
            executor.submit(parse_file, config.root_path, rel, cancel): idx
            for idx, rel in enumerate(files)
        }
        done, not_done = wait(futures, timeout=_remaining(deadline))

        if not_done:
            timed_out = True
            cancel.set()
            warnings = []
            for fut in done:
                if fut.exception() is not None:
                    continue
                result = fut.result()
                if result is not None and result.warning is not None:
                    warnings.append(result.warning)
            warnings.sort(key=lambda w: w.file)
            logger.error("Timed out with %d of %d files parsed", len(done), len(files))
            raise AnalysisTimeout(config.analysis_timeout_ms or 0, warnings)

        for fut, idx in futures.items():
            try:
                results[idx] = fut.result()
            except Exception as e:
                raise AnalysisError("parse", f"{files[idx]}: {e}") from e
    finally:
        executor.shutdown(wait=not timed_out, cancel_futures=True)

    return [r for r in results if r is not None]


def _stage(name: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Run an aggregation stage; unexpected failures become AnalysisError."""
    try:
        return fn(*args)
    except ArchLensError:
        raise
    except Exception as e:
        raise AnalysisError(name, str(e)) from e


def compose_report(
    config: AnalysisConfig,
    classes: Sequence[ClassModel],
    warnings: Sequence[ParseWarning] = (),
    total_files: int = 0,
) -> AnalysisReport:
    """Run every whole-program stage over the merged classes and build the report."""
    classifications = _stage("layer classification", classify_classes, classes, config)
    index = _stage("class index", ClassIndex, classes, classifications)

    data_flow = _stage("data flow", map_data_flow, index, config)
    patterns = _stage("pattern detection", detect_patterns, index, data_flow, config) if config.include_patterns else ()
    dependencies = _stage("dependencies", build_dependencies, index, config) if config.include_dependencies else ()
    metrics = _stage("metrics", compute_metrics, classes)
    debt = _stage("technical debt", identify_debt, classes, config)

    return AnalysisReport(
        root_path=str(config.root_path),
        total_files=total_files,
        layers=_stage("layer grouping", group_layers, classes, classifications),
        patterns=patterns,
        dependencies=dependencies,
        data_flow=data_flow if config.include_data_flow else (),
        metrics=metrics,
        technical_debt=debt,
        warnings=tuple(sorted(warnings, key=lambda w: (w.file, w.reason))),
    )


def analyze_codebase(config: AnalysisConfig) -> AnalysisReport:
    """Run full architecture analysis on a source tree.

    Raises:
        ConfigurationError: invalid configuration (before any file I/O)
        PathNotFound / FileSystemError: root cannot be read
        AnalysisTimeout: ``analysis_timeout_ms`` passed during parsing
        AnalysisError: unexpected failure in an aggregation stage
    """
    config.validate()
    started = time.monotonic()
    deadline = None
    if config.analysis_timeout_ms is not None:
        deadline = started + config.analysis_timeout_ms / 1000

    with LogContext(logger, f"Discovering files under {config.root_path}"):
        files = discover_files(config)
    logger.info("Found %d source files", len(files))

    if deadline is not None and time.monotonic() >= deadline:
        raise AnalysisTimeout(config.analysis_timeout_ms, [])

    with LogContext(logger, f"Parsing with {config.worker_count} workers"):
        results = parse_files(config, files, deadline)

    classes: list[ClassModel] = []
    warnings: list[ParseWarning] = []
    parsed = 0
    for result in results:
        if result.ok:
            parsed += 1
            classes.extend(result.classes)
        else:
            warnings.append(result.warning)
    logger.info("Extracted %d types from %d files (%d skipped)", len(classes), parsed, len(warnings))

    with LogContext(logger, "Aggregating"):
        report = compose_report(config, classes, warnings, total_files=parsed)

    logger.info("Analysis finished in %.2fs", time.monotonic() - started)
    return report
