"""Analysis configuration.

Every heuristic threshold and naming convention the engine uses lives
here with its default. Nothing in the classification code hardcodes a
domain name: integration keywords in particular are always supplied by
the application being analyzed.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models import ApplicationInfo

DEFAULT_INCLUDE_GLOBS = ["**/*.cs", "**/*.java"]
DEFAULT_EXCLUDE_GLOBS = [
    "bin/", "obj/", "packages/", "node_modules/", ".git/", ".vs/",
    "target/", "build/",
    "test/", "tests/", "*.Tests/", "*.Test/", "*Tests/",
    "*Tests.cs", "*Test.cs", "*Tests.java", "*Test.java",
]
DEFAULT_PRESENTATION_SUFFIXES = ["Controller"]
DEFAULT_SERVICE_SUFFIXES = ["Service"]
DEFAULT_REPOSITORY_SUFFIXES = ["Repository"]
DEFAULT_INFRASTRUCTURE_SUFFIXES = ["Helper", "Utility", "Manager"]
DEFAULT_FRAMEWORK_PREFIXES = ["System", "Microsoft", "java", "javax"]

DEFAULT_GOD_CLASS_METHODS = 15
DEFAULT_HIGH_COMPLEXITY = 10
DEFAULT_HOURLY_RATE = Decimal("200")
DEFAULT_MAX_DEBT_ITEMS = 20
DEFAULT_TRIVIAL_STATEMENTS = 2

# App types from the registry that the extractor can read
ANALYZABLE_APP_TYPES = {"dotnet", "java"}

# camelCase keys accepted from external callers -> dataclass field names
_CAMEL_ALIASES = {
    "rootPath": "root_path",
    "includeGlobs": "include_globs",
    "excludeGlobs": "exclude_globs",
    "presentationSuffixes": "presentation_suffixes",
    "serviceSuffixes": "service_suffixes",
    "integrationKeywords": "integration_keywords",
    "repositorySuffixes": "repository_suffixes",
    "infrastructureSuffixes": "infrastructure_suffixes",
    "frameworkNamespacePrefixes": "framework_namespace_prefixes",
    "godClassMethodThreshold": "god_class_method_threshold",
    "highComplexityThreshold": "high_complexity_threshold",
    "hourlyRate": "hourly_rate",
    "analysisTimeoutMs": "analysis_timeout_ms",
    "maxWorkers": "max_workers",
    "maxDebtItems": "max_debt_items",
    "trivialStatementThreshold": "trivial_statement_threshold",
    "includePatterns": "include_patterns",
    "includeDependencies": "include_dependencies",
    "includeDataFlow": "include_data_flow",
}

_LIST_FIELDS = (
    "include_globs", "exclude_globs", "presentation_suffixes",
    "service_suffixes", "integration_keywords", "repository_suffixes",
    "infrastructure_suffixes", "framework_namespace_prefixes",
)
_BOOL_FIELDS = ("include_patterns", "include_dependencies", "include_data_flow")


@dataclass
class AnalysisConfig:
    """Fully enumerated configuration for one analysis run."""

    root_path: str = ""

    # File discovery
    include_globs: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_GLOBS))
    exclude_globs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_GLOBS))

    # Layer naming conventions
    presentation_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_PRESENTATION_SUFFIXES))
    service_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_SERVICE_SUFFIXES))
    integration_keywords: list[str] = field(default_factory=list)
    repository_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_REPOSITORY_SUFFIXES))
    infrastructure_suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_INFRASTRUCTURE_SUFFIXES))
    framework_namespace_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_FRAMEWORK_PREFIXES))

    # Debt thresholds
    god_class_method_threshold: int = DEFAULT_GOD_CLASS_METHODS
    high_complexity_threshold: int = DEFAULT_HIGH_COMPLEXITY
    trivial_statement_threshold: int = DEFAULT_TRIVIAL_STATEMENTS
    max_debt_items: int = DEFAULT_MAX_DEBT_ITEMS
    hourly_rate: Decimal = DEFAULT_HOURLY_RATE

    # Execution
    analysis_timeout_ms: int | None = None
    max_workers: int | None = None

    # Report sections
    include_patterns: bool = True
    include_dependencies: bool = True
    include_data_flow: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path | None = None) -> "AnalysisConfig":
        """Build a config from camelCase or snake_case keys.

        A relative ``rootPath`` is resolved against ``base_dir`` when given.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a JSON object")

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration field: {key}")
            kwargs[name] = value

        if "hourly_rate" in kwargs:
            kwargs["hourly_rate"] = _to_decimal(kwargs["hourly_rate"])

        root = kwargs.get("root_path")
        if isinstance(root, str) and root and base_dir is not None:
            if not os.path.isabs(root):
                kwargs["root_path"] = str((base_dir / root).resolve())

        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str | Path, default_root: str | None = None) -> "AnalysisConfig":
        """Load a JSON config file.

        ``default_root`` is used when the file does not set ``rootPath``.
        """
        path = Path(path)
        data = _read_json(path)
        if isinstance(data, dict) and default_root and not (data.get("rootPath") or data.get("root_path")):
            data = {**data, "rootPath": default_root}
        return cls.from_dict(data, base_dir=path.parent)

    def with_overrides(self, **changes: Any) -> "AnalysisConfig":
        """Return a validated copy with the given fields replaced."""
        if "hourly_rate" in changes:
            changes["hourly_rate"] = _to_decimal(changes["hourly_rate"])
        config = replace(self, **changes)
        config.validate()
        return config

    def validate(self) -> None:
        """Check every field. Raises ConfigurationError on the first problem."""
        if not isinstance(self.root_path, (str, os.PathLike)) or not str(self.root_path):
            raise ConfigurationError("rootPath is required")

        for name in _LIST_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ConfigurationError(f"{name} must be a list of strings")
            if any(not v for v in value):
                raise ConfigurationError(f"{name} must not contain empty strings")

        if not self.include_globs:
            raise ConfigurationError("include_globs must not be empty")

        for name in (
            "god_class_method_threshold",
            "high_complexity_threshold",
            "trivial_statement_threshold",
            "max_debt_items",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer")

        rate = self.hourly_rate
        if not isinstance(rate, Decimal) or not rate.is_finite() or rate < 0:
            raise ConfigurationError("hourly_rate must be a finite, non-negative decimal")

        timeout = self.analysis_timeout_ms
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0):
            raise ConfigurationError("analysis_timeout_ms must be a positive integer")

        workers = self.max_workers
        if workers is not None and (isinstance(workers, bool) or not isinstance(workers, int) or workers <= 0):
            raise ConfigurationError("max_workers must be a positive integer")

        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean")

    @property
    def worker_count(self) -> int:
        return self.max_workers or os.cpu_count() or 1


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError("hourly_rate must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ConfigurationError(f"hourly_rate must be a number, got {value!r}")
    if not result.is_finite():
        raise ConfigurationError(f"hourly_rate must be a finite number, got {value!r}")
    return result


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")


# --- Application registry (apps.json) ---


def list_applications(config_path: str | Path) -> list[dict[str, Any]]:
    """List the applications declared in an apps.json registry."""
    registry = _load_registry(Path(config_path))
    apps = []
    for app in registry:
        apps.append({
            "name": app.get("name", ""),
            "display_name": app.get("displayName", app.get("name", "")),
            "type": app.get("type", ""),
            "framework": app.get("framework", ""),
            "path": app.get("path", ""),
            "can_analyze": app.get("type") in ANALYZABLE_APP_TYPES,
        })
    return apps


def load_app_config(config_path: str | Path, app_name: str) -> AnalysisConfig:
    """Build the analysis config for one application in the registry.

    The app's ``path`` becomes ``root_path`` and its optional ``analysis``
    object supplies overrides (integration keywords, thresholds, ...).
    """
    config_path = Path(config_path)
    app = _find_app(config_path, app_name)
    if not app.get("path"):
        raise ConfigurationError(f"Application {app_name} has no path")
    overrides = app.get("analysis") or {}
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Application {app_name}: 'analysis' must be an object")
    data = {**overrides, "rootPath": app["path"]}
    return AnalysisConfig.from_dict(data, base_dir=config_path.parent)


def load_app_info(config_path: str | Path, app_name: str) -> ApplicationInfo:
    """Registry metadata for one application, as shown in its report."""
    app = _find_app(Path(config_path), app_name)
    return ApplicationInfo(
        name=app_name,
        display_name=str(app.get("displayName") or app_name),
        type=str(app.get("type", "")),
        framework=str(app.get("framework", "")),
    )


def _find_app(config_path: Path, app_name: str) -> dict[str, Any]:
    for app in _load_registry(config_path):
        if app.get("name") == app_name:
            return app
    raise ConfigurationError(f"Application {app_name} not found in configuration")


def _load_registry(config_path: Path) -> list[dict[str, Any]]:
    data = _read_json(config_path)
    if not isinstance(data, dict) or not isinstance(data.get("applications"), list):
        raise ConfigurationError(f"{config_path}: expected an 'applications' list")
    apps = data["applications"]
    if not all(isinstance(a, dict) for a in apps):
        raise ConfigurationError(f"{config_path}: every application must be an object")
    return apps
