"""Data model for an analysis run.

All entities are created fresh per run and frozen once the stage that
produces them completes. ``to_dict`` methods produce the camelCase wire
shape handed to boundary layers (CLI printer, HTTP handler, cache).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Layer(str, Enum):
    PRESENTATION = "presentation"
    BUSINESS = "business"
    DATA = "data"
    INTEGRATION = "integration"
    INFRASTRUCTURE = "infrastructure"
    UNKNOWN = "unknown"


# Report order for layer groups
LAYER_ORDER = (
    Layer.PRESENTATION,
    Layer.BUSINESS,
    Layer.DATA,
    Layer.INTEGRATION,
    Layer.INFRASTRUCTURE,
    Layer.UNKNOWN,
)


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_DETECTED = "not_detected"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    Confidence.NOT_DETECTED: 0,
    Confidence.LOW: 1,
    Confidence.MEDIUM: 2,
    Confidence.HIGH: 3,
}


class DependencyKind(str, Enum):
    NAMESPACE = "namespace"
    INHERITANCE = "inheritance"


class FlowKind(str, Enum):
    METHOD_CALL = "method_call"
    EXTERNAL_CALL = "external_call"
    DATA_ACCESS = "data_access"


class DebtKind(str, Enum):
    GOD_CLASS = "God Class"
    HIGH_COMPLEXITY = "High Complexity"
    MISSING_ERROR_HANDLING = "Missing Error Handling"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank, most severe first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class Rating(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


# --- Source & structure ---


@dataclass(frozen=True)
class SourceFile:
    """A source file as read from disk. Immutable once read."""

    path: str
    relative_path: str
    text: str
    dialect: str


@dataclass(frozen=True)
class ParameterModel:
    name: str
    type_name: str


@dataclass(frozen=True)
class PropertyModel:
    name: str
    type_name: str
    visibility: str
    accessors: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldModel:
    name: str
    type_name: str
    visibility: str
    is_static: bool = False


@dataclass(frozen=True)
class MethodModel:
    name: str
    visibility: str
    is_async: bool = False
    complexity: int = 1
    has_error_handling: bool = False
    parameters: tuple[ParameterModel, ...] = ()
    return_type: str = ""
    statement_count: int = 0
    is_constructor: bool = False
    is_static: bool = False
    has_body: bool = True
    line: int = 0
    lines_of_code: int = 0
    attributes: tuple[str, ...] = ()

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "visibility": self.visibility,
            "isAsync": self.is_async,
            "parameterCount": self.parameter_count,
            "complexity": self.complexity,
            "hasErrorHandling": self.has_error_handling,
            "line": self.line,
        }


@dataclass(frozen=True)
class ClassModel:
    """One class/interface/struct/record declaration.

    ``imports`` are the file-level using/import namespaces of the file
    that declares the type.
    """

    name: str
    kind: str
    file: str
    namespace: str = ""
    line: int = 0
    methods: tuple[MethodModel, ...] = ()
    properties: tuple[PropertyModel, ...] = ()
    fields: tuple[FieldModel, ...] = ()
    base_types: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    attributes: tuple[str, ...] = ()
    modifiers: tuple[str, ...] = ()
    primary_parameters: tuple[ParameterModel, ...] = ()
    container: str = ""

    @property
    def method_count(self) -> int:
        return len(self.methods)

    @property
    def is_interface(self) -> bool:
        return self.kind == "interface"

    @property
    def qualified_name(self) -> str:
        parts = [p for p in (self.namespace, self.container, self.name) if p]
        return ".".join(parts)

    @property
    def average_complexity(self) -> float:
        if not self.methods:
            return 0.0
        return sum(m.complexity for m in self.methods) / len(self.methods)

    def constructor_parameters(self) -> list[ParameterModel]:
        """Parameters of every constructor, primary constructor first."""
        params = list(self.primary_parameters)
        for method in self.methods:
            if method.is_constructor:
                params.extend(method.parameters)
        return params


# --- Aggregation results ---


@dataclass(frozen=True)
class LayerEntry:
    """Report row for a classified class."""

    name: str
    file: str
    kind: str
    layer: Layer
    methods: int
    properties: int
    average_complexity: float
    base_types: tuple[str, ...] = ()
    external_system: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "file": self.file,
            "kind": self.kind,
            "methods": self.methods,
            "properties": self.properties,
            "averageComplexity": round(self.average_complexity, 2),
            "baseTypes": list(self.base_types),
        }
        if self.external_system is not None:
            d["externalSystem"] = self.external_system
        return d


@dataclass(frozen=True)
class Pattern:
    name: str
    confidence: Confidence
    evidence: tuple[str, ...] = ()
    external_systems: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "confidence": self.confidence.value,
            "evidence": list(self.evidence),
        }
        if self.external_systems is not None:
            d["externalSystems"] = list(self.external_systems)
        return d


@dataclass(frozen=True)
class Dependency:
    source: str
    target: str
    kind: DependencyKind
    file: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "type": self.kind.value,
            "file": self.file,
        }


@dataclass(frozen=True)
class DataFlowEdge:
    source: str
    target: str
    layer_transition: str
    kind: FlowKind
    external_system: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "from": self.source,
            "to": self.target,
            "layer": self.layer_transition,
            "type": self.kind.value,
        }
        if self.external_system is not None:
            d["externalSystem"] = self.external_system
        return d


@dataclass(frozen=True)
class MaintainabilityMetrics:
    total_classes: int = 0
    total_methods: int = 0
    average_complexity: float = 0.0
    average_methods_per_class: float = 0.0
    maintainability_score: float = 100.0
    rating: Rating = Rating.A
    total_lines_of_code: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalClasses": self.total_classes,
            "totalMethods": self.total_methods,
            "averageComplexity": round(self.average_complexity, 2),
            "averageMethodsPerClass": round(self.average_methods_per_class, 2),
            "maintainabilityScore": round(self.maintainability_score, 2),
            "rating": self.rating.value,
            "totalLinesOfCode": self.total_lines_of_code,
        }


@dataclass(frozen=True)
class TechnicalDebtItem:
    kind: DebtKind
    location: str
    severity: Severity
    description: str
    estimated_hours: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "location": self.location,
            "severity": self.severity.value,
            "description": self.description,
            "estimatedHours": self.estimated_hours,
        }


@dataclass(frozen=True)
class DebtSummary:
    total_items: int = 0
    estimated_hours: int = 0
    estimated_value: str = "$0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "estimatedHours": self.estimated_hours,
            "estimatedValue": self.estimated_value,
        }


@dataclass(frozen=True)
class TechnicalDebt:
    items: tuple[TechnicalDebtItem, ...] = ()
    summary: DebtSummary = field(default_factory=DebtSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [i.to_dict() for i in self.items],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class ParseWarning:
    """A file skipped because structural extraction failed."""

    file: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "reason": self.reason}


DATA_FLOW_NOTE = (
    "Edges are inferred from constructor-parameter and field type names "
    "across layers; they approximate the call graph and are not traced calls."
)


@dataclass(frozen=True)
class ApplicationInfo:
    """Registry metadata for the application a report describes."""

    name: str
    display_name: str
    type: str
    framework: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "type": self.type,
            "framework": self.framework,
        }


@dataclass(frozen=True)
class AnalysisReport:
    """Complete result of one analysis run."""

    root_path: str
    total_files: int
    layers: dict[Layer, tuple[LayerEntry, ...]]
    patterns: tuple[Pattern, ...]
    dependencies: tuple[Dependency, ...]
    data_flow: tuple[DataFlowEdge, ...]
    metrics: MaintainabilityMetrics
    technical_debt: TechnicalDebt
    warnings: tuple[ParseWarning, ...] = ()
    application: ApplicationInfo | None = None

    def pattern(self, name: str) -> Pattern | None:
        for p in self.patterns:
            if p.name == name:
                return p
        return None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "rootPath": self.root_path,
            "summary": {
                "totalFiles": self.total_files,
                "totalClasses": self.metrics.total_classes,
                "totalMethods": self.metrics.total_methods,
                "averageComplexity": round(self.metrics.average_complexity, 2),
                "maintainabilityScore": round(self.metrics.maintainability_score, 2),
                "rating": self.metrics.rating.value,
            },
            "layers": {
                layer.value: [e.to_dict() for e in self.layers.get(layer, ())]
                for layer in LAYER_ORDER
            },
            "patterns": [p.to_dict() for p in self.patterns],
            "dependencies": [d.to_dict() for d in self.dependencies],
            "dataFlow": {
                "note": DATA_FLOW_NOTE,
                "edges": [e.to_dict() for e in self.data_flow],
            },
            "metrics": self.metrics.to_dict(),
            "technicalDebt": self.technical_debt.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.application is not None:
            data["application"] = self.application.to_dict()
        return data
