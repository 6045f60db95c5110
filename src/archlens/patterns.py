"""Design pattern detection by evidence accumulation.

Each pattern counts evidence in named categories. Some categories are
required (an empty one means the pattern is not detected), the rest
only corroborate. Confidence comes from ``score_evidence``, which can
only go up as counts go up.
"""

from __future__ import annotations

import re
from typing import Sequence

from .config import AnalysisConfig
from .graph import ClassIndex, simple_type_name
from .models import Confidence, DataFlowEdge, FlowKind, Layer, Pattern

MVC = "Model-View-Controller (MVC)"
DEPENDENCY_INJECTION = "Dependency Injection"
REPOSITORY = "Repository Pattern"
SERVICE_LAYER = "Service Layer"
INTEGRATION_LAYER = "Integration Layer"

PATTERN_NAMES = (MVC, DEPENDENCY_INJECTION, REPOSITORY, SERVICE_LAYER, INTEGRATION_LAYER)

# IPatientService, IRepository<T>
_INTERFACE_NAMING = re.compile(r"^I[A-Z]")


def score_evidence(required: Sequence[int], supporting: Sequence[int] = ()) -> Confidence:
    """Map evidence counts to a confidence level.

    - any required category empty -> NotDetected
    - two or more non-empty categories -> High
    - two or more pieces of evidence in total -> Medium
    - otherwise -> Low
    """
    if not required or any(n <= 0 for n in required):
        return Confidence.NOT_DETECTED
    counts = [*required, *supporting]
    if sum(1 for n in counts if n > 0) >= 2:
        return Confidence.HIGH
    if sum(n for n in counts if n > 0) >= 2:
        return Confidence.MEDIUM
    return Confidence.LOW


def _plural(n: int, singular: str, plural: str | None = None) -> str:
    return f"{n} {singular if n == 1 else (plural or singular + 's')}"


class PatternDetector:
    """Evaluates the known patterns over a classified class index."""

    def __init__(self, index: ClassIndex, data_flow: Sequence[DataFlowEdge], config: AnalysisConfig):
        self.index = index
        self.data_flow = data_flow
        self.config = config

    def _count(self, layer: Layer, interfaces: bool | None = None) -> int:
        n = 0
        for i in self.index.in_layer(layer):
            if interfaces is None or self.index.classes[i].is_interface == interfaces:
                n += 1
        return n

    def _flows(self, source: Layer, target: Layer, kind: FlowKind) -> int:
        transition = f"{source.value} -> {target.value}"
        return sum(1 for e in self.data_flow if e.layer_transition == transition and e.kind == kind)

    def detect(self) -> tuple[Pattern, ...]:
        return (
            self.detect_mvc(),
            self.detect_dependency_injection(),
            self.detect_repository(),
            self.detect_service_layer(),
            self.detect_integration_layer(),
        )

    def detect_mvc(self) -> Pattern:
        controllers = self._count(Layer.PRESENTATION)
        services = self._count(Layer.BUSINESS)
        models = self._count(Layer.DATA)
        evidence = []
        if controllers:
            evidence.append(_plural(controllers, "controller"))
        if services:
            evidence.append(_plural(services, "service class", "service classes"))
        if models:
            evidence.append(_plural(models, "model/repository", "models/repositories"))
        return Pattern(MVC, score_evidence([controllers, services, models]), tuple(evidence))

    def detect_dependency_injection(self) -> Pattern:
        index = self.index
        declared = index.interface_names()

        def is_interface_type(type_name: str) -> bool:
            name = simple_type_name(type_name)
            return bool(name) and (name in declared or bool(_INTERFACE_NAMING.match(name)))

        injected = 0
        for i, cls in enumerate(index.classes):
            if index.layer(i) == Layer.UNKNOWN or cls.is_interface:
                continue
            injected += sum(1 for p in cls.constructor_parameters() if is_interface_type(p.type_name))

        implemented = sum(
            1 for name in sorted(declared)
            if any(not index.classes[j].is_interface for j in index.implementors(name))
        )

        evidence = []
        if injected:
            evidence.append(_plural(injected, "constructor-injected interface parameter"))
        if implemented:
            evidence.append(_plural(implemented, "interface with implementations", "interfaces with implementations"))
        return Pattern(DEPENDENCY_INJECTION, score_evidence([injected], [implemented]), tuple(evidence))

    def detect_repository(self) -> Pattern:
        suffixes = self.config.repository_suffixes
        classes = 0
        interfaces = 0
        for i in self.index.in_layer(Layer.DATA):
            cls = self.index.classes[i]
            if not any(cls.name.endswith(s) for s in suffixes):
                continue
            if cls.is_interface:
                interfaces += 1
            else:
                classes += 1
        evidence = []
        if classes:
            evidence.append(_plural(classes, "repository class", "repository classes"))
        if interfaces:
            evidence.append(_plural(interfaces, "repository interface"))
        return Pattern(REPOSITORY, score_evidence([classes], [interfaces]), tuple(evidence))

    def detect_service_layer(self) -> Pattern:
        services = self._count(Layer.BUSINESS, interfaces=False)
        contracts = self._count(Layer.BUSINESS, interfaces=True)
        calls = self._flows(Layer.PRESENTATION, Layer.BUSINESS, FlowKind.METHOD_CALL)
        evidence = []
        if services:
            evidence.append(_plural(services, "service class", "service classes"))
        if contracts:
            evidence.append(_plural(contracts, "service interface"))
        if calls:
            evidence.append(_plural(calls, "controller-to-service flow"))
        return Pattern(SERVICE_LAYER, score_evidence([services], [contracts, calls]), tuple(evidence))

    def detect_integration_layer(self) -> Pattern:
        index = self.index
        services = 0
        found: set[str] = set()
        for i in index.in_layer(Layer.INTEGRATION):
            if index.classes[i].is_interface:
                continue
            services += 1
            system = index.external_system(i)
            if system:
                found.add(system)
        # Keyword order from the configuration
        systems = tuple(k for k in dict.fromkeys(self.config.integration_keywords) if k in found)
        calls = self._flows(Layer.BUSINESS, Layer.INTEGRATION, FlowKind.EXTERNAL_CALL)

        evidence = []
        if services:
            evidence.append(_plural(services, "integration service"))
        if systems:
            evidence.append(f"External systems: {', '.join(systems)}")
        if calls:
            evidence.append(_plural(calls, "service-to-integration call"))
        return Pattern(
            INTEGRATION_LAYER,
            score_evidence([services], [calls]),
            tuple(evidence),
            external_systems=systems,
        )


def detect_patterns(
    index: ClassIndex,
    data_flow: Sequence[DataFlowEdge],
    config: AnalysisConfig,
) -> tuple[Pattern, ...]:
    """Every known pattern, in fixed order, each with a confidence level."""
    return PatternDetector(index, data_flow, config).detect()
