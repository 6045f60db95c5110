"""Whole-codebase graph: class arena, dependency edges, data-flow edges.

Classes live in one list and are referred to by index. Two lookup
tables are built once per run: simple name -> indices, and base type
name -> indices of the classes that derive from or implement it.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterator, Sequence

from .config import AnalysisConfig
from .layers import Classification, is_repository
from .models import (
    ClassModel,
    DataFlowEdge,
    Dependency,
    DependencyKind,
    FlowKind,
    Layer,
)


def simple_type_name(type_name: str) -> str:
    """Reduce a written type to the bare name used for lookups.

    ``Foo.Bar.IPatientService?`` -> ``IPatientService``,
    ``IRepository<Patient>`` -> ``IRepository``, ``Order[]`` -> ``Order``.
    Tuple types reduce to an empty string.
    """
    t = type_name.strip()
    if not t or t.startswith("("):
        return ""
    for marker in ("<", "["):
        pos = t.find(marker)
        if pos != -1:
            t = t[:pos]
    t = t.replace("?", "").strip()
    return t.rsplit(".", 1)[-1]


def is_framework_namespace(namespace: str, prefixes: Sequence[str]) -> bool:
    return any(namespace == p or namespace.startswith(p + ".") for p in prefixes)


class ClassIndex:
    """Arena of classified classes with name and inheritance lookups."""

    def __init__(self, classes: Sequence[ClassModel], classifications: Sequence[Classification]):
        if len(classes) != len(classifications):
            raise ValueError("classes and classifications must be index-aligned")
        self.classes = list(classes)
        self.classifications = list(classifications)
        self._by_name: dict[str, list[int]] = defaultdict(list)
        self._implementors: dict[str, list[int]] = defaultdict(list)
        for i, cls in enumerate(self.classes):
            self._by_name[cls.name].append(i)
            for base in cls.base_types:
                name = simple_type_name(base)
                if name:
                    self._implementors[name].append(i)

    def __len__(self) -> int:
        return len(self.classes)

    def layer(self, i: int) -> Layer:
        return self.classifications[i].layer

    def external_system(self, i: int) -> str | None:
        return self.classifications[i].external_system

    def in_layer(self, layer: Layer) -> Iterator[int]:
        return (i for i, c in enumerate(self.classifications) if c.layer == layer)

    def lookup(self, name: str) -> list[int]:
        return list(self._by_name.get(name, ()))

    def implementors(self, name: str) -> list[int]:
        return list(self._implementors.get(name, ()))

    def resolve(self, type_name: str) -> list[int]:
        """Classes a written type can refer to: the type itself, or its implementations."""
        name = simple_type_name(type_name)
        if not name:
            return []
        found = self.lookup(name)
        for j in self._implementors.get(name, ()):
            if j not in found:
                found.append(j)
        return found

    def interface_names(self) -> set[str]:
        return {cls.name for cls in self.classes if cls.is_interface}


def referenced_types(cls: ClassModel) -> list[str]:
    """Constructor parameter and field types, in declaration order, deduplicated."""
    seen: list[str] = []
    for param in cls.constructor_parameters():
        if param.type_name and param.type_name not in seen:
            seen.append(param.type_name)
    for fld in cls.fields:
        if fld.type_name and fld.type_name not in seen:
            seen.append(fld.type_name)
    return seen


# --- Dependencies ---


def build_dependencies(index: ClassIndex, config: AnalysisConfig) -> tuple[Dependency, ...]:
    """Namespace edges for non-framework imports and inheritance edges per base type."""
    seen: set[tuple[str, str, DependencyKind]] = set()
    deps: list[Dependency] = []

    def add(source: str, target: str, kind: DependencyKind, file: str) -> None:
        key = (source, target, kind)
        if key in seen:
            return
        seen.add(key)
        deps.append(Dependency(source, target, kind, file))

    for cls in index.classes:
        for namespace in cls.imports:
            if not is_framework_namespace(namespace, config.framework_namespace_prefixes):
                add(cls.name, namespace, DependencyKind.NAMESPACE, cls.file)
        for base in cls.base_types:
            add(cls.name, base, DependencyKind.INHERITANCE, cls.file)

    return tuple(sorted(deps, key=lambda d: (d.source, d.kind.value, d.target, d.file)))


# --- Data flow ---

_TRANSITIONS = {
    (Layer.PRESENTATION, Layer.BUSINESS): FlowKind.METHOD_CALL,
    (Layer.PRESENTATION, Layer.INTEGRATION): FlowKind.EXTERNAL_CALL,
    (Layer.BUSINESS, Layer.INTEGRATION): FlowKind.EXTERNAL_CALL,
    (Layer.PRESENTATION, Layer.DATA): FlowKind.DATA_ACCESS,
    (Layer.BUSINESS, Layer.DATA): FlowKind.DATA_ACCESS,
}


def map_data_flow(index: ClassIndex, config: AnalysisConfig) -> tuple[DataFlowEdge, ...]:
    """Cross-layer edges inferred from constructor parameter and field types.

    This is name correlation, not call-site analysis: a controller that
    takes an ``IPatientService`` is assumed to call every class named
    or implementing ``IPatientService``.
    """
    seen: set[tuple[str, str, FlowKind]] = set()
    edges: list[DataFlowEdge] = []

    for i, cls in enumerate(index.classes):
        source_layer = index.layer(i)
        if source_layer not in (Layer.PRESENTATION, Layer.BUSINESS):
            continue
        for type_name in referenced_types(cls):
            for j in index.resolve(type_name):
                if j == i:
                    continue
                target = index.classes[j]
                target_layer = index.layer(j)
                kind = _TRANSITIONS.get((source_layer, target_layer))
                if kind is None:
                    continue
                if kind == FlowKind.DATA_ACCESS and not is_repository(target, config):
                    continue
                key = (cls.name, target.name, kind)
                if key in seen:
                    continue
                seen.add(key)
                edges.append(DataFlowEdge(
                    source=cls.name,
                    target=target.name,
                    layer_transition=f"{source_layer.value} -> {target_layer.value}",
                    kind=kind,
                    external_system=index.external_system(j) if kind == FlowKind.EXTERNAL_CALL else None,
                ))

    return tuple(sorted(edges, key=lambda e: (e.source, e.target, e.kind.value)))
