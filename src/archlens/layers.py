"""Layer classification.

Rules are checked in priority order and the first match wins, so every
class lands in exactly one layer. Classification only looks at the
class name, its member shape and the configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .config import AnalysisConfig
from .models import ClassModel, Layer, LayerEntry, LAYER_ORDER


@dataclass(frozen=True)
class Classification:
    layer: Layer
    external_system: str | None = None


def _ends_with_any(name: str, suffixes: Sequence[str]) -> bool:
    return any(name.endswith(s) for s in suffixes)


def matched_integration_keyword(name: str, keywords: Sequence[str]) -> str | None:
    """First configured keyword contained in ``name`` (case-sensitive)."""
    for keyword in keywords:
        if keyword in name:
            return keyword
    return None


def is_repository(cls: ClassModel, config: AnalysisConfig) -> bool:
    return _ends_with_any(cls.name, config.repository_suffixes)


def is_poco(cls: ClassModel) -> bool:
    """Plain data holder: properties only, no methods."""
    return not cls.methods and bool(cls.properties)


class LayerClassifier:
    """Assigns a Layer to each ClassModel from naming conventions."""

    def __init__(self, config: AnalysisConfig):
        self.config = config

    def classify(self, cls: ClassModel) -> Classification:
        config = self.config
        name = cls.name

        if _ends_with_any(name, config.presentation_suffixes):
            return Classification(Layer.PRESENTATION)

        if _ends_with_any(name, config.service_suffixes):
            keyword = matched_integration_keyword(name, config.integration_keywords)
            if keyword is not None:
                return Classification(Layer.INTEGRATION, keyword)
            return Classification(Layer.BUSINESS)

        if is_repository(cls, config) or is_poco(cls):
            return Classification(Layer.DATA)

        if _ends_with_any(name, config.infrastructure_suffixes):
            return Classification(Layer.INFRASTRUCTURE)

        return Classification(Layer.UNKNOWN)


def classify_classes(classes: Sequence[ClassModel], config: AnalysisConfig) -> list[Classification]:
    """Classify every class; result is index-aligned with ``classes``."""
    classifier = LayerClassifier(config)
    return [classifier.classify(cls) for cls in classes]


def group_layers(
    classes: Sequence[ClassModel],
    classifications: Sequence[Classification],
) -> dict[Layer, tuple[LayerEntry, ...]]:
    """Report rows per layer, every layer present, rows in name order."""
    groups: dict[Layer, list[LayerEntry]] = {layer: [] for layer in LAYER_ORDER}
    for cls, result in zip(classes, classifications):
        groups[result.layer].append(LayerEntry(
            name=cls.name,
            file=cls.file,
            kind=cls.kind,
            layer=result.layer,
            methods=cls.method_count,
            properties=len(cls.properties),
            average_complexity=cls.average_complexity,
            base_types=cls.base_types,
            external_system=result.external_system,
        ))
    return {
        layer: tuple(sorted(entries, key=lambda e: (e.name, e.file)))
        for layer, entries in groups.items()
    }
