"""Maintainability metrics."""

from __future__ import annotations

from typing import Sequence

from .models import ClassModel, MaintainabilityMetrics, Rating

COMPLEXITY_WEIGHT = 5
BLOAT_WEIGHT = 2
BLOAT_ALLOWANCE = 10  # methods per class before the score is penalized


def maintainability_score(average_complexity: float, average_methods_per_class: float) -> float:
    """100 - 5*avgComplexity - 2*max(0, avgMethodsPerClass - 10), clamped to [0, 100]."""
    score = (
        100
        - average_complexity * COMPLEXITY_WEIGHT
        - max(0.0, average_methods_per_class - BLOAT_ALLOWANCE) * BLOAT_WEIGHT
    )
    return max(0.0, min(100.0, score))


def rating_for(score: float) -> Rating:
    if score >= 80:
        return Rating.A
    if score >= 60:
        return Rating.B
    if score >= 40:
        return Rating.C
    return Rating.D


def compute_metrics(classes: Sequence[ClassModel]) -> MaintainabilityMetrics:
    total_classes = len(classes)
    methods = [m for cls in classes for m in cls.methods]
    total_methods = len(methods)

    avg_complexity = sum(m.complexity for m in methods) / total_methods if total_methods else 0.0
    avg_methods = total_methods / total_classes if total_classes else 0.0
    score = maintainability_score(avg_complexity, avg_methods)

    return MaintainabilityMetrics(
        total_classes=total_classes,
        total_methods=total_methods,
        average_complexity=avg_complexity,
        average_methods_per_class=avg_methods,
        maintainability_score=score,
        rating=rating_for(score),
        total_lines_of_code=sum(m.lines_of_code for m in methods),
    )
