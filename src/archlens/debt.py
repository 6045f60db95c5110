"""Technical debt identification and cost estimation."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Sequence

from .config import AnalysisConfig
from .models import (
    ClassModel,
    DebtKind,
    DebtSummary,
    MethodModel,
    Severity,
    TechnicalDebt,
    TechnicalDebtItem,
)

GOD_CLASS_METHODS_PER_HOUR = 5
COMPLEXITY_POINTS_PER_HOUR = 8
MISSING_ERROR_HANDLING_HOURS = 1


def format_currency(value: Decimal) -> str:
    """``Decimal("1400")`` -> ``"$1,400"``; cents only when present."""
    if value == value.to_integral_value():
        return f"${value:,.0f}"
    return f"${value:,.2f}"


def is_trivial(method: MethodModel, config: AnalysisConfig) -> bool:
    """Simple getters/setters and empty bodies."""
    return method.statement_count < config.trivial_statement_threshold


def _sort_key(item: TechnicalDebtItem):
    return (item.severity.rank, -item.estimated_hours, item.location, item.kind.value)


class DebtIdentifier:
    def __init__(self, config: AnalysisConfig):
        self.config = config

    def god_class(self, cls: ClassModel) -> TechnicalDebtItem | None:
        threshold = self.config.god_class_method_threshold
        if cls.method_count <= threshold:
            return None
        return TechnicalDebtItem(
            kind=DebtKind.GOD_CLASS,
            location=f"{cls.name} in {cls.file}",
            severity=Severity.HIGH,
            description=f"Class has {cls.method_count} methods (recommended: <= {threshold})",
            estimated_hours=math.ceil(cls.method_count / GOD_CLASS_METHODS_PER_HOUR),
        )

    def high_complexity(self, cls: ClassModel, method: MethodModel) -> TechnicalDebtItem | None:
        threshold = self.config.high_complexity_threshold
        if method.complexity <= threshold:
            return None
        return TechnicalDebtItem(
            kind=DebtKind.HIGH_COMPLEXITY,
            location=f"{cls.name}.{method.name}",
            severity=Severity.HIGH,
            description=f"Method complexity: {method.complexity} (recommended: <= {threshold})",
            estimated_hours=math.ceil(method.complexity / COMPLEXITY_POINTS_PER_HOUR),
        )

    def missing_error_handling(self, cls: ClassModel, method: MethodModel) -> TechnicalDebtItem | None:
        if (
            not method.is_public
            or method.is_constructor
            or method.has_error_handling
            or is_trivial(method, self.config)
        ):
            return None
        return TechnicalDebtItem(
            kind=DebtKind.MISSING_ERROR_HANDLING,
            location=f"{cls.name}.{method.name}",
            severity=Severity.MEDIUM,
            description="Public method lacks try-catch blocks",
            estimated_hours=MISSING_ERROR_HANDLING_HOURS,
        )

    def items_for(self, cls: ClassModel) -> list[TechnicalDebtItem]:
        items = []
        god = self.god_class(cls)
        if god is not None:
            items.append(god)
        for method in cls.methods:
            for item in (self.high_complexity(cls, method), self.missing_error_handling(cls, method)):
                if item is not None:
                    items.append(item)
        return items

    def identify(self, classes: Sequence[ClassModel]) -> TechnicalDebt:
        """All debt items, most severe first; only the top ``max_debt_items`` are kept.

        The summary always covers the full set.
        """
        items = sorted((i for cls in classes for i in self.items_for(cls)), key=_sort_key)
        total_hours = sum(i.estimated_hours for i in items)
        value = Decimal(total_hours) * self.config.hourly_rate
        return TechnicalDebt(
            items=tuple(items[:self.config.max_debt_items]),
            summary=DebtSummary(
                total_items=len(items),
                estimated_hours=total_hours,
                estimated_value=format_currency(value),
            ),
        )


def identify_debt(classes: Sequence[ClassModel], config: AnalysisConfig) -> TechnicalDebt:
    return DebtIdentifier(config).identify(classes)
