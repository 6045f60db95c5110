"""Tests for technical debt identification."""

from decimal import Decimal

import pytest

from archlens.config import AnalysisConfig
from archlens.debt import format_currency, identify_debt
from archlens.models import ClassModel, DebtKind, MethodModel, Severity


def _method(name, complexity=1, statements=1, visibility="public", catch=False, ctor=False):
    return MethodModel(
        name,
        visibility,
        complexity=complexity,
        has_error_handling=catch,
        statement_count=statements,
        is_constructor=ctor,
    )


def _cls(name, methods, file=None):
    return ClassModel(name=name, kind="class", file=file or f"src/{name}.cs", methods=tuple(methods))


@pytest.fixture
def config():
    return AnalysisConfig(root_path=".")


class TestDebtRules:
    def test_sixteen_trivial_methods_is_one_god_class(self, config):
        cls = _cls("OrderService", [_method(f"Get{i}") for i in range(16)])
        debt = identify_debt([cls], config)
        assert len(debt.items) == 1
        item = debt.items[0]
        assert item.kind == DebtKind.GOD_CLASS
        assert item.severity == Severity.HIGH
        assert item.location == "OrderService in src/OrderService.cs"
        assert item.estimated_hours == 4
        assert item.description == "Class has 16 methods (recommended: <= 15)"

    def test_fifteen_methods_is_fine(self, config):
        cls = _cls("OrderService", [_method(f"Get{i}") for i in range(15)])
        assert identify_debt([cls], config).items == ()

    def test_god_class_with_complex_and_unguarded_methods(self, config):
        methods = [_method(f"Get{i}") for i in range(16)]
        methods.append(_method("Reconcile", complexity=16, statements=30, catch=True))
        methods.append(_method("Submit", statements=4))
        cls = _cls("BillingService", methods)

        debt = identify_debt([cls], config)
        kinds = [(i.kind, i.estimated_hours) for i in debt.items]
        assert kinds == [
            (DebtKind.GOD_CLASS, 4),
            (DebtKind.HIGH_COMPLEXITY, 2),
            (DebtKind.MISSING_ERROR_HANDLING, 1),
        ]
        assert debt.summary.total_items == 3
        assert debt.summary.estimated_hours == 7
        assert debt.summary.estimated_value == "$1,400"

    def test_high_complexity(self, config):
        debt = identify_debt([_cls("Calc", [_method("Run", complexity=11, catch=True)])], config)
        item = debt.items[0]
        assert item.kind == DebtKind.HIGH_COMPLEXITY
        assert item.location == "Calc.Run"
        assert item.estimated_hours == 2
        assert identify_debt([_cls("Calc", [_method("Run", complexity=10, catch=True)])], config).items == ()

    @pytest.mark.parametrize("method", [
        _method("Save", statements=3, visibility="private"),
        _method("Save", statements=3, visibility="protected"),
        _method("Save", statements=3, catch=True),
        _method("Name", statements=1),
        _method("Empty", statements=0),
        _method("PatientService", statements=5, ctor=True),
    ])
    def test_missing_error_handling_exclusions(self, config, method):
        assert identify_debt([_cls("PatientService", [method])], config).items == ()

    def test_missing_error_handling(self, config):
        item = identify_debt([_cls("PatientService", [_method("Save", statements=2)])], config).items[0]
        assert item.kind == DebtKind.MISSING_ERROR_HANDLING
        assert item.severity == Severity.MEDIUM
        assert item.location == "PatientService.Save"
        assert item.estimated_hours == 1

    def test_configured_thresholds(self):
        config = AnalysisConfig(root_path=".", god_class_method_threshold=2, high_complexity_threshold=3)
        cls = _cls("Small", [_method("A", complexity=4, catch=True), _method("B"), _method("C")])
        kinds = [i.kind for i in identify_debt([cls], config).items]
        assert kinds == [DebtKind.GOD_CLASS, DebtKind.HIGH_COMPLEXITY]


class TestDebtOrdering:
    def test_severity_then_hours(self, config):
        classes = [
            _cls("A", [_method("Save", statements=5)]),
            _cls("B", [_method("Run", complexity=25, catch=True)]),
            _cls("C", [_method("Run", complexity=12, catch=True)]),
        ]
        items = identify_debt(classes, config).items
        assert [(i.location, i.estimated_hours) for i in items] == [
            ("B.Run", 4),
            ("C.Run", 2),
            ("A.Save", 1),
        ]

    def test_top_n_but_summary_counts_everything(self):
        config = AnalysisConfig(root_path=".", max_debt_items=20)
        classes = [_cls(f"C{i:02d}", [_method("Save", statements=3)]) for i in range(25)]
        debt = identify_debt(classes, config)
        assert len(debt.items) == 20
        assert debt.summary.total_items == 25
        assert debt.summary.estimated_hours == 25
        assert debt.summary.estimated_value == "$5,000"
        assert debt.items[0].location == "C00.Save"

    def test_empty(self, config):
        debt = identify_debt([], config)
        assert debt.items == ()
        assert debt.summary.total_items == 0
        assert debt.summary.estimated_value == "$0"


class TestFormatCurrency:
    @pytest.mark.parametrize("value, text", [
        (Decimal("0"), "$0"),
        (Decimal("1400"), "$1,400"),
        (Decimal("1234567"), "$1,234,567"),
        (Decimal("1400.5"), "$1,400.50"),
    ])
    def test_format(self, value, text):
        assert format_currency(value) == text

    def test_custom_rate(self):
        config = AnalysisConfig(root_path=".", hourly_rate=Decimal("150.25"))
        debt = identify_debt([_cls("A", [_method("Save", statements=3)])], config)
        assert debt.summary.estimated_value == "$150.25"
