"""Tests for maintainability metrics."""

import pytest

from archlens.metrics import compute_metrics, maintainability_score, rating_for
from archlens.models import ClassModel, MethodModel, Rating


def _cls(name, complexities, loc=5):
    methods = tuple(MethodModel(f"M{i}", "public", complexity=c, lines_of_code=loc) for i, c in enumerate(complexities))
    return ClassModel(name=name, kind="class", file=f"{name}.cs", methods=methods)


class TestMaintainabilityScore:
    def test_no_penalty(self):
        assert maintainability_score(0, 0) == 100

    def test_complexity_penalty(self):
        assert maintainability_score(2, 5) == 90

    def test_bloat_penalty_above_ten_methods(self):
        assert maintainability_score(1, 10) == 95
        assert maintainability_score(1, 15) == 85

    def test_clamped(self):
        assert maintainability_score(50, 100) == 0
        assert 0 <= maintainability_score(19.9, 10) <= 100

    def test_monotonically_decreasing(self):
        scores = [maintainability_score(c, 12) for c in (1, 2, 4, 8)]
        assert scores == sorted(scores, reverse=True)
        scores = [maintainability_score(2, m) for m in (5, 11, 20, 40)]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("score, rating", [
        (100, Rating.A), (80, Rating.A), (79.99, Rating.B), (60, Rating.B),
        (59.5, Rating.C), (40, Rating.C), (39.99, Rating.D), (0, Rating.D),
    ])
    def test_rating_thresholds(self, score, rating):
        assert rating_for(score) == rating


class TestComputeMetrics:
    def test_empty(self):
        m = compute_metrics([])
        assert m.total_classes == 0
        assert m.total_methods == 0
        assert m.average_complexity == 0
        assert m.average_methods_per_class == 0
        assert m.maintainability_score == 100
        assert m.rating == Rating.A

    def test_averages(self):
        m = compute_metrics([_cls("A", [1, 2, 3]), _cls("B", [4]), _cls("C", [])])
        assert m.total_classes == 3
        assert m.total_methods == 4
        assert m.average_complexity == 2.5
        assert m.average_methods_per_class == pytest.approx(4 / 3)
        assert m.maintainability_score == 87.5
        assert m.rating == Rating.A
        assert m.total_lines_of_code == 20

    def test_wire_shape_rounds_to_two_decimals(self):
        m = compute_metrics([_cls("A", [1, 2, 2])])
        d = m.to_dict()
        assert d["averageComplexity"] == 1.67
        assert d["maintainabilityScore"] == 91.67
        assert d["rating"] == "A"
