"""Contract tests for the formula engine.

Verifies that:
- Single-value formulas follow the zero-on-empty policy
- Grouping conserves the column total and emits first-seen order
- Distribution percentages sum to 100 (or are all 0)
- statistics carries a Summary whose median ignores row order
- Unknown formulas return the raw rows
"""
from __future__ import annotations

import random

import pytest

from datavision.analytics.formulas import column_values, evaluate_formula, summarize
from datavision.analytics.models import CalculationResult


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def sales_rows() -> list[dict]:
    return [
        {"region": "A", "sales": 10.0, "month": "2023-01"},
        {"region": "B", "sales": 20.0, "month": "2023-02"},
        {"region": "A", "sales": 5.0, "month": "2023-03"},
        {"region": "C", "sales": "n/a", "month": "2023-04"},
        {"region": 1.0, "sales": "7.5", "month": None},
    ]


def _grouped(result: CalculationResult) -> dict[str, float]:
    return {p.name: p.value for p in result.data}


# ============================================================================
# Single-value formulas
# ============================================================================

def test_sum_average_max_min(sales_rows: list[dict]) -> None:
    assert evaluate_formula(sales_rows, "sum", "region", "sales").data == pytest.approx(42.5)
    assert evaluate_formula(sales_rows, "average", "region", "sales").data == pytest.approx(8.5)
    assert evaluate_formula(sales_rows, "max", "region", "sales").data == 20.0
    assert evaluate_formula(sales_rows, "min", "region", "sales").data == 0.0
    assert evaluate_formula(sales_rows, "sum", "region", "sales").type == "single"


@pytest.mark.parametrize("formula", ["sum", "average", "max", "min"])
def test_single_formulas_on_empty_rows(formula: str) -> None:
    result = evaluate_formula([], formula, "x", "y")
    assert result.type == "single"
    assert result.data == 0


def test_missing_column_counts_nothing(sales_rows: list[dict]) -> None:
    assert column_values(sales_rows, "profit") == []
    assert evaluate_formula(sales_rows, "average", "region", "profit").data == 0


def test_sum_equals_average_times_count(sales_rows: list[dict]) -> None:
    total = evaluate_formula(sales_rows, "sum", "region", "sales").data
    average = evaluate_formula(sales_rows, "average", "region", "sales").data
    assert total == pytest.approx(average * len(column_values(sales_rows, "sales")))


def test_rows_without_y_key_are_not_counted() -> None:
    rows = [{"v": 4.0}, {"other": 1.0}, {"v": None}]
    assert evaluate_formula(rows, "average", "x", "v").data == pytest.approx(2.0)


# ============================================================================
# Grouping
# ============================================================================

def test_group_sum_scenario() -> None:
    rows = [
        {"region": "A", "sales": 10.0},
        {"region": "B", "sales": 20.0},
        {"region": "A", "sales": 5.0},
    ]
    result = evaluate_formula(rows, "groupSum", "region", "sales")
    assert result.type == "grouped"
    assert _grouped(result) == {"A": 15.0, "B": 20.0}


def test_group_sum_conserves_total(sales_rows: list[dict]) -> None:
    grouped = evaluate_formula(sales_rows, "groupSum", "region", "sales")
    total = evaluate_formula(sales_rows, "sum", "region", "sales").data
    assert sum(p.value for p in grouped.data) == pytest.approx(total)


def test_group_keys_use_text_view(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "groupSum", "region", "sales")
    assert set(_grouped(result)) == {"A", "B", "C", "1"}


def test_group_keys_emit_in_first_seen_order(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "groupSum", "region", "sales")
    assert [p.name for p in result.data] == ["A", "B", "C", "1"]


def test_group_avg() -> None:
    rows = [
        {"team": "red", "score": 4.0},
        {"team": "red", "score": 8.0},
        {"team": "blue", "score": 3.0},
        {"score": 9.0},
    ]
    result = evaluate_formula(rows, "groupAvg", "team", "score")
    assert _grouped(result) == {"red": 6.0, "blue": 3.0, "": 9.0}


def test_grouping_empty_rows() -> None:
    assert evaluate_formula([], "groupSum", "x", "y").data == []
    assert evaluate_formula([], "groupAvg", "x", "y").data == []


# ============================================================================
# Projections
# ============================================================================

def test_trend_keeps_raw_x_and_row_order(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "trend", "month", "sales")
    assert result.type == "trend"
    assert [p.x for p in result.data] == ["2023-01", "2023-02", "2023-03", "2023-04", None]
    assert [p.y for p in result.data] == [10.0, 20.0, 5.0, 0.0, 7.5]


def test_compare_projection(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "compare", "region", "sales")
    assert result.type == "compare"
    assert result.data[0].category == "A"
    assert result.data[4].category == 1.0
    assert result.data[4].value == 7.5


def test_distribution_percentages_sum_to_100(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "distribution", "region", "sales")
    assert result.type == "distribution"
    assert sum(p.percent for p in result.data) == pytest.approx(100.0)
    assert result.data[0].type == "A"
    assert result.data[0].percent == pytest.approx(10.0 / 42.5 * 100)


def test_distribution_zero_total() -> None:
    rows = [{"k": "a", "v": 0.0}, {"k": "b", "v": "x"}]
    result = evaluate_formula(rows, "distribution", "k", "v")
    assert [p.percent for p in result.data] == [0.0, 0.0]


# ============================================================================
# Statistics
# ============================================================================

def test_statistics_summary() -> None:
    rows = [{"x": i, "y": float(v)} for i, v in enumerate([4, 1, 3, 2])]
    result = evaluate_formula(rows, "statistics", "x", "y")
    assert result.type == "statistics"
    assert len(result.data) == 4
    s = result.summary
    assert s is not None
    assert (s.sum, s.average, s.max, s.min, s.median, s.count) == (10.0, 2.5, 4.0, 1.0, 2.5, 4)


def test_median_single_value() -> None:
    assert summarize([5.0]).median == 5.0


def test_median_is_permutation_invariant() -> None:
    values = [float(v) for v in (9, 2, 7, 4, 4, 11, 0)]
    expected = summarize(values).median
    rng = random.Random(7)
    for _ in range(10):
        shuffled = values[:]
        rng.shuffle(shuffled)
        assert summarize(shuffled).median == expected
    assert expected == 4.0


def test_statistics_on_empty_rows() -> None:
    result = evaluate_formula([], "statistics", "x", "y")
    assert result.data == []
    assert result.summary is not None
    assert result.summary.count == 0
    assert result.summary.sum == 0


def test_summary_only_for_statistics(sales_rows: list[dict]) -> None:
    for formula in ("sum", "groupSum", "trend", "distribution"):
        assert evaluate_formula(sales_rows, formula, "region", "sales").summary is None


# ============================================================================
# Fallback
# ============================================================================

def test_unknown_formula_returns_raw_rows(sales_rows: list[dict]) -> None:
    result = evaluate_formula(sales_rows, "median", "region", "sales")
    assert result.type == "raw"
    assert result.data == sales_rows


def test_formula_names_are_case_sensitive(sales_rows: list[dict]) -> None:
    assert evaluate_formula(sales_rows, "SUM", "region", "sales").type == "raw"
