"""Built-in formulas evaluated over the rows of one dataset.

No formula raises: missing columns and non-numeric cells fall back to the
0 / empty-sequence defaults, and an unknown formula name returns the rows
untouched as a ``raw`` result.
"""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..domain.types import FormulaName
from .coercion import as_number, as_text
from .models import (
    CalculationResult,
    ComparePoint,
    DistributionPoint,
    GroupedPoint,
    Row,
    Summary,
    TrendPoint,
)

logger = logging.getLogger(__name__)


def column_values(rows: Sequence[Row], column: str) -> list[float]:
    """Numeric values of ``column`` for every row that has the column key."""
    return [as_number(row[column]) for row in rows if column in row]


def summarize(values: Sequence[float]) -> Summary:
    if not values:
        return Summary()
    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2
    median = (ordered[mid - 1] + ordered[mid]) / 2 if n % 2 == 0 else ordered[mid]
    total = sum(values)
    return Summary(
        sum=total,
        average=total / n,
        max=ordered[-1],
        min=ordered[0],
        median=median,
        count=n,
    )


def _single(rows: Sequence[Row], column_x: str, column_y: str, reducer: Callable[[list[float]], float]) -> CalculationResult:
    values = column_values(rows, column_y)
    return CalculationResult(type="single", data=reducer(values) if values else 0.0)


def _sum(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return _single(rows, column_x, column_y, sum)


def _average(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return _single(rows, column_x, column_y, lambda v: sum(v) / len(v))


def _max(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return _single(rows, column_x, column_y, max)


def _min(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return _single(rows, column_x, column_y, min)


def _group(rows: Sequence[Row], column_x: str, column_y: str) -> tuple[dict[str, float], dict[str, int]]:
    # dicts keep first-seen key order, which is the emitted group order
    sums: dict[str, float] = {}
    counts: dict[str, int] = {}
    for row in rows:
        key = as_text(row.get(column_x))
        sums[key] = sums.get(key, 0.0) + as_number(row.get(column_y))
        counts[key] = counts.get(key, 0) + 1
    return sums, counts


def _group_sum(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    sums, _ = _group(rows, column_x, column_y)
    return CalculationResult(
        type="grouped",
        data=[GroupedPoint(name=name, value=value) for name, value in sums.items()],
    )


def _group_avg(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    sums, counts = _group(rows, column_x, column_y)
    return CalculationResult(
        type="grouped",
        data=[GroupedPoint(name=name, value=total / counts[name]) for name, total in sums.items()],
    )


def _trend_points(rows: Sequence[Row], column_x: str, column_y: str) -> list[TrendPoint]:
    return [TrendPoint(x=row.get(column_x), y=as_number(row.get(column_y))) for row in rows]


def _trend(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return CalculationResult(type="trend", data=_trend_points(rows, column_x, column_y))


def _compare(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    return CalculationResult(
        type="compare",
        data=[ComparePoint(category=row.get(column_x), value=as_number(row.get(column_y))) for row in rows],
    )


def _distribution(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    total = sum(column_values(rows, column_y))
    data: list[DistributionPoint] = []
    for row in rows:
        value = as_number(row.get(column_y))
        percent = value / total * 100 if total > 0 else 0.0
        data.append(DistributionPoint(type=as_text(row.get(column_x)), value=value, percent=percent))
    return CalculationResult(type="distribution", data=data)


def _statistics(rows: Sequence[Row], column_x: str, column_y: str) -> CalculationResult:
    values = column_values(rows, column_y)
    if not values:
        return CalculationResult(type="statistics", data=[], summary=Summary())
    return CalculationResult(
        type="statistics",
        data=_trend_points(rows, column_x, column_y),
        summary=summarize(values),
    )


FORMULAS: dict[FormulaName, Callable[[Sequence[Row], str, str], CalculationResult]] = {
    "sum": _sum,
    "average": _average,
    "max": _max,
    "min": _min,
    "groupSum": _group_sum,
    "groupAvg": _group_avg,
    "trend": _trend,
    "compare": _compare,
    "distribution": _distribution,
    "statistics": _statistics,
}


def evaluate_formula(rows: Sequence[Row], formula: str, column_x: str, column_y: str) -> CalculationResult:
    """Evaluate ``formula`` over ``rows`` using X as label and Y as value column."""
    handler = FORMULAS.get(formula)
    if handler is None:
        logger.debug("Unrecognized formula %r, returning raw rows", formula)
        return CalculationResult(type="raw", data=[dict(r) for r in rows])
    return handler(rows, column_x, column_y)
