"""Date parsing and period bucketing."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from .coercion import as_number, as_text
from .models import PeriodBucket, Row

logger = logging.getLogger(__name__)

_TIME = r"\d{2}:\d{2}:\d{2}"
_OFFSET = r"(?:Z|[+-]\d{2}:\d{2})"

# strptime accepts one-digit fields, so each layout is width-checked first
_DATE_LAYOUTS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (fmt, re.compile(pattern))
    for fmt, pattern in (
        ("%Y-%m-%d", r"\d{4}-\d{2}-\d{2}"),
        ("%Y/%m/%d", r"\d{4}/\d{2}/\d{2}"),
        ("%Y-%m-%d %H:%M:%S", r"\d{4}-\d{2}-\d{2} " + _TIME),
        ("%Y/%m/%d %H:%M:%S", r"\d{4}/\d{2}/\d{2} " + _TIME),
        ("%m/%d/%Y", r"\d{2}/\d{2}/\d{4}"),
        ("%d-%m-%Y", r"\d{2}-\d{2}-\d{4}"),
        ("%Y-%m-%dT%H:%M:%S%z", r"\d{4}-\d{2}-\d{2}T" + _TIME + _OFFSET),
        ("%Y-%m-%dT%H:%M:%S.%f%z", r"\d{4}-\d{2}-\d{2}T" + _TIME + r"\.\d{1,6}" + _OFFSET),
    )
)

DATE_FORMATS: tuple[str, ...] = tuple(fmt for fmt, _ in _DATE_LAYOUTS)

_WEEKDAY_INDEX = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}


def parse_date(text: str) -> datetime | None:
    """Try each format of ``DATE_FORMATS`` in order; None when all fail.

    Numeric fields must be zero-padded to their full width, so ``1/2/2023``
    is rejected.
    """
    for fmt, shape in _DATE_LAYOUTS:
        if shape.fullmatch(text) is None:
            continue
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class WeekPolicy:
    """Where a week bucket starts and how its label is suffixed."""
    start: str = "sunday"
    marker: str = " 周"

    def week_start(self, moment: datetime) -> datetime:
        anchor = _WEEKDAY_INDEX.get(self.start, 6)
        offset = (moment.weekday() - anchor) % 7
        return moment - timedelta(days=offset)


DEFAULT_WEEK_POLICY = WeekPolicy()


def period_key(moment: datetime, period: str, week_policy: WeekPolicy = DEFAULT_WEEK_POLICY) -> str:
    if period == "day":
        return moment.strftime("%Y-%m-%d")
    if period == "week":
        return week_policy.week_start(moment).strftime("%Y-%m-%d") + week_policy.marker
    if period == "month":
        return moment.strftime("%Y-%m")
    if period == "year":
        return moment.strftime("%Y")
    # unknown periods collapse every row into one "" bucket
    return ""


def aggregate_by_period(
    rows: Sequence[Row],
    date_column: str,
    value_column: str,
    period: str,
    week_policy: WeekPolicy = DEFAULT_WEEK_POLICY,
) -> list[PeriodBucket]:
    """Sum ``value_column`` per period bucket, sorted by label string."""
    totals: dict[str, float] = {}
    skipped = 0
    for row in rows:
        cell = row.get(date_column)
        if cell is None:
            skipped += 1
            continue
        moment = parse_date(as_text(cell))
        if moment is None:
            skipped += 1
            continue
        key = period_key(moment, period, week_policy)
        totals[key] = totals.get(key, 0.0) + as_number(row.get(value_column))

    if skipped:
        logger.debug("Skipped %d row(s) without a parseable '%s' date", skipped, date_column)
    return [PeriodBucket(period=key, value=totals[key]) for key in sorted(totals)]
