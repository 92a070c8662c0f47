"""Dataset analytics: cell coercion, formulas, period buckets, comparison."""
from .errors import (
    AnalyticsError,
    DatasetNotFoundError,
    DecodeError,
    UnsupportedFileTypeError,
)
from .models import (
    CalculationResult,
    ComparePoint,
    Dataset,
    DatasetComparison,
    DatasetInfo,
    DatasetPayload,
    DecodedTable,
    DistributionPoint,
    GroupedPoint,
    LabeledValue,
    PeriodBucket,
    Summary,
    TrendPoint,
)
from .coercion import as_number, as_text, coerce_cell, parse_decimal
from .formulas import evaluate_formula, summarize
from .periods import WeekPolicy, aggregate_by_period, parse_date, period_key
from .comparator import compare_datasets

__all__ = [
    "AnalyticsError",
    "DatasetNotFoundError",
    "DecodeError",
    "UnsupportedFileTypeError",
    "CalculationResult",
    "ComparePoint",
    "Dataset",
    "DatasetComparison",
    "DatasetInfo",
    "DatasetPayload",
    "DecodedTable",
    "DistributionPoint",
    "GroupedPoint",
    "LabeledValue",
    "PeriodBucket",
    "Summary",
    "TrendPoint",
    "as_number",
    "as_text",
    "coerce_cell",
    "parse_decimal",
    "evaluate_formula",
    "summarize",
    "WeekPolicy",
    "aggregate_by_period",
    "parse_date",
    "period_key",
    "compare_datasets",
]
