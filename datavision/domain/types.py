"""
Core type definitions and constants.
"""
from __future__ import annotations

from typing import Literal, Union

# Absent is None. Only analytics.coercion looks inside a cell.
CellValue = Union[float, str, None]

FormulaName = Literal[
    "sum", "average", "max", "min",
    "groupSum", "groupAvg",
    "trend", "compare", "distribution", "statistics",
]
ResultType = Literal["single", "grouped", "trend", "compare", "distribution", "statistics", "raw"]

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")


class ErrorCode:
    NOT_FOUND = "NOT_FOUND"
    INVALID_FILENAME = "INVALID_FILENAME"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    DECODE_FAILED = "DECODE_FAILED"
