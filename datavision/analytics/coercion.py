"""Scalar cell coercion.

Cells are ``float``, ``str`` or ``None`` (absent). Every type check on a
cell lives in this module so the rest of the engine only ever asks for a
number or a string.
"""
from __future__ import annotations

import math
import re
from typing import Any

import numpy as np

from ..domain.types import CellValue

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_decimal(text: str) -> float | None:
    """Return the float for a plain decimal literal, or None.

    ``nan``/``inf`` spellings, underscores and padding whitespace are not
    decimals here even though ``float()`` would take them.
    """
    if not _DECIMAL_RE.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


def coerce_cell(raw: Any) -> CellValue:
    """Ingestion rule: type a decoded cell once, as number or text."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float, np.integer, np.floating)):
        value = float(raw)
        return value if math.isfinite(value) else None
    text = raw if isinstance(raw, str) else str(raw)
    number = parse_decimal(text)
    return text if number is None else number


def as_number(cell: CellValue) -> float:
    """Numeric view of a cell. Never raises; non-numeric input is 0."""
    if isinstance(cell, bool):
        return 0.0
    if isinstance(cell, (int, float)):
        value = float(cell)
        return value if math.isfinite(value) else 0.0
    if isinstance(cell, str):
        number = parse_decimal(cell)
        return 0.0 if number is None else number
    return 0.0


def as_text(cell: CellValue) -> str:
    """Display string of a cell; integral numbers drop the fraction."""
    if cell is None:
        return ""
    if isinstance(cell, str):
        return cell
    if isinstance(cell, bool):
        return "true" if cell else "false"
    if isinstance(cell, (int, float)):
        value = float(cell)
        if not math.isfinite(value):
            return str(value)
        if value == math.trunc(value):
            return str(int(value))
        return np.format_float_positional(value, unique=True, trim="-")
    return str(cell)
