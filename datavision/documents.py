"""
Tabular file decoding.

Turns an uploaded CSV / XLSX / XLS byte stream into headers plus rows of
typed cells. Every cell is read as text and typed once with
``coerce_cell``; nothing downstream re-decodes a file.
"""
from __future__ import annotations

import io
import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Sequence

import pandas as pd

from .analytics.coercion import as_text, coerce_cell
from .analytics.errors import DecodeError, UnsupportedFileTypeError
from .analytics.models import DecodedTable, Row

logger = logging.getLogger(__name__)


class DocumentType(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"


_EXCEL_ENGINES = {DocumentType.XLSX: "openpyxl", DocumentType.XLS: "xlrd"}


# ============================================================================
# Utility Functions
# ============================================================================

def get_document_type_from_filename(filename: str) -> DocumentType | None:
    """Determine document type from filename extension."""
    ext = Path(filename).suffix.lower()
    if ext == ".csv":
        return DocumentType.CSV
    elif ext == ".xlsx":
        return DocumentType.XLSX
    elif ext == ".xls":
        return DocumentType.XLS
    return None


def sanitize_filename(filename: str) -> str:
    """Strip directory parts and control characters from a client filename."""
    filename = os.path.basename(filename.replace("\\", "/"))
    filename = re.sub(r"[\x00-\x1f\x7f]", "", filename).strip()
    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext
    return filename


# ============================================================================
# Table Building
# ============================================================================

def _unique_headers(raw_headers: Sequence[Any]) -> tuple[list[str], list[int]]:
    """Render headers as text; a repeated name keeps its first position.

    Returns the unique header list and, per source column, the index of the
    header it writes to.
    """
    headers: list[str] = []
    positions: dict[str, int] = {}
    targets: list[int] = []
    for raw in raw_headers:
        name = raw if isinstance(raw, str) else as_text(coerce_cell(raw))
        if name not in positions:
            positions[name] = len(headers)
            headers.append(name)
        targets.append(positions[name])
    return headers, targets


def build_table(raw_headers: Sequence[Any], raw_rows: Iterable[Sequence[Any]]) -> DecodedTable:
    """Type a header row plus value rows into a ``DecodedTable``.

    Cells past the header width are dropped; for duplicate header names the
    rightmost column wins.
    """
    headers, targets = _unique_headers(raw_headers)
    rows: list[Row] = []
    for raw_row in raw_rows:
        row: Row = {}
        for i, raw in enumerate(raw_row):
            if i >= len(targets):
                break
            row[headers[targets[i]]] = coerce_cell(raw)
        rows.append(row)
    return DecodedTable(headers=tuple(headers), rows=tuple(rows))


def build_table_from_records(headers: Sequence[Any], records: Iterable[dict[str, Any]]) -> DecodedTable:
    """Type an already-decoded table given as header list + dict rows.

    Keys absent from a record stay absent; keys not listed in ``headers``
    are ignored.
    """
    unique, _ = _unique_headers(headers)
    rows: list[Row] = []
    for record in records:
        rows.append({h: coerce_cell(record[h]) for h in unique if h in record})
    return DecodedTable(headers=tuple(unique), rows=tuple(rows))


def _trim_trailing_blanks(cells: Sequence[Any]) -> list[Any]:
    cells = list(cells)
    while cells and (cells[-1] is None or cells[-1] == ""):
        cells.pop()
    return cells


def _frame_to_table(df: pd.DataFrame, trim_header: bool = False) -> DecodedTable:
    """First frame row is the header; the rest are value rows.

    With ``trim_header`` the header row loses its trailing empty cells, so
    a sheet whose value rows run wider than the header does not gain a
    blank column.
    """
    if df.empty:
        return DecodedTable(headers=(), rows=())
    records = df.itertuples(index=False, name=None)
    header_row = list(next(records))
    if trim_header:
        header_row = _trim_trailing_blanks(header_row)
    return build_table(header_row, records)


# ============================================================================
# Decoders
# ============================================================================

def decode_csv(content: bytes) -> DecodedTable:
    """First record is the header; records wider than it are skipped.

    Short records are padded with empty cells rather than skipped.
    """
    try:
        df = pd.read_csv(
            io.BytesIO(content),
            header=None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return DecodedTable(headers=(), rows=())
    except (pd.errors.ParserError, ValueError) as exc:
        raise DecodeError(f"Malformed CSV content: {exc}") from exc
    return _frame_to_table(df)


def decode_excel(content: bytes, doc_type: DocumentType) -> DecodedTable:
    """Read the first sheet; its first row is the header."""
    try:
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=str,
            na_filter=False,
            engine=_EXCEL_ENGINES[doc_type],
        )
    except ImportError as exc:
        raise DecodeError(f"Excel engine '{_EXCEL_ENGINES[doc_type]}' is not installed") from exc
    except Exception as exc:
        raise DecodeError(f"Malformed {doc_type.value.upper()} content: {exc}") from exc
    return _frame_to_table(df, trim_header=True)


def decode_table(content: bytes, filename: str) -> DecodedTable:
    """Decode an uploaded file by its extension."""
    doc_type = get_document_type_from_filename(filename)
    if doc_type is None:
        raise UnsupportedFileTypeError(f"Unsupported file type: {Path(filename).suffix or filename}")
    if doc_type == DocumentType.CSV:
        table = decode_csv(content)
    else:
        table = decode_excel(content, doc_type)
    logger.info("Decoded %s: %d column(s), %d row(s)", filename, len(table.headers), len(table.rows))
    return table
