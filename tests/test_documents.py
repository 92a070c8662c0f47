"""Contract tests for tabular file decoding.

Verifies that:
- CSV headers and cells are typed by the ingestion rule
- Malformed CSV records are skipped, not fatal
- XLSX first sheets decode the same way as CSV
- Unsupported or corrupt files raise DecodeError subclasses
"""
from __future__ import annotations

import io

import openpyxl
import pytest

from datavision.analytics.errors import DecodeError, UnsupportedFileTypeError
from datavision.documents import (
    DocumentType,
    build_table,
    build_table_from_records,
    decode_table,
    get_document_type_from_filename,
    sanitize_filename,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def xlsx_bytes() -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sales"
    ws.append(["region", "sales", "note"])
    ws.append(["A", 10, "first"])
    ws.append(["B", 20.5, "second"])
    other = wb.create_sheet("Ignored")
    other.append(["x"])
    other.append([1])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ============================================================================
# Filenames
# ============================================================================

def test_document_type_from_filename() -> None:
    assert get_document_type_from_filename("a.CSV") == DocumentType.CSV
    assert get_document_type_from_filename("a.xlsx") == DocumentType.XLSX
    assert get_document_type_from_filename("a.xls") == DocumentType.XLS
    assert get_document_type_from_filename("a.pdf") is None


def test_sanitize_filename_strips_paths() -> None:
    assert sanitize_filename("../../etc/sales.csv") == "sales.csv"
    assert sanitize_filename("C:\\data\\q1.xlsx") == "q1.xlsx"
    assert sanitize_filename("销售 数据.csv") == "销售 数据.csv"


# ============================================================================
# CSV
# ============================================================================

def test_decode_csv_types_cells() -> None:
    content = "region,sales,date\nA,10,2023-01-02\nB,abc,2023-01-03\nC,,x\n".encode("utf-8")
    table = decode_table(content, "sales.csv")
    assert table.headers == ("region", "sales", "date")
    assert table.rows[0] == {"region": "A", "sales": 10.0, "date": "2023-01-02"}
    assert table.rows[1]["sales"] == "abc"
    assert table.rows[2]["sales"] == ""


def test_decode_csv_tolerates_bom_and_blank_lines() -> None:
    content = "\ufeffname,value\n\nx,1\n\ny,2\n".encode("utf-8")
    table = decode_table(content, "data.csv")
    assert table.headers == ("name", "value")
    assert [r["value"] for r in table.rows] == [1.0, 2.0]


def test_decode_csv_skips_wide_records_and_pads_short_ones() -> None:
    content = b"a,b\n1,2\n3,4,5\n6\n7,8\n"
    table = decode_table(content, "data.csv")
    assert [r["a"] for r in table.rows] == [1.0, 6.0, 7.0]
    assert table.rows[1]["b"] == ""


def test_decode_empty_csv() -> None:
    table = decode_table(b"", "empty.csv")
    assert table.headers == ()
    assert table.rows == ()


def test_decode_header_only_csv() -> None:
    table = decode_table(b"a,b\n", "h.csv")
    assert table.headers == ("a", "b")
    assert table.rows == ()


# ============================================================================
# Excel
# ============================================================================

def test_decode_xlsx_reads_first_sheet(xlsx_bytes: bytes) -> None:
    table = decode_table(xlsx_bytes, "report.xlsx")
    assert table.headers == ("region", "sales", "note")
    assert [r["region"] for r in table.rows] == ["A", "B"]
    assert [r["sales"] for r in table.rows] == [10.0, 20.5]


def test_decode_xlsx_ignores_cells_past_header_width() -> None:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["a", "b"])
    ws.append([1, 2, 3])
    ws.append([4, 5])
    buf = io.BytesIO()
    wb.save(buf)
    table = decode_table(buf.getvalue(), "wide.xlsx")
    assert table.headers == ("a", "b")
    assert list(table.rows) == [{"a": 1.0, "b": 2.0}, {"a": 4.0, "b": 5.0}]


def test_decode_corrupt_xlsx_raises() -> None:
    with pytest.raises(DecodeError):
        decode_table(b"definitely not a zip archive", "broken.xlsx")


def test_decode_unsupported_type() -> None:
    with pytest.raises(UnsupportedFileTypeError):
        decode_table(b"%PDF-1.4", "paper.pdf")


# ============================================================================
# Table building
# ============================================================================

def test_duplicate_headers_keep_first_position_last_value() -> None:
    table = build_table(["a", "b", "a"], [["1", "2", "3"]])
    assert table.headers == ("a", "b")
    assert table.rows[0] == {"a": 3.0, "b": 2.0}


def test_build_table_drops_cells_past_header_width() -> None:
    table = build_table(["a"], [["1", "extra"]])
    assert table.rows[0] == {"a": 1.0}


def test_build_table_from_records_keeps_absent_keys_absent() -> None:
    table = build_table_from_records(["a", "b"], [{"a": "5", "b": None}, {"a": 1, "zzz": 9}])
    assert table.rows[0] == {"a": 5.0, "b": None}
    assert table.rows[1] == {"a": 1.0}
