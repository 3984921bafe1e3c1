"""
Tests for row accessors, row validation and result serialization.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from ocr import PageParseResult
from schema import ValidationError, assert_valid_rows, row_date, row_number, row_text, validate_rows

COLUMN_MAP = {0: "customer", 1: "amount", 2: "date"}


def test_accessors_apply_typed_defaults():
    row = {"customer": "Smith", "amount": 12.5, "date": "2024-03-05", "gallons": float("nan"), "status": None}
    assert row_number(row, "amount") == 12.5
    assert row_number(row, "gallons") == 0.0
    assert row_number(row, "missing") == 0.0
    assert row_number(row, "customer") == 0.0
    assert row_text(row, "status") == ""
    assert row_text(row, "customer") == "Smith"
    assert row_date(row, "date") == "2024-03-05"
    assert row_date(row, "customer") is None


def test_validate_rows_accepts_normalized_rows():
    rows = [{"customer": "Smith", "amount": 10.0, "date": None}]
    assert validate_rows(rows, COLUMN_MAP) == []
    assert_valid_rows(rows, COLUMN_MAP)


def test_validate_rows_reports_problems():
    rows = [
        {"customer": "Smith", "amount": "10", "date": "3/5/2024"},
        {"amount": 1.0, "date": None},
    ]
    errors = validate_rows(rows, COLUMN_MAP)
    assert errors == [
        "Row 1, field 'amount': Expected number, got str",
        "Row 1, field 'date': Invalid date format (expected YYYY-MM-DD), got '3/5/2024'",
        "Row 2: Missing field 'customer'",
    ]
    with pytest.raises(ValidationError):
        assert_valid_rows(rows, COLUMN_MAP)


def test_failed_page_result_serialization():
    data = PageParseResult.failed("OCR timeout").to_dict()
    assert data["success"] is False
    assert data["error"] == "OCR timeout"
    assert data["parsed"]["rows"] == []
    assert data["parsed"]["summary"]["totalRows"] == 0
