"""
Tests for turning extracted pages into column maps and normalized rows.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from ocr import ExtractedPage, RawFragment, RawRow, build_column_map, build_rows, parse_page
from schema import validate_rows
from summary import calculate_summary


SERVICE_HEADER = ["Job #", "Customer", "Date", "Total $", "Status"]


def test_build_column_map_keeps_column_positions():
    column_map = build_column_map(SERVICE_HEADER + ["Mystery"])
    assert column_map == {
        0: "jobNumber",
        1: "customer",
        2: "date",
        3: "amount",
        4: "status",
        5: "column5",
    }
    assert list(column_map) == [0, 1, 2, 3, 4, 5]


def test_build_column_map_duplicate_field_falls_back():
    column_map = build_column_map(["Amount", "Total", "Customer"])
    assert column_map == {0: "amount", 1: "column1", 2: "customer"}
    assert len(set(column_map.values())) == 3


def test_build_rows_normalizes_by_field_kind():
    column_map = build_column_map(SERVICE_HEADER)
    rows = build_rows(column_map, [
        ["1001", " Smith ", "3/5/2024", "$1,200.50", "Scheduled"],
        ["1002", "Jones", "garbage", "n/a"],
    ])
    assert rows == [
        {"jobNumber": "1001", "customer": "Smith", "date": "2024-03-05", "amount": 1200.5, "status": "Scheduled"},
        {"jobNumber": "1002", "customer": "Jones", "date": None, "amount": 0.0, "status": ""},
    ]
    assert validate_rows(rows, column_map) == []


def test_build_rows_ignores_extra_cells_and_blank_rows():
    column_map = build_column_map(["Customer", "Gallons"])
    rows = build_rows(column_map, [
        ["Smith", "100", "extra"],
        ["", "  "],
        ["Jones", "50.5"],
    ])
    assert rows == [{"customer": "Smith", "gallons": 100.0}, {"customer": "Jones", "gallons": 50.5}]


def test_build_rows_preserves_input_order():
    column_map = build_column_map(["Customer", "Amount"])
    data = [["Zed", "1"], ["Alpha", "3"], ["Mid", "2"]]
    assert [r["customer"] for r in build_rows(column_map, data)] == ["Zed", "Alpha", "Mid"]


def test_rebuilding_normalized_rows_changes_nothing():
    column_map = build_column_map(SERVICE_HEADER + ["Gallons"])
    rows = build_rows(column_map, [
        ["1001", "Smith", "03/05/2024", "$100", "Scheduled", "12.5"],
        ["1002", "Jones", "", "250", "Completed", ""],
    ])

    typed_cells = [[row[name] for name in column_map.values()] for row in rows]
    rebuilt = build_rows(column_map, typed_cells)

    assert rebuilt == rows
    assert calculate_summary(rebuilt) == calculate_summary(rows)


def test_parse_page_from_delimited_rows():
    page = ExtractedPage(
        ocr_text="...",
        rows=[RawRow(SERVICE_HEADER), RawRow(["1001", "Smith", "2024-03-05", "$100", "Scheduled"])],
        confidence=1.0,
        source_name="jobs.csv",
    )
    result = parse_page(page)

    assert result.success
    assert result.ocr_text == "..."
    assert result.parsed.column_map[3] == "amount"
    assert result.parsed.rows[0]["amount"] == 100.0
    assert result.parsed.summary.scheduled_jobs == 1
    assert result.parsed.confidence == 1.0


def test_parse_page_confidence_is_capped_by_mapped_ratio():
    page = ExtractedPage(rows=[RawRow(["Customer", "Zebra", "Amount", "Quux"]), RawRow(["a", "b", "1", "c"])])
    assert parse_page(page).parsed.confidence == pytest.approx(0.5)

    low = ExtractedPage(rows=page.rows, confidence=0.3)
    assert parse_page(low).parsed.confidence == pytest.approx(0.3)


def test_parse_page_from_fragments():
    fragments = [
        RawFragment("Record", 10, 10), RawFragment("Customer", 100, 11), RawFragment("Gallons", 200, 9),
        RawFragment("R-1", 12, 40), RawFragment("Smith", 98, 42), RawFragment("150.0", 203, 41),
        RawFragment("R-2", 11, 70), RawFragment("Jones", 101, 69), RawFragment("75", 199, 71),
    ]
    result = parse_page(ExtractedPage(rows=fragments, confidence=0.92))

    assert result.success
    assert result.parsed.column_map == {0: "record", 1: "customer", 2: "gallons"}
    assert result.parsed.rows == [
        {"record": "R-1", "customer": "Smith", "gallons": 150.0},
        {"record": "R-2", "customer": "Jones", "gallons": 75.0},
    ]
    assert result.parsed.confidence == pytest.approx(0.92)


def test_parse_page_from_raw_text():
    text = "Job #   Customer   Amount\n1001   Smith   $120.00\n"
    result = parse_page(ExtractedPage(ocr_text=text, confidence=0.8))
    assert result.parsed.rows == [{"jobNumber": "1001", "customer": "Smith", "amount": 120.0}]
    assert result.parsed.summary.sales_total == 120.0


def test_parse_page_without_content():
    result = parse_page(ExtractedPage())
    assert result.success
    assert result.parsed.column_map == {}
    assert result.parsed.rows == []
    assert result.parsed.confidence == 0.0


def test_parse_page_captures_errors():
    result = parse_page(ExtractedPage(rows=[RawRow(None)], source_name="bad.csv"))
    assert not result.success
    assert "Parse failed" in result.error
    assert result.source_name == "bad.csv"
    assert result.parsed.rows == []


def test_strict_validation_fails_pages_with_mistyped_rows(monkeypatch):
    import config
    from ocr import table_extract

    page = ExtractedPage(rows=[RawRow(["Customer", "Amount"]), RawRow(["Smith", "10"])], source_name="p.csv")
    monkeypatch.setattr(table_extract, "build_rows", lambda column_map, data_rows: [{"customer": "Smith", "amount": "10"}])

    monkeypatch.setattr(config, "STRICT_ROW_VALIDATION", False)
    assert parse_page(page).success

    monkeypatch.setattr(config, "STRICT_ROW_VALIDATION", True)
    result = parse_page(page)
    assert not result.success
    assert "Expected number" in result.error


def test_strict_validation_passes_built_rows(monkeypatch):
    import config

    monkeypatch.setattr(config, "STRICT_ROW_VALIDATION", True)
    page = ExtractedPage(rows=[RawRow(SERVICE_HEADER), RawRow(["1001", "Smith", "bad date", "n/a", ""])])
    result = parse_page(page)
    assert result.success
    assert result.parsed.rows[0]["date"] is None
