"""
Tests for merging per-page results into one import.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

from merger import AUTO_ACCEPT_THRESHOLD, decide_status, merge_page_results
from ocr import PageParseResult, ParsedPage
from schema import ImportStatus


def page(rows, confidence, column_map=None):
    return PageParseResult(
        success=True,
        ocr_text="text",
        parsed=ParsedPage(
            column_map=column_map or {0: "customer", 1: "status", 2: "amount"},
            rows=rows,
            confidence=confidence,
        ),
    )


PAGE_ONE = [
    {"customer": "Smith", "status": "scheduled", "amount": 100.0},
    {"customer": "Jones", "status": "completed", "amount": 50.0},
]
PAGE_TWO = [
    {"customer": "Adams", "status": "assigned", "amount": 25.0},
]


def test_merge_zero_pages():
    merged = merge_page_results([], auto_accept=True)
    assert merged.status == ImportStatus.NEEDS_REVIEW
    assert merged.rows == []
    assert merged.column_map == {}
    assert merged.confidence == 0.0
    assert merged.summary.to_dict() == {"totalRows": 0, "scheduledJobs": 0, "scheduledRevenue": 0, "salesTotal": 0}


def test_high_confidence_is_accepted_with_auto_accept():
    merged = merge_page_results([page(PAGE_ONE, 0.9), page(PAGE_TWO, 1.0)], auto_accept=True)
    assert merged.confidence == pytest.approx(0.95)
    assert merged.status == ImportStatus.ACCEPTED


def test_high_confidence_needs_review_without_auto_accept():
    merged = merge_page_results([page(PAGE_ONE, 0.9), page(PAGE_TWO, 1.0)], auto_accept=False)
    assert merged.confidence == pytest.approx(0.95)
    assert merged.status == ImportStatus.NEEDS_REVIEW


def test_low_confidence_needs_review():
    merged = merge_page_results([page(PAGE_ONE, 0.9), page(PAGE_TWO, 0.9)], auto_accept=True)
    assert merged.status == "needs_review"


def test_auto_accept_is_keyword_only():
    with pytest.raises(TypeError):
        merge_page_results([], True)
    with pytest.raises(TypeError):
        merge_page_results([])


def test_rows_are_tagged_and_ordered_by_page():
    merged = merge_page_results([page(PAGE_ONE, 1.0), page(PAGE_TWO, 1.0)], auto_accept=False)

    assert [row["page"] for row in merged.rows] == [1, 1, 2]
    assert [row["customer"] for row in merged.rows] == ["Smith", "Jones", "Adams"]
    last_page_one = max(i for i, row in enumerate(merged.rows) if row["page"] == 1)
    first_page_two = min(i for i, row in enumerate(merged.rows) if row["page"] == 2)
    assert last_page_one < first_page_two


def test_input_rows_are_not_mutated():
    rows = [dict(PAGE_ONE[0])]
    merge_page_results([page(rows, 1.0)], auto_accept=False)
    assert "page" not in rows[0]


def test_summary_is_recomputed_over_all_rows():
    merged = merge_page_results([page(PAGE_ONE, 1.0), page(PAGE_TWO, 1.0)], auto_accept=False)
    assert merged.summary.to_dict() == {
        "totalRows": 3,
        "scheduledJobs": 2,
        "scheduledRevenue": 125.0,
        "salesTotal": 175.0,
    }


def test_first_page_column_map_wins():
    first = page(PAGE_ONE, 1.0, column_map={0: "customer", 1: "status", 2: "amount"})
    second = page(PAGE_TWO, 1.0, column_map={0: "jobNumber", 1: "customer"})
    merged = merge_page_results([first, second], auto_accept=False)
    assert merged.column_map == {0: "customer", 1: "status", 2: "amount"}


def test_failed_pages_are_skipped():
    failed = PageParseResult.failed("OCR timeout", source_name="scan2.jpg")
    merged = merge_page_results([page(PAGE_ONE, 1.0), failed, page(PAGE_TWO, 0.8)], auto_accept=False)

    assert [row["page"] for row in merged.rows] == [1, 1, 2]
    assert merged.confidence == pytest.approx(0.9)


def test_decide_status_threshold():
    assert decide_status(AUTO_ACCEPT_THRESHOLD, True) == ImportStatus.ACCEPTED
    assert decide_status(0.94, True) == ImportStatus.NEEDS_REVIEW
    assert decide_status(1.0, False) == ImportStatus.NEEDS_REVIEW


def test_to_dict_uses_string_column_keys():
    merged = merge_page_results([page(PAGE_ONE, 1.0)], auto_accept=False)
    data = merged.to_dict()
    assert data["columnMap"] == {"0": "customer", "1": "status", "2": "amount"}
    assert data["status"] == "needs_review"
    assert data["rows"][0]["page"] == 1
