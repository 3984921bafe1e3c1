"""
Schema definitions and validation utilities.

Defines the value objects produced by the import pipeline (summaries,
classification and merge results), the typed accessors used to read
schema-free normalized rows, and row validation against a column map.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import math

from mappings import MONEY_FIELDS, QUANTITY_FIELDS

ColumnMap = Dict[int, str]
NormalizedRow = Dict[str, Any]


class ValidationError(Exception):
    """Raised when normalized rows do not match their column map."""
    pass


class FieldKind(str, Enum):
    """Value kinds a canonical field normalizes to."""
    MONEY = "money"
    QUANTITY = "quantity"
    DATE = "date"
    TEXT = "text"


class ImportType(str, Enum):
    """Document types the classifier can assign."""
    DELIVERY = "delivery"
    SERVICE = "service"


class ImportStatus(str, Enum):
    """Terminal status of a merged import."""
    ACCEPTED = "accepted"
    NEEDS_REVIEW = "needs_review"


def field_kind_for(field_name: str) -> FieldKind:
    """
    Get the value kind implied by a canonical field name.

    Money and quantity fields come from fixed sets; any field whose name
    contains "date" is a date; everything else is text.
    """
    if field_name in MONEY_FIELDS:
        return FieldKind.MONEY
    if field_name in QUANTITY_FIELDS:
        return FieldKind.QUANTITY
    if "date" in field_name.lower():
        return FieldKind.DATE
    return FieldKind.TEXT


def column_map_to_dict(column_map: ColumnMap) -> Dict[str, str]:
    """Serialize a column map with string keys, preserving column order."""
    return {str(index): name for index, name in column_map.items()}


@dataclass
class Summary:
    """Totals derived from a set of normalized rows."""
    total_rows: int = 0
    scheduled_jobs: int = 0
    scheduled_revenue: float = 0.0
    sales_total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "scheduledJobs": self.scheduled_jobs,
            "scheduledRevenue": self.scheduled_revenue,
            "salesTotal": self.sales_total,
        }


@dataclass
class ClassificationResult:
    """
    Outcome of document-type inference.

    Attributes:
        type: "delivery" or "service"
        confidence: hits / token_count (0.0-1.0)
        hits: Canonical field names that matched the delivery vocabulary
        token_count: Size of the delivery vocabulary
    """
    type: ImportType
    confidence: float
    hits: List[str] = field(default_factory=list)
    token_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "hits": list(self.hits),
            "tokenCount": self.token_count,
        }


@dataclass
class MergedImportResult:
    """
    Document-level result of merging per-page parses.

    Attributes:
        column_map: Column map of the first merged page
        rows: Rows from every page, each tagged with its 1-based page number
        summary: Summary recomputed over all rows
        confidence: Unweighted mean of page confidences
        status: accepted or needs_review
    """
    column_map: ColumnMap = field(default_factory=dict)
    rows: List[NormalizedRow] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)
    confidence: float = 0.0
    status: ImportStatus = ImportStatus.NEEDS_REVIEW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columnMap": column_map_to_dict(self.column_map),
            "rows": [dict(row) for row in self.rows],
            "summary": self.summary.to_dict(),
            "confidence": self.confidence,
            "status": self.status.value,
        }


# ============================================================================
# Typed accessors for schema-free rows
# ============================================================================

def row_number(row: NormalizedRow, field_name: str) -> float:
    """Read a numeric field; absent or non-numeric values read as 0."""
    value = row.get(field_name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return float(value)


def row_text(row: NormalizedRow, field_name: str) -> str:
    """Read a text field; absent values read as an empty string."""
    value = row.get(field_name)
    if value is None:
        return ""
    return str(value)


def row_date(row: NormalizedRow, field_name: str) -> Optional[str]:
    """Read an ISO date field; anything that is not YYYY-MM-DD reads as None."""
    value = row.get(field_name)
    if isinstance(value, str) and _is_iso_date(value):
        return value
    return None


def _is_iso_date(value: str) -> bool:
    return len(value) == 10 and value[4] == '-' and value[7] == '-' \
        and value.replace('-', '').isdigit()


# ============================================================================
# Validation
# ============================================================================

def validate_rows(rows: List[NormalizedRow], column_map: ColumnMap) -> List[str]:
    """
    Validate normalized rows against the column map that produced them.

    Every mapped field must be present in every row, and each value must
    have the type its field kind requires.

    Args:
        rows: Normalized rows
        column_map: Column map the rows were built from

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    fields = list(column_map.values())

    for i, row in enumerate(rows, 1):
        for field_name in fields:
            if field_name not in row:
                errors.append(f"Row {i}: Missing field '{field_name}'")
                continue
            error = _validate_field_value(field_name, row[field_name], i)
            if error:
                errors.append(error)

    return errors


def assert_valid_rows(rows: List[NormalizedRow], column_map: ColumnMap) -> None:
    """Raise ValidationError with every problem found by validate_rows."""
    errors = validate_rows(rows, column_map)
    if errors:
        raise ValidationError("; ".join(errors))


def _validate_field_value(field_name: str, value: Any, row_num: int) -> Optional[str]:
    """Validate a single value against its field kind."""
    kind = field_kind_for(field_name)

    if kind in (FieldKind.MONEY, FieldKind.QUANTITY):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"Row {row_num}, field '{field_name}': Expected number, got {type(value).__name__}"
        if math.isnan(value):
            return f"Row {row_num}, field '{field_name}': Expected number, got NaN"

    elif kind == FieldKind.DATE:
        if value is None:
            return None
        if not isinstance(value, str) or not _is_iso_date(value):
            return f"Row {row_num}, field '{field_name}': Invalid date format (expected YYYY-MM-DD), got '{value}'"

    elif not isinstance(value, str):
        return f"Row {row_num}, field '{field_name}': Expected string, got {type(value).__name__}"

    return None
