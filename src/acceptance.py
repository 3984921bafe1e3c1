"""
Acceptance of processed imports into delivery tickets or service jobs.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from normalizer import normalize_record
from schema import ImportType, NormalizedRow, row_date, row_number, row_text

logger = logging.getLogger(__name__)


class AcceptanceError(Exception):
    """Raised when an import record cannot be accepted."""
    pass


def determine_import_type(record: Mapping[str, Any]) -> str:
    """
    Decide which record kind an import turns into.

    meta.importType wins when set. Otherwise any row carrying gallons or
    qty makes it a delivery import; everything else is service.
    """
    meta = record.get("meta") or {}
    if meta.get("importType"):
        return meta["importType"]

    rows = (record.get("parsed") or {}).get("rows") or []
    if any("gallons" in row or "qty" in row for row in rows):
        return ImportType.DELIVERY.value
    return ImportType.SERVICE.value


def _import_meta(row: NormalizedRow, import_id: Any, imported_at: str) -> Dict[str, Any]:
    return {
        "importId": import_id,
        "importedAt": imported_at,
        "page": row.get("page"),
    }


def _first_number(row: NormalizedRow, *fields: str) -> float:
    for field_name in fields:
        value = row_number(row, field_name)
        if value:
            return value
    return 0.0


def _first_text(row: NormalizedRow, *fields: str) -> str:
    for field_name in fields:
        value = row_text(row, field_name).strip()
        if value:
            return value
    return ""


def build_delivery_tickets(
    rows: Sequence[NormalizedRow],
    import_id: Any,
    imported_at: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Map merged rows onto delivery ticket records.

    Args:
        rows: Merged, page-tagged rows
        import_id: Id of the import the rows came from
        imported_at: ISO timestamp for meta.importedAt (defaults to now, UTC)
        today: Date used when a row has none (defaults to today)

    Returns:
        List of delivery ticket dicts
    """
    imported_at = imported_at or datetime.now(timezone.utc).isoformat()
    fallback_date = (today or date.today()).isoformat()

    tickets = []
    for row in rows:
        tickets.append({
            "customer": row_text(row, "customer"),
            "address": row_text(row, "address"),
            "date": row_date(row, "date") or fallback_date,
            "qty": _first_number(row, "gallons", "qty"),
            "amount": row_number(row, "amount"),
            "status": row_text(row, "status") or "pending",
            "meta": _import_meta(row, import_id, imported_at),
        })
    return tickets


def build_service_jobs(
    rows: Sequence[NormalizedRow],
    import_id: Any,
    imported_at: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Map merged rows onto service job records.

    Args:
        rows: Merged, page-tagged rows
        import_id: Id of the import the rows came from
        imported_at: ISO timestamp for meta.importedAt (defaults to now, UTC)
        today: Date used when a row has none (defaults to today)

    Returns:
        List of service job dicts
    """
    imported_at = imported_at or datetime.now(timezone.utc).isoformat()
    fallback_date = (today or date.today()).isoformat()

    jobs = []
    for row in rows:
        jobs.append({
            "job_number": _first_text(row, "jobNumber", "job"),
            "customer": row_text(row, "customer"),
            "address": row_text(row, "address"),
            "job_date": row_date(row, "date") or fallback_date,
            "job_amount": _first_number(row, "amount", "jobAmount"),
            "status": row_text(row, "status") or "pending",
            "tech": _first_text(row, "tech", "technician"),
            "description": _first_text(row, "description", "service"),
            "meta": _import_meta(row, import_id, imported_at),
        })
    return jobs


def accept_import(record: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Turn a processed import record into delivery tickets or service jobs.

    Stored rows are re-normalized first, since the persistence layer may
    hand back numbers as strings.

    Args:
        record: Stored import ({"id", "status", "meta", "parsed": {"rows", ...}})
        today: Date used for rows without one (defaults to today)

    Returns:
        {"importType", "deliveryTickets"} or {"importType", "serviceJobs"}

    Raises:
        AcceptanceError: The import is already accepted or was never processed
    """
    import_id = record.get("id")

    if record.get("status") == "accepted":
        raise AcceptanceError(f"Import {import_id} has already been accepted")

    parsed = record.get("parsed")
    if not parsed or parsed.get("rows") is None:
        raise AcceptanceError(f"Import {import_id} must be processed before acceptance")

    import_type = determine_import_type(record)
    rows = [normalize_record(row) for row in parsed["rows"]]
    imported_at = datetime.now(timezone.utc).isoformat()

    logger.debug(f"[acceptance] Import {import_id}: type={import_type}, rows={len(rows)}")

    if import_type == ImportType.DELIVERY.value:
        return {
            "importType": import_type,
            "deliveryTickets": build_delivery_tickets(rows, import_id, imported_at, today),
        }
    return {
        "importType": import_type,
        "serviceJobs": build_service_jobs(rows, import_id, imported_at, today),
    }
