"""
Summary calculator for normalized ticket rows.
"""

from typing import Iterable
import logging

from mappings import AMOUNT_FIELDS, SCHEDULED_STATUSES
from schema import NormalizedRow, Summary, row_number, row_text

logger = logging.getLogger(__name__)


def status_key(status: str) -> str:
    """Lowercase a status and join its words with underscores ("In Progress" -> "in_progress")."""
    return "_".join(status.strip().lower().replace("-", " ").split())


def is_scheduled_status(status: str) -> bool:
    return status_key(status) in SCHEDULED_STATUSES


def row_amount(row: NormalizedRow) -> float:
    """Money value a row contributes: amount, else jobAmount, else revenue."""
    for field_name in AMOUNT_FIELDS:
        if field_name in row:
            return row_number(row, field_name)
    return 0.0


def calculate_summary(rows: Iterable[NormalizedRow]) -> Summary:
    """
    Reduce normalized rows into totals.

    scheduledJobs/scheduledRevenue count rows whose status is in the
    active-pipeline set; salesTotal sums every row's amount regardless
    of status.

    Args:
        rows: Normalized rows in any order

    Returns:
        Summary (all zeros for empty input)
    """
    summary = Summary()

    for row in rows:
        amount = row_amount(row)
        summary.total_rows += 1
        summary.sales_total += amount

        if is_scheduled_status(row_text(row, "status")):
            summary.scheduled_jobs += 1
            summary.scheduled_revenue += amount

    logger.debug(f"[summary] {summary.to_dict()}")
    return summary
