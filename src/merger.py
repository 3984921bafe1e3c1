"""
Multi-page merger for ticket imports.

Combines per-page parse results, in upload order, into one document-level
result with a recomputed summary and an accept / needs-review decision.
"""

from typing import List, Sequence
import logging

from ocr.models import PageParseResult
from schema import ImportStatus, MergedImportResult, NormalizedRow
from summary import calculate_summary

logger = logging.getLogger(__name__)

# Merged confidence required for auto-acceptance
AUTO_ACCEPT_THRESHOLD = 0.95


def decide_status(confidence: float, auto_accept: bool) -> ImportStatus:
    """Accept only when the policy flag is on and confidence clears the threshold."""
    if auto_accept and confidence >= AUTO_ACCEPT_THRESHOLD:
        return ImportStatus.ACCEPTED
    return ImportStatus.NEEDS_REVIEW


def merge_page_results(pages: Sequence[PageParseResult], *, auto_accept: bool) -> MergedImportResult:
    """
    Merge per-page parse results into one import result.

    The first page's column map is used for the whole document. Rows are
    concatenated in page order and each is copied with a 1-based "page"
    tag; input rows are left untouched. Confidence is the unweighted mean
    of page confidences, and the summary is recomputed over all rows.
    Pages with success=False are skipped.

    Args:
        pages: Page results in upload order
        auto_accept: Operational policy flag allowing auto-acceptance

    Returns:
        MergedImportResult
    """
    merged_pages = []
    for position, page in enumerate(pages, 1):
        if not page.success:
            logger.warning(f"[merger] Skipping failed page {position} ({page.source_name or 'unnamed'}): {page.error}")
            continue
        merged_pages.append(page)

    if not merged_pages:
        logger.debug("[merger] No pages to merge")
        return MergedImportResult()

    column_map = dict(merged_pages[0].parsed.column_map)

    rows: List[NormalizedRow] = []
    for page_number, page in enumerate(merged_pages, 1):
        for row in page.parsed.rows:
            rows.append({**row, "page": page_number})

    confidence = sum(page.parsed.confidence for page in merged_pages) / len(merged_pages)
    status = decide_status(confidence, auto_accept)

    result = MergedImportResult(
        column_map=column_map,
        rows=rows,
        summary=calculate_summary(rows),
        confidence=confidence,
        status=status,
    )

    logger.debug(
        f"[merger] Merged {len(merged_pages)} pages: rows={len(rows)}, confidence={confidence:.3f}, "
        f"status={status.value}, scheduledJobs={result.summary.scheduled_jobs}"
    )
    return result
