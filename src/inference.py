"""
Document-type inference for ticket imports.

Decides whether an import is a delivery ticket or a service job sheet
from the canonical field names in its column map, and provides the fuzzy
string helpers used for header matching.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from config import RECLASSIFY_MIN_CONFIDENCE
from mappings import DELIVERY_MIN_HITS, DELIVERY_TOKENS, SERVICE_TOKENS
from schema import ClassificationResult, ImportType

logger = logging.getLogger(__name__)


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate Levenshtein distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        Edit distance (number of character changes needed)
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def fuzzy_match_header(header: str, target: str, threshold: float = 0.75) -> bool:
    """
    Check if header fuzzy matches target using Levenshtein distance.

    Args:
        header: Actual header from file
        target: Target header to match
        threshold: Similarity threshold (0.0-1.0)

    Returns:
        True if similarity >= threshold
    """
    if not header or not target:
        return False

    header_norm = header.lower().strip()
    target_norm = target.lower().strip()

    if header_norm == target_norm:
        return True

    max_len = max(len(header_norm), len(target_norm))
    distance = levenshtein_distance(header_norm, target_norm)
    similarity = 1.0 - (distance / max_len)

    return similarity >= threshold


def infer_import_type(column_map: Optional[Mapping[Any, str]], rows: Optional[List[Dict[str, Any]]] = None) -> ClassificationResult:
    """
    Classify an import as "delivery" or "service" from its column map.

    Delivery tickets carry a recognizable set of fields (driver, truck,
    gallons, ...). The score is the number of distinct mapped field names
    found in the delivery vocabulary; four or more hits means delivery,
    anything else falls back to service. Rows are accepted for call-site
    symmetry but do not influence the score.

    Args:
        column_map: Column index -> canonical field name
        rows: Normalized rows (unused by the current scoring)

    Returns:
        ClassificationResult with type, confidence, hits and token count
    """
    field_names = {
        str(name).lower().strip()
        for name in (column_map or {}).values()
        if name
    }

    hits = [token for token in DELIVERY_TOKENS if token in field_names]
    token_count = len(DELIVERY_TOKENS)
    confidence = len(hits) / token_count
    import_type = ImportType.DELIVERY if len(hits) >= DELIVERY_MIN_HITS else ImportType.SERVICE

    service_hits = [token for token in SERVICE_TOKENS if token in field_names]
    logger.debug(
        f"[inference] type={import_type.value}, confidence={confidence:.2f}, "
        f"delivery_hits={hits}, service_hits={service_hits}, rows={len(rows or [])}"
    )

    return ClassificationResult(
        type=import_type,
        confidence=confidence,
        hits=hits,
        token_count=token_count,
    )


def reclassify_imports(
    imports: List[Dict[str, Any]],
    min_confidence: float = RECLASSIFY_MIN_CONFIDENCE,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Re-run detection over stored imports still typed as service.

    Only records whose meta has no importType, or importType "service",
    are checked. A record is reclassified when detection says delivery
    with at least min_confidence. Records are not modified; the new meta
    for each reclassified record is returned under "updates".

    Args:
        imports: Stored import records ({"id", "meta", "parsed": {"columnMap", "rows"}})
        min_confidence: Minimum detection confidence required to reclassify
        now: Timestamp recorded as reclassified_at (defaults to current UTC time)

    Returns:
        Dictionary with total, reclassified, skipped, details and updates
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    candidates = [
        record for record in imports
        if (record.get("meta") or {}).get("importType") in (None, "", ImportType.SERVICE.value)
    ]

    summary: Dict[str, Any] = {
        "total": len(candidates),
        "reclassified": 0,
        "skipped": 0,
        "details": [],
        "updates": {},
    }

    for record in candidates:
        parsed = record.get("parsed") or {}
        detection = infer_import_type(parsed.get("columnMap") or {}, parsed.get("rows") or [])
        import_id = record.get("id")

        logger.debug(f"[inference] Import {import_id}: type={detection.type.value}, confidence={detection.confidence}")

        if detection.type == ImportType.DELIVERY and detection.confidence >= min_confidence:
            meta = dict(record.get("meta") or {})
            meta["importType"] = ImportType.DELIVERY.value
            meta["reclassified_at"] = timestamp
            meta["reclassified_by"] = "system"
            meta["detection"] = detection.to_dict()

            summary["updates"][import_id] = meta
            summary["reclassified"] += 1
            summary["details"].append({
                "id": import_id,
                "action": "reclassified",
                "confidence": detection.confidence,
                "hits": detection.hits,
            })
        else:
            summary["skipped"] += 1
            summary["details"].append({
                "id": import_id,
                "action": "skipped",
                "type": detection.type.value,
                "confidence": detection.confidence,
            })

    logger.info(f"[inference] Reclassification: {summary['reclassified']} of {summary['total']} imports moved to delivery")
    return summary
