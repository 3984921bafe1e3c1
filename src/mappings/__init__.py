"""
Mappings module - Contains header alias tables and classifier vocabularies
"""

from .header_mappings import HEADER_MAPPINGS
from .vocabulary_mappings import (
    AMOUNT_FIELDS,
    DELIVERY_MIN_HITS,
    DELIVERY_TOKENS,
    MONEY_FIELDS,
    QUANTITY_FIELDS,
    SCHEDULED_STATUSES,
    SERVICE_TOKENS,
    TEXT_HEADER_HINTS,
)


def get_aliases_for_field(field: str):
    """
    Get the declared aliases for a canonical field.

    Args:
        field: Canonical field name (e.g., "jobNumber")

    Returns:
        Tuple of alias strings, empty if the field is not in the table
    """
    for mapping in HEADER_MAPPINGS:
        if mapping["target_field"] == field:
            return mapping["source_fields"]
    return ()


def get_canonical_fields():
    """Return canonical field names in declaration order."""
    return tuple(mapping["target_field"] for mapping in HEADER_MAPPINGS)
