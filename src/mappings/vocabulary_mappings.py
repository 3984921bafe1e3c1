"""
Fixed vocabularies used by classification, summaries and value normalization.
"""

# Canonical field names that identify a delivery ticket layout.
# The size of this tuple is the classifier's confidence denominator.
DELIVERY_TOKENS = (
    "record",
    "customer",
    "account",
    "driver",
    "truck",
    "gallons",
    "amount",
    "extension",
)

# Complement vocabulary; service is the fallback type and is not scored.
SERVICE_TOKENS = (
    "job",
    "customer",
    "tech",
    "service",
    "date",
    "status",
)

# Minimum delivery hits for a "delivery" verdict.
DELIVERY_MIN_HITS = 4

# Job statuses that belong to the active pipeline.
SCHEDULED_STATUSES = frozenset({
    "scheduled",
    "assigned",
    "confirmed",
    "in_progress",
})

MONEY_FIELDS = frozenset({
    "jobAmount",
    "amount",
    "revenue",
    "dueAmount",
    "extension",
    "unitPrice",
})

QUANTITY_FIELDS = frozenset({
    "gallons",
})

# Lookup order for the money value a summary counts per row.
AMOUNT_FIELDS = ("amount", "jobAmount", "revenue")

# Words that mark the header line in raw OCR text.
TEXT_HEADER_HINTS = ("job", "customer", "date")
