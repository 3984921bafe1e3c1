"""
Header alias table for scanned delivery tickets and service job sheets.

Entries are matched in declaration order; the first entry owning a matching
alias wins. Aliases are compared after the same cleaning applied to headers
(lowercase, punctuation removed), so "Job #" and "job" are equivalent.
"""

HEADER_MAPPINGS = (
    {
        "target_field": "jobNumber",
        "source_fields": (
            "job #", "job no", "job number", "job num", "job id", "job",
            "ticket #", "ticket no", "ticket number", "work order", "wo #",
        ),
    },
    {
        "target_field": "customer",
        "source_fields": ("client", "customer name", "customer", "cust", "cust name", "name", "bill to"),
    },
    {
        "target_field": "date",
        "source_fields": (
            "scheduled", "date", "job date", "scheduled date", "delivery date",
            "service date", "del date", "when",
        ),
    },
    {
        "target_field": "amount",
        "source_fields": ("total $", "amount", "total", "amt", "price", "cost", "job total", "invoice total"),
    },
    {
        "target_field": "jobAmount",
        "source_fields": ("job amount",),
    },
    {
        "target_field": "revenue",
        "source_fields": ("revenue", "sales"),
    },
    {
        "target_field": "dueAmount",
        "source_fields": ("amount due", "balance due", "due", "balance"),
    },
    {
        "target_field": "status",
        "source_fields": ("status", "job status", "state"),
    },
    {
        "target_field": "address",
        "source_fields": ("address", "service address", "location", "street"),
    },
    {
        "target_field": "tech",
        "source_fields": ("tech", "technician", "employee", "assigned tech", "assigned to"),
    },
    {
        "target_field": "description",
        "source_fields": ("description", "job description", "service", "work", "work performed", "notes"),
    },
    # Delivery ticket columns
    {
        "target_field": "record",
        "source_fields": ("record", "record #", "record no", "rec #", "ref", "refer", "reference"),
    },
    {
        "target_field": "account",
        "source_fields": ("account", "account #", "account no", "account number", "acct", "acct #"),
    },
    {
        "target_field": "driver",
        "source_fields": ("driver", "driver name", "drv"),
    },
    {
        "target_field": "truck",
        "source_fields": ("truck", "truck #", "truck no", "truck number", "vehicle", "unit"),
    },
    {
        "target_field": "gallons",
        "source_fields": ("gallons", "gallons delivered", "gal", "gals", "qty", "quantity"),
    },
    {
        "target_field": "extension",
        "source_fields": ("extension", "ext", "ext amount", "line total"),
    },
    {
        "target_field": "unitPrice",
        "source_fields": ("unit price", "price per gallon", "ppg", "rate"),
    },
)
