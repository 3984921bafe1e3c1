"""
Field normalizer for OCR and spreadsheet ticket data.

Converts raw cell values into typed values (money/quantity -> float,
dates -> ISO YYYY-MM-DD, text -> trimmed string) and maps raw header
text to canonical field names through the alias table.

Nothing in this module raises on malformed input: every value, however
noisy, produces a well-typed default.
"""

from typing import Any, Dict, Mapping, Optional
from datetime import date, datetime
import logging
import math
import re

from dateutil import parser as date_parser

from mappings import get_aliases_for_field, get_canonical_fields
from schema import FieldKind, NormalizedRow, field_kind_for
from inference import fuzzy_match_header

logger = logging.getLogger(__name__)

__all__ = [
    "clean_header",
    "field_kind_for",
    "map_header_to_field",
    "normalize_date",
    "normalize_money",
    "normalize_record",
    "normalize_text",
    "normalize_value",
    "parse_date",
    "strip_excel_quotes",
]

# Minimum similarity for the fuzzy header pass, and minimum length of
# aliases/headers it considers (short aliases like "gal" only match exactly).
FUZZY_HEADER_THRESHOLD = 0.85
FUZZY_MIN_LENGTH = 5

CURRENCY_RE = re.compile(r"[$€£¥]")
LEADING_NUMBER_RE = re.compile(r"^([+-]?)(\d+(?:\.\d+)*|\.\d+)")
EXCEL_QUOTED_RE = re.compile(r'^="([^"]*)"$')
HEADER_PUNCT_RE = re.compile(r"[^\w\s]|_")

MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|november|december|"
    "jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec"
)
MONTH_WORD_RE = re.compile(rf"\b({MONTHS})\b", re.IGNORECASE)
YEAR_RE = re.compile(r"\d{4}")

# Two dateutil defaults that differ in year, month and day
DATEUTIL_DEFAULTS = (datetime(1904, 1, 1), datetime(1908, 3, 3))


def clean_header(h: Any) -> str:
    """
    Clean a header string for alias comparison.

    Strips BOM and NBSP, lowercases, turns punctuation into spaces and
    collapses whitespace.

    Args:
        h: Raw header text

    Returns:
        Cleaned header string ("" for empty input)
    """
    if h is None:
        return ""
    text = str(h).replace("\ufeff", "").replace("\u00a0", " ").lower()
    text = HEADER_PUNCT_RE.sub(" ", text)
    return " ".join(text.split())


# Cleaned alias table, built once at import
_CLEANED_MAPPINGS = tuple(
    (field_name, tuple(clean_header(alias) for alias in get_aliases_for_field(field_name)))
    for field_name in get_canonical_fields()
)


def map_header_to_field(header_text: Any, column_index: int = 0) -> str:
    """
    Map one header cell to a canonical field name.

    Exact alias matches are tried first across the whole table, in
    declaration order. If none hits, a fuzzy pass tolerates OCR misreads
    of longer aliases. Unmatched headers get the positional name
    column<N>.

    Args:
        header_text: Raw header cell text
        column_index: Position of the header in its row (0-based)

    Returns:
        Canonical field name or "column<N>"
    """
    cleaned = clean_header(header_text)

    if cleaned:
        for target_field, aliases in _CLEANED_MAPPINGS:
            if cleaned in aliases:
                return target_field

        if len(cleaned) >= FUZZY_MIN_LENGTH:
            for target_field, aliases in _CLEANED_MAPPINGS:
                for alias in aliases:
                    if len(alias) >= FUZZY_MIN_LENGTH and fuzzy_match_header(cleaned, alias, FUZZY_HEADER_THRESHOLD):
                        logger.debug(f"[normalizer] Fuzzy header match '{header_text}' -> {target_field} (alias '{alias}')")
                        return target_field

    return f"column{column_index}"


def strip_excel_quotes(value: str) -> str:
    """Strip Excel formula quoting like ="678" -> 678."""
    match = EXCEL_QUOTED_RE.match(value)
    if match:
        return match.group(1)
    if value.startswith("="):
        return value[1:]
    return value


def normalize_money(raw: Any) -> float:
    """
    Parse a money or quantity value.

    Handles: $1,234.56 -> 1234.56, ="678" -> 678, 1.234.56 -> 1234.56,
    500 gal -> 500. Returns 0.0 for anything empty or unparseable, and for
    dotted strings that are not a thousands-grouped number (1.5., 1.2.3).
    """
    if raw is None or isinstance(raw, bool):
        return 0.0

    if isinstance(raw, (int, float)):
        value = float(raw)
        return 0.0 if math.isnan(value) or math.isinf(value) else value

    s = strip_excel_quotes(str(raw).strip())
    s = CURRENCY_RE.sub("", s)
    s = re.sub(r"[\s,]", "", s)

    # Leading number only; trailing units like "gal" or "USD" are dropped
    match = LEADING_NUMBER_RE.match(s)
    if not match:
        return 0.0

    sign, number = match.groups()
    if "." in number and s[match.end():].startswith("."):
        return 0.0
    parts = number.split(".")
    if len(parts) > 2:
        # Multiple periods: all but the last are thousands separators
        if any(len(group) != 3 for group in parts[1:-1]):
            return 0.0
        number = "".join(parts[:-1]) + "." + parts[-1]
    s = sign + number

    try:
        value = float(s)
    except ValueError:
        return 0.0
    return 0.0 if math.isinf(value) else value


def parse_date(date_str: str) -> Optional[date]:
    """Date parser that handles the common date string formats seen on tickets"""
    s = date_str.strip()
    if not s:
        return None

    # ISO dates and timestamps
    if re.match(r'^\d{4}-\d{2}-\d{2}', s):
        try:
            return date.fromisoformat(s[:10])
        except ValueError:
            return None

    # YYYY/MM/DD
    match = re.match(r'^(\d{4})/(\d{1,2})/(\d{1,2})$', s)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _safe_date(year, month, day)

    # MM/DD/YYYY, MM-DD-YYYY, MM/DD/YY
    match = re.match(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{2}|\d{4})$', s)
    if match:
        first, second, year = (int(g) for g in match.groups())

        # Handle 2-digit years
        if year < 100:
            year = 2000 + year if year <= 30 else 1900 + year

        if first > 12:
            # Must be DD/MM/YYYY
            return _safe_date(year, second, first)
        # MM/DD/YYYY (US format)
        return _safe_date(year, first, second)

    # Month name formats
    no_commas = " ".join(s.replace(",", " ").split())
    for fmt in ('%B %d %Y', '%b %d %Y', '%d %B %Y', '%d %b %Y'):
        try:
            return datetime.strptime(no_commas, fmt).date()
        except ValueError:
            continue

    # dateutil only sees strings carrying a year or a month word
    if not (YEAR_RE.search(s) or MONTH_WORD_RE.search(s)):
        return None
    return _parse_complete_date(s)


def _parse_complete_date(s: str) -> Optional[date]:
    """
    Parse with dateutil, rejecting strings that lack a year, month or day.

    dateutil fills missing parts from its default, so the string is parsed
    against two defaults that differ in every part; a complete date gives
    the same result both times.
    """
    try:
        parsed = [date_parser.parse(s, default=default).date() for default in DATEUTIL_DEFAULTS]
    except (ValueError, OverflowError):
        return None
    if parsed[0] != parsed[1]:
        logger.debug(f"[normalizer] Incomplete date '{s}' rejected")
        return None
    return parsed[0]


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def normalize_date(raw: Any) -> Optional[str]:
    """Normalize a date value to YYYY-MM-DD, or None when unknown."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if not isinstance(raw, str):
        return None

    parsed = parse_date(strip_excel_quotes(raw.strip()))
    return parsed.isoformat() if parsed else None


def normalize_text(raw: Any) -> str:
    """Trim a text value; missing values become ''."""
    if raw is None:
        return ""
    return str(raw).strip()


def normalize_value(raw: Any, field_kind: FieldKind) -> Any:
    """
    Convert one raw cell value into the typed value for its field kind.

    Args:
        raw: Raw cell value (string or already typed)
        field_kind: Kind of the target field

    Returns:
        float for money/quantity (0.0 when unparseable),
        ISO date string or None for dates, stripped string for text
    """
    if field_kind in (FieldKind.MONEY, FieldKind.QUANTITY):
        return normalize_money(raw)
    if field_kind == FieldKind.DATE:
        return normalize_date(raw)
    return normalize_text(raw)


def normalize_record(record: Mapping[str, Any]) -> NormalizedRow:
    """
    Normalize every field of a row keyed by canonical field name.

    Normalization is idempotent, so passing an already-normalized row
    returns an equal row. The page tag added during merge passes through.
    """
    normalized: Dict[str, Any] = {}
    for field_name, value in record.items():
        if field_name == "page":
            normalized[field_name] = value
            continue
        normalized[field_name] = normalize_value(value, field_kind_for(field_name))
    return normalized
