"""
Spatial clustering of OCR fragments into table rows and columns.

This module processes positioned OCR fragments to:
- Group fragments into rows by vertical proximity
- Derive one representative x-position per column
- Assign fragments of a row to columns
- Split raw OCR text into header and data cells when no positions exist
"""

from collections import Counter
from typing import List, Sequence, Tuple
import logging
import re

from config import ROW_Y_TOLERANCE
from mappings import TEXT_HEADER_HINTS

from .models import RawFragment

logger = logging.getLogger(__name__)

# Header search window for raw OCR text
HEADER_SEARCH_LINES = 5

CELL_SPLIT_RE = re.compile(r"\s{2,}|\t")


def cluster_by_y(
    fragments: Sequence[RawFragment],
    y_tolerance: float = ROW_Y_TOLERANCE
) -> List[List[RawFragment]]:
    """
    Group fragments into rows based on y-position.

    A new row starts whenever a fragment's y differs from the y of the
    current row's first fragment by more than y_tolerance. Fragments in
    each row are ordered left to right.

    Args:
        fragments: Positioned OCR fragments in any order
        y_tolerance: Maximum y-distance to consider the same row

    Returns:
        Rows top to bottom, each a list of fragments sorted by x
    """
    if not fragments:
        return []

    rows: List[List[RawFragment]] = []
    current_row: List[RawFragment] = []
    current_y = None

    for fragment in sorted(fragments, key=lambda f: f.y):
        if current_y is None or abs(fragment.y - current_y) <= y_tolerance:
            if current_y is None:
                current_y = fragment.y
            current_row.append(fragment)
        else:
            rows.append(sorted(current_row, key=lambda f: f.x))
            current_row = [fragment]
            current_y = fragment.y

    if current_row:
        rows.append(sorted(current_row, key=lambda f: f.x))

    logger.debug(f"[parser] Clustered {len(fragments)} fragments into {len(rows)} rows (y_tolerance={y_tolerance})")
    return rows


def detect_column_positions(rows: Sequence[Sequence[RawFragment]]) -> List[float]:
    """
    Derive one representative x-position per column.

    The expected column count is the most common fragment count across
    rows. Only rows with that count are averaged, position by position;
    ragged rows are left out.

    Args:
        rows: Row groups from cluster_by_y

    Returns:
        Mean x per column position, left to right
    """
    rows = [row for row in rows if row]
    if not rows:
        return []

    counts = Counter(len(row) for row in rows)
    expected = max(counts, key=lambda n: counts[n])  # first-seen count wins ties
    regular_rows = [row for row in rows if len(row) == expected]

    positions = [
        sum(row[i].x for row in regular_rows) / len(regular_rows)
        for i in range(expected)
    ]

    skipped = len(rows) - len(regular_rows)
    if skipped:
        logger.debug(f"[parser] Excluded {skipped} ragged rows from column detection (expected {expected} columns)")
    return positions


def map_to_columns(row: Sequence[RawFragment], column_positions: Sequence[float]) -> List[str]:
    """
    Assign each fragment of a row to the nearest column position.

    Fragments landing in the same column are joined with a space in
    left-to-right order.

    Args:
        row: Fragments of one row
        column_positions: Column x-positions from detect_column_positions

    Returns:
        One cell string per column
    """
    cells = [""] * len(column_positions)
    if not column_positions:
        return cells

    for fragment in sorted(row, key=lambda f: f.x):
        col_idx = min(
            range(len(column_positions)),
            key=lambda i: abs(fragment.x - column_positions[i])
        )
        text = fragment.text.strip()
        cells[col_idx] = f"{cells[col_idx]} {text}" if cells[col_idx] else text

    return cells


def split_text_lines(ocr_text: str) -> Tuple[List[str], List[List[str]]]:
    """
    Split raw OCR text into header cells and data rows.

    The header is the first of the leading lines that mentions a job,
    customer or date column (line 0 otherwise). Cells are separated by
    tabs or runs of two or more spaces; data lines with fewer than two
    cells are skipped.

    Args:
        ocr_text: Full recognized text of a page

    Returns:
        Tuple of (header cells, data rows)
    """
    lines = [line for line in (ocr_text or "").splitlines() if line.strip()]
    if not lines:
        return [], []

    header_index = 0
    for i, line in enumerate(lines[:HEADER_SEARCH_LINES]):
        lowered = line.lower()
        if any(hint in lowered for hint in TEXT_HEADER_HINTS):
            header_index = i
            break

    header = _split_cells(lines[header_index])
    data_rows = []
    for line in lines[header_index + 1:]:
        cells = _split_cells(line)
        if len(cells) < 2:
            continue
        data_rows.append(cells)

    logger.debug(f"[parser] Text fallback: header at line {header_index}, {len(data_rows)} data rows")
    return header, data_rows


def _split_cells(line: str) -> List[str]:
    return [cell.strip() for cell in CELL_SPLIT_RE.split(line.strip()) if cell.strip()]
