"""
Row building from extracted pages.

This module turns one page's header and data cells into a column map and
normalized rows, whichever form the extractor delivered them in
(delimited rows, positioned fragments, or raw text).
"""

from typing import Any, List, Sequence, Tuple
import logging

import config
from normalizer import map_header_to_field, normalize_value
from schema import ColumnMap, NormalizedRow, ValidationError, assert_valid_rows, field_kind_for
from summary import calculate_summary

from .models import ExtractedPage, PageParseResult, ParsedPage, RawFragment, RawRow
from .parser import cluster_by_y, detect_column_positions, map_to_columns, split_text_lines

logger = logging.getLogger(__name__)


def build_column_map(header_cells: Sequence[Any]) -> ColumnMap:
    """
    Map every header cell to a canonical field name.

    A header that maps to a field already claimed by an earlier column
    gets its positional name instead, so every column keeps a distinct
    field name.

    Args:
        header_cells: Header row cells in physical column order

    Returns:
        Column index -> field name, in column order
    """
    column_map: ColumnMap = {}
    used = set()

    for idx, header in enumerate(header_cells):
        field_name = map_header_to_field(header, idx)
        if field_name in used:
            logger.debug(f"[table_extract] Duplicate header '{header}' for {field_name}, using column{idx}")
            field_name = f"column{idx}"
        used.add(field_name)
        column_map[idx] = field_name

    return column_map


def build_rows(column_map: ColumnMap, data_rows: Sequence[Sequence[Any]]) -> List[NormalizedRow]:
    """
    Normalize data rows against a column map.

    Rows keep their input order. Missing cells take the default of their
    field kind; cells beyond the column map are ignored; rows with no
    content at all are dropped.

    Args:
        column_map: Column map from build_column_map
        data_rows: Cell lists below the header

    Returns:
        List of normalized rows
    """
    kinds = {idx: field_kind_for(name) for idx, name in column_map.items()}
    rows: List[NormalizedRow] = []

    for cells in data_rows:
        if not any(cell is not None and str(cell).strip() for cell in cells):
            continue

        row: NormalizedRow = {}
        for idx, field_name in column_map.items():
            raw = cells[idx] if idx < len(cells) else None
            row[field_name] = normalize_value(raw, kinds[idx])
        rows.append(row)

    return rows


def rows_from_fragments(fragments: Sequence[RawFragment]) -> Tuple[List[str], List[List[str]]]:
    """
    Cluster positioned fragments into header cells and data rows.

    Args:
        fragments: Positioned OCR fragments of one page

    Returns:
        Tuple of (header cells, data rows)
    """
    row_groups = cluster_by_y(fragments)
    if not row_groups:
        return [], []

    column_positions = detect_column_positions(row_groups)
    cells = [map_to_columns(group, column_positions) for group in row_groups]
    return cells[0], cells[1:]


def _page_cells(page: ExtractedPage) -> Tuple[List[str], List[List[str]]]:
    if page.has_fragments():
        return rows_from_fragments(page.rows)

    delimited = [row.cells for row in page.rows if isinstance(row, RawRow)]
    if delimited:
        return list(delimited[0]), [list(cells) for cells in delimited[1:]]

    return split_text_lines(page.ocr_text)


def parse_page(page: ExtractedPage) -> PageParseResult:
    """
    Parse one extracted page into a column map, rows, summary and confidence.

    Page confidence is the lower of the extractor's confidence and the
    share of header columns that mapped to a canonical field.

    Args:
        page: Extraction output for one file or page

    Returns:
        PageParseResult (success=False with the error if parsing failed)
    """
    try:
        header, data_rows = _page_cells(page)
        column_map = build_column_map(header)
        rows = build_rows(column_map, data_rows)
        if config.STRICT_ROW_VALIDATION:
            assert_valid_rows(rows, column_map)
    except (TypeError, ValueError, AttributeError, ValidationError) as e:
        logger.warning(f"[table_extract] Failed to parse page {page.source_name or ''}: {e}")
        return PageParseResult.failed(f"Parse failed: {e}", source_name=page.source_name)

    if column_map:
        mapped = sum(1 for name in column_map.values() if not name.startswith("column"))
        mapped_ratio = mapped / len(column_map)
    else:
        mapped_ratio = 0.0
    confidence = max(0.0, min(page.confidence, mapped_ratio))

    parsed = ParsedPage(
        column_map=column_map,
        rows=rows,
        summary=calculate_summary(rows),
        confidence=confidence,
    )

    logger.debug(
        f"[table_extract] Parsed page {page.source_name or ''}: {len(column_map)} columns, "
        f"{len(rows)} rows, confidence {confidence:.2f}"
    )
    return PageParseResult(
        success=True,
        ocr_text=page.ocr_text,
        parsed=parsed,
        source_name=page.source_name,
    )
