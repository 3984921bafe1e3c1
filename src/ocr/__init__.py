"""
OCR module for turning extraction output into structured ticket rows.

This module provides the table side of the import pipeline, supporting:
- Positioned text fragments (clustered into rows and columns)
- Already-delimited rows
- Raw OCR text (split on column gaps)
- Conversion to a column map and normalized rows per page
"""

from .parser import cluster_by_y, detect_column_positions, map_to_columns, split_text_lines
from .table_extract import build_column_map, build_rows, parse_page, rows_from_fragments
from .models import ExtractedPage, PageParseResult, ParsedPage, RawFragment, RawRow

__all__ = [
    "cluster_by_y",
    "detect_column_positions",
    "map_to_columns",
    "split_text_lines",
    "build_column_map",
    "build_rows",
    "parse_page",
    "rows_from_fragments",
    "ExtractedPage",
    "PageParseResult",
    "ParsedPage",
    "RawFragment",
    "RawRow",
]
