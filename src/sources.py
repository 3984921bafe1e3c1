"""
Source detection and data extraction utilities.

Supports the file kinds a ticket import can carry: CSV, XLSX, raw text,
PDF and image. Tabular files are read exactly; PDF and image files need an
OCR engine supplied by the caller.
"""

from typing import Any, List, Mapping, Optional, Union
from pathlib import Path
from enum import Enum
from datetime import date, datetime
from io import BytesIO, StringIO
import csv
import logging

from openpyxl import load_workbook

from ocr.models import ExtractedPage, RawRow

logger = logging.getLogger(__name__)

FileRef = Union[str, Path, Mapping[str, Any]]


class UnsupportedSourceError(Exception):
    """Raised when the default extractor cannot read a file."""
    pass


class SourceType(str, Enum):
    """Supported data source types."""
    CSV = "csv"
    XLSX = "xlsx_file"
    PDF = "pdf"
    IMAGE = "image"
    RAW_TEXT = "raw_text"
    UNKNOWN = "unknown"


TABULAR_SOURCES = (SourceType.CSV, SourceType.XLSX)

EXTENSION_TYPES = {
    ".csv": SourceType.CSV,
    ".xlsx": SourceType.XLSX,
    ".xlsm": SourceType.XLSX,
    ".pdf": SourceType.PDF,
    ".png": SourceType.IMAGE,
    ".jpg": SourceType.IMAGE,
    ".jpeg": SourceType.IMAGE,
    ".gif": SourceType.IMAGE,
    ".txt": SourceType.RAW_TEXT,
}

MIME_TYPES = {
    "text/csv": SourceType.CSV,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": SourceType.XLSX,
    "application/pdf": SourceType.PDF,
    "text/plain": SourceType.RAW_TEXT,
}


def file_name(file: FileRef) -> Optional[str]:
    """Get the display name of an uploaded file reference."""
    if isinstance(file, Mapping):
        name = file.get("filename") or file.get("name") or file.get("path")
        return str(name) if name else None
    return Path(file).name


def file_mime_type(file: FileRef) -> Optional[str]:
    if isinstance(file, Mapping):
        return file.get("mimeType") or file.get("mime_type")
    return None


def detect_file_type(content: bytes, filename: Optional[str] = None, mime_type: Optional[str] = None) -> SourceType:
    """
    Detect the type of an uploaded file.

    Magic numbers are checked first, then the declared MIME type, then the
    filename extension.

    Args:
        content: File bytes
        filename: Original file name, if known
        mime_type: Declared MIME type, if known

    Returns:
        SourceType enum value
    """
    head = content[:8] if content else b""

    if head.startswith(b"%PDF"):
        return SourceType.PDF
    if head.startswith(b"\xff\xd8\xff"):
        return SourceType.IMAGE
    if head.startswith(b"\x89PNG"):
        return SourceType.IMAGE
    if head.startswith(b"GIF8"):
        return SourceType.IMAGE
    if head.startswith(b"PK\x03\x04"):
        # XLSX is a zip container; other zip uploads are not supported
        if filename is None or Path(filename).suffix.lower() in (".xlsx", ".xlsm", ""):
            return SourceType.XLSX
        return SourceType.UNKNOWN

    if mime_type:
        mime = mime_type.split(";")[0].strip().lower()
        if mime in MIME_TYPES:
            return MIME_TYPES[mime]
        if mime.startswith("image/"):
            return SourceType.IMAGE

    if filename:
        suffix = Path(filename).suffix.lower()
        if suffix in EXTENSION_TYPES:
            return EXTENSION_TYPES[suffix]

    return SourceType.UNKNOWN


def _cell_to_text(cell: Any) -> str:
    if cell is None:
        return ""
    if isinstance(cell, datetime):
        return cell.date().isoformat()
    if isinstance(cell, date):
        return cell.isoformat()
    if isinstance(cell, (int, float)) and not isinstance(cell, bool):
        # Keep numbers as strings; the normalizer parses them
        return str(cell)
    return str(cell).strip()


def extract_tabular_rows(content: bytes, source_type: SourceType) -> List[RawRow]:
    """
    Read a CSV or XLSX file into delimited rows.

    CSV is decoded as UTF-8 (a leading BOM is tolerated). XLSX reads the
    first sheet, values only; dates become ISO strings and empty cells
    become ''.

    Args:
        content: File bytes
        source_type: SourceType.CSV or SourceType.XLSX

    Returns:
        List of RawRow, header row first
    """
    if source_type == SourceType.CSV:
        text = content.decode("utf-8-sig", errors="replace")
        reader = csv.reader(StringIO(text))
        rows = [RawRow(cells=[cell.strip() for cell in row]) for row in reader]
        logger.debug(f"[sources] CSV: {len(rows)} rows")
        return rows

    if source_type == SourceType.XLSX:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            rows = [
                RawRow(cells=[_cell_to_text(cell) for cell in row])
                for row in sheet.iter_rows(values_only=True)
            ]
        finally:
            workbook.close()
        logger.debug(f"[sources] XLSX: {len(rows)} rows")
        return rows

    raise UnsupportedSourceError(f"Not a tabular source: {source_type.value}")


def extract_page(content: bytes, file: FileRef) -> ExtractedPage:
    """
    Default extractor for one uploaded file.

    Args:
        content: File bytes
        file: File path or upload descriptor ({"filename", "path", "mimeType"})

    Returns:
        ExtractedPage for the row builder

    Raises:
        UnsupportedSourceError: PDF, image or unknown files (OCR must be supplied by the caller)
    """
    name = file_name(file)
    source_type = detect_file_type(content, name, file_mime_type(file))
    logger.debug(f"[sources] {name}: detected {source_type.value}")

    if source_type in TABULAR_SOURCES:
        rows = extract_tabular_rows(content, source_type)
        ocr_text = "\n".join("\t".join(row.cells) for row in rows)
        return ExtractedPage(ocr_text=ocr_text, rows=rows, confidence=1.0, source_name=name)

    if source_type == SourceType.RAW_TEXT:
        text = content.decode("utf-8-sig", errors="replace")
        return ExtractedPage(ocr_text=text, source_name=name)

    raise UnsupportedSourceError(
        f"No extractor for {source_type.value} file '{name}'; supply an OCR extractor"
    )
