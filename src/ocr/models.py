"""
Data models for the OCR side of the ticket import pipeline.

Defines the extraction-layer input contract (positioned fragments,
delimited rows, raw text) and the per-page parse result consumed by
the multi-page merger.
"""

from typing import List, Dict, Any, Optional, Union
from dataclasses import dataclass, field

from schema import ColumnMap, NormalizedRow, Summary, column_map_to_dict


@dataclass
class RawFragment:
    """
    One OCR-recognized text span with its position on the page.

    Attributes:
        text: Recognized text
        x: Horizontal position (pixels or points)
        y: Vertical position (pixels or points)
        confidence: Recognition confidence for this span (0.0-1.0)
    """
    text: str
    x: float
    y: float
    confidence: float = 1.0


@dataclass
class RawRow:
    """A row already delimited into cells by the extractor."""
    cells: List[str]


@dataclass
class ExtractedPage:
    """
    Extraction output for one uploaded file or page.

    Attributes:
        ocr_text: Full recognized text
        rows: Delimited rows, or positioned fragments that still need clustering
        confidence: Extractor confidence (0.0-1.0); 1.0 for exact tabular sources
        source_name: File name or other identifier, used in logs and warnings
    """
    ocr_text: str = ""
    rows: List[Union[RawRow, RawFragment]] = field(default_factory=list)
    confidence: float = 1.0
    source_name: Optional[str] = None

    def has_fragments(self) -> bool:
        return bool(self.rows) and all(isinstance(r, RawFragment) for r in self.rows)


@dataclass
class ParsedPage:
    """Column map, normalized rows, summary and confidence of one page."""
    column_map: ColumnMap = field(default_factory=dict)
    rows: List[NormalizedRow] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columnMap": column_map_to_dict(self.column_map),
            "rows": [dict(row) for row in self.rows],
            "summary": self.summary.to_dict(),
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PageParseResult:
    """
    Result of parsing one page; immutable once produced.

    Attributes:
        success: False when extraction or parsing of the page failed
        ocr_text: Raw text recognized on the page
        parsed: Parsed page (empty when success is False)
        error: Failure description when success is False
        source_name: File name the page came from
    """
    success: bool
    ocr_text: str = ""
    parsed: ParsedPage = field(default_factory=ParsedPage)
    error: Optional[str] = None
    source_name: Optional[str] = None

    @classmethod
    def failed(cls, error: str, source_name: Optional[str] = None) -> "PageParseResult":
        return cls(success=False, error=error, source_name=source_name)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "ocrText": self.ocr_text,
            "parsed": self.parsed.to_dict(),
        }
        if self.error is not None:
            result["error"] = self.error
        return result
