"""
Import orchestrator for ticket uploads.

Fetches each uploaded file, extracts and parses it into a page result,
merges the pages in upload order, and classifies the merged document.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
import logging

from config import AUTO_ACCEPT_HIGH_CONFIDENCE, MAX_EXTRACTION_WORKERS
from inference import infer_import_type
from merger import merge_page_results
from ocr import ExtractedPage, PageParseResult, parse_page
from schema import ImportType, MergedImportResult
from sources import FileRef, extract_page, file_name

logger = logging.getLogger(__name__)

Fetcher = Callable[[FileRef], bytes]
Extractor = Callable[[bytes, FileRef], ExtractedPage]


class ImportProcessingError(Exception):
    """Raised when an import cannot produce any page."""
    pass


@dataclass
class ImportOutcome:
    """
    Result of processing one import.

    Attributes:
        merged: Merged column map, rows, summary, confidence and status
        ocr_text: Recognized text of every processed file, blank-line separated
        detection: Classifier output plus detectedAt timestamp
        warnings: One message per file that failed
        pages_processed: Number of files that produced a page
    """
    merged: MergedImportResult
    ocr_text: str = ""
    detection: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    pages_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merged": self.merged.to_dict(),
            "ocrText": self.ocr_text,
            "detection": dict(self.detection),
            "warnings": list(self.warnings),
            "pagesProcessed": self.pages_processed,
        }

    def to_record(self, meta: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Build the persistence payload for the import record.

        meta is copied; importType is set only when the document was
        detected as delivery, detection is always written.
        """
        merged = self.merged.to_dict()
        updated_meta = dict(meta or {})
        if self.detection.get("type") == ImportType.DELIVERY.value:
            updated_meta["importType"] = ImportType.DELIVERY.value
        updated_meta["detection"] = dict(self.detection)

        return {
            "ocr_text": self.ocr_text,
            "parsed": {
                "columnMap": merged["columnMap"],
                "rows": merged["rows"],
                "summary": merged["summary"],
            },
            "confidence": merged["confidence"],
            "status": merged["status"],
            "meta": updated_meta,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }


def read_local_file(file: FileRef) -> bytes:
    """Default fetcher: read bytes from a local path."""
    if isinstance(file, Mapping):
        path = file.get("path") or file.get("filename")
    else:
        path = file
    if not path:
        raise FileNotFoundError(f"No path for file {file!r}")
    return Path(path).read_bytes()


def _process_file(file: FileRef, fetch: Fetcher, extract: Extractor) -> PageParseResult:
    name = file_name(file)
    try:
        content = fetch(file)
        page = extract(content, file)
        if not isinstance(page, ExtractedPage):
            raise TypeError(f"Extractor returned {type(page).__name__}, expected ExtractedPage")
        if page.source_name is None:
            page.source_name = name
        return parse_page(page)
    except Exception as e:
        logger.warning(f"[importer] Failed to process {name}: {e}")
        return PageParseResult.failed(str(e), source_name=name)


def process_import(
    files: Sequence[FileRef],
    *,
    extract: Optional[Extractor] = None,
    fetch: Optional[Fetcher] = None,
    auto_accept: Optional[bool] = None,
    max_workers: Optional[int] = None,
) -> ImportOutcome:
    """
    Process the uploaded files of one import.

    Files are fetched and extracted concurrently; page results are kept
    in upload order. Files that fail are reported as warnings and left
    out of the merge.

    Args:
        files: Uploaded files in upload order (paths or {"filename", "path", "mimeType"})
        extract: Extractor (bytes, file) -> ExtractedPage; defaults to the tabular/text reader
        fetch: Fetcher file -> bytes; defaults to reading a local path
        auto_accept: Auto-accept policy; None reads AUTO_ACCEPT_HIGH_CONFIDENCE
        max_workers: Thread pool size; None reads MAX_EXTRACTION_WORKERS

    Returns:
        ImportOutcome

    Raises:
        ImportProcessingError: No files were given or none could be processed
    """
    if not files:
        raise ImportProcessingError("No files attached")

    extract = extract or extract_page
    fetch = fetch or read_local_file
    if auto_accept is None:
        auto_accept = AUTO_ACCEPT_HIGH_CONFIDENCE
    workers = max(1, min(max_workers or MAX_EXTRACTION_WORKERS, len(files)))

    logger.debug(f"[importer] Processing {len(files)} files with {workers} workers")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        page_results = list(executor.map(lambda f: _process_file(f, fetch, extract), files))

    warnings = []
    for position, result in enumerate(page_results, 1):
        if not result.success:
            warnings.append(f"File {position} ({result.source_name or 'unnamed'}): {result.error}")

    successful = [result for result in page_results if result.success]
    if not successful:
        logger.warning(f"[importer] No pages processed out of {len(files)} files")
        raise ImportProcessingError("No pages processed")

    merged = merge_page_results(successful, auto_accept=auto_accept)
    classification = infer_import_type(merged.column_map, merged.rows)

    detection = classification.to_dict()
    detection["detectedAt"] = datetime.now(timezone.utc).isoformat()

    ocr_text = "\n\n".join(result.ocr_text for result in successful)

    logger.info(
        f"[importer] Processed {len(successful)}/{len(files)} files: rows={len(merged.rows)}, "
        f"type={classification.type.value}, confidence={merged.confidence:.2f}, status={merged.status.value}"
    )

    return ImportOutcome(
        merged=merged,
        ocr_text=ocr_text,
        detection=detection,
        warnings=warnings,
        pages_processed=len(successful),
    )
