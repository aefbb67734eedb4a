"""Dual-strategy text extraction for batch sheets.

Images go straight to OCR. PDFs are read from their embedded text layer page
by page; when the whole document averages under SCANNED_CHARS_PER_PAGE
characters per page it is treated as a scan and OCR runs once over the
original file. The OCR text replaces the per-page text only when it is longer.
"""

from batchscan.extraction.models import ExtractionResult, MediaKind, PageText, TextSource
from batchscan.logging.logger import Log
from batchscan.ocr.base import BaseOcrEngine
from batchscan.ocr.exceptions import OcrError
from batchscan.ocr.models import OcrProgress
from batchscan.pdf.base import BasePdfExtractor
from batchscan.processor.exceptions import OcrFailureError


def page_marker(page_number: int) -> str:
    return f"--- Page {page_number} ---"


def strip_nul(text: str) -> str:
    """Drop NUL characters, which PostgreSQL text columns reject."""
    return text.replace("\x00", "")


def combine_pages(pages: list[PageText]) -> str:
    """Join pages in ascending order, each under its page marker."""
    ordered = sorted(pages, key=lambda page: page.page_number)
    return "\n\n".join(
        f"{page_marker(p.page_number)}\n{strip_nul(p.text)}" for p in ordered
    )


class TextExtractor:
    """Produces combined text and page count for an uploaded file."""

    PAGE_OCR_THRESHOLD = 50
    SCANNED_CHARS_PER_PAGE = 100

    def __init__(
        self,
        pdf_extractor: BasePdfExtractor,
        ocr_engine: BaseOcrEngine,
        ocr_language: str = "eng",
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._ocr_engine = ocr_engine
        self._ocr_language = ocr_language

    def extract(self, data: bytes, media_kind: MediaKind) -> ExtractionResult:
        if media_kind is MediaKind.IMAGE:
            return self._extract_image(data)
        return self._extract_pdf(data)

    def _extract_image(self, data: bytes) -> ExtractionResult:
        try:
            result = self._ocr_engine.recognize(
                data, self._ocr_language, progress=self._log_progress
            )
        except OcrError as exc:
            raise OcrFailureError(str(exc) or "OCR failed") from exc

        text = strip_nul(result.text or "") if result is not None else ""
        if not text.strip():
            raise OcrFailureError("OCR returned no text")

        Log.info(f"OCR complete, extracted {len(text)} characters")
        page = PageText(page_number=1, text=text, source=TextSource.OCR)
        return ExtractionResult(
            media_kind=MediaKind.IMAGE,
            pages=[page],
            page_count=1,
            combined_text=text,
        )

    def _extract_pdf(self, data: bytes) -> ExtractionResult:
        page_texts = [strip_nul(text) for text in self._pdf_extractor.extract_pages(data)]
        page_count = len(page_texts)
        pages = [
            PageText(
                page_number=number,
                text=text,
                needs_ocr=len(text) < self.PAGE_OCR_THRESHOLD,
            )
            for number, text in enumerate(page_texts, start=1)
        ]
        direct_chars = sum(len(page.text) for page in pages)
        Log.info(
            f"Direct text extraction: {direct_chars} characters",
            pages=page_count,
            needs_ocr=sum(page.needs_ocr for page in pages),
        )

        result = ExtractionResult(
            media_kind=MediaKind.PDF,
            pages=pages,
            page_count=page_count,
            combined_text="",
        )
        if direct_chars < self.SCANNED_CHARS_PER_PAGE * page_count:
            self._apply_ocr_fallback(data, result, direct_chars)

        result.combined_text = combine_pages(result.pages)
        return result

    def _apply_ocr_fallback(
        self,
        data: bytes,
        result: ExtractionResult,
        direct_chars: int,
    ) -> None:
        Log.info("Scanned PDF detected, running OCR over the whole document")
        try:
            ocr = self._ocr_engine.recognize(
                data, self._ocr_language, progress=self._log_progress
            )
        except OcrError as exc:
            message = f"Whole-document OCR failed, keeping direct text: {exc}"
            Log.warning(message)
            result.warnings.append(message)
            return

        fallback_text = strip_nul(ocr.text or "")
        if len(fallback_text) > direct_chars:
            result.pages = [
                PageText(page_number=1, text=fallback_text, source=TextSource.OCR)
            ]
            result.ocr_fallback_used = True
            Log.info(f"Using OCR text ({len(fallback_text)} characters)")
        else:
            Log.info(
                f"OCR text ({len(fallback_text)} characters) is not longer "
                "than direct text, keeping direct text"
            )

    @staticmethod
    def _log_progress(event: OcrProgress) -> None:
        Log.debug(f"OCR {event.status}: {round(event.progress * 100)}%")
