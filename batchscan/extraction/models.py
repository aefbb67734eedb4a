from dataclasses import dataclass, field
from enum import Enum


class MediaKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


class TextSource(str, Enum):
    TEXT_LAYER = "text_layer"
    OCR = "ocr"


@dataclass(frozen=True)
class PageText:
    """Text for one page.

    page_number: 1-based page index
    needs_ocr:   direct text was too short to trust as a real text layer
    source:      where ``text`` came from
    """

    page_number: int
    text: str
    needs_ocr: bool = False
    source: TextSource = TextSource.TEXT_LAYER


@dataclass
class ExtractionResult:
    """Per-document extraction outcome."""

    media_kind: MediaKind
    pages: list[PageText]
    page_count: int
    combined_text: str
    ocr_fallback_used: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def total_chars(self) -> int:
        return sum(len(page.text) for page in self.pages)
