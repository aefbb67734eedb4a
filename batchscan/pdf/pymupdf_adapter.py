import pymupdf

from batchscan.pdf.base import BasePdfExtractor, join_tokens
from batchscan.pdf.exceptions import PdfExtractionError

# Index of the word string in the tuples returned by Page.get_text("words").
_WORD_TEXT = 4


class PyMuPdfAdapter(BasePdfExtractor):
    """Reads per-page text tokens with PyMuPDF."""

    def extract_pages(self, pdf_bytes: bytes) -> list[str]:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return [
                    join_tokens([word[_WORD_TEXT] for word in page.get_text("words")])
                    for page in doc
                ]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc
