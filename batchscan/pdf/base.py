from abc import ABC, abstractmethod


class BasePdfExtractor(ABC):
    """Contract for all PDF text-layer extraction adapters."""

    @abstractmethod
    def extract_pages(self, pdf_bytes: bytes) -> list[str]:
        """Read the embedded text layer of every page, without rasterizing.

        Each page's text tokens are joined with single spaces and trimmed.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            One string per page in page-table order; empty for image-only pages.

        Raises:
            PdfExtractionError: if the file cannot be opened or parsed.
        """


def join_tokens(tokens: list[str]) -> str:
    return " ".join(token for token in tokens if token).strip()
