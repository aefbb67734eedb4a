from abc import ABC, abstractmethod

from batchscan.ocr.models import OcrResult, ProgressCallback


class BaseOcrEngine(ABC):
    """Contract for OCR engines."""

    @abstractmethod
    def recognize(
        self,
        data: bytes,
        language: str,
        progress: ProgressCallback | None = None,
    ) -> OcrResult:
        """Recognize text in an image or a whole PDF.

        Args:
            data: Raw image bytes (PNG, JPEG, TIFF, ...) or PDF bytes.
            language: Engine language code, e.g. ``"eng"``.
            progress: Optional callback receiving OcrProgress events.

        Returns:
            OcrResult with the recognized text (may be empty).

        Raises:
            OcrError: if the engine fails.
        """
