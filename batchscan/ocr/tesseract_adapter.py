import io

import pymupdf
import pytesseract
from PIL import Image

from batchscan.ocr.base import BaseOcrEngine
from batchscan.ocr.exceptions import OcrError
from batchscan.ocr.models import OcrProgress, OcrResult, ProgressCallback

PDF_MAGIC = b"%PDF"


class TesseractAdapter(BaseOcrEngine):
    """OCR via the Tesseract binary (pytesseract).

    PDFs are rasterized page by page with PyMuPDF and the page texts joined
    with newlines, so a whole document can be recognized in one call.
    """

    def __init__(self, *, dpi: int = 200, tesseract_cmd: str = "") -> None:
        self._dpi = dpi
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(
        self,
        data: bytes,
        language: str,
        progress: ProgressCallback | None = None,
    ) -> OcrResult:
        try:
            images = self._load_images(data)
            texts: list[str] = []
            for index, image in enumerate(images):
                self._notify(progress, "recognizing text", index / len(images))
                texts.append(pytesseract.image_to_string(image, lang=language))
            self._notify(progress, "done", 1.0)
        except OcrError:
            raise
        except Exception as exc:
            raise OcrError(f"tesseract recognition failed: {exc}") from exc
        return OcrResult(text="\n".join(texts), page_count=len(images))

    def _load_images(self, data: bytes) -> list[Image.Image]:
        if not data:
            raise OcrError("No bytes to recognize")
        if data.startswith(PDF_MAGIC):
            return self._rasterize_pdf(data)
        image = Image.open(io.BytesIO(data))
        image.load()
        return [image]

    def _rasterize_pdf(self, data: bytes) -> list[Image.Image]:
        images: list[Image.Image] = []
        with pymupdf.open(stream=data, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
            for page in doc:
                pixmap = page.get_pixmap(dpi=self._dpi)
                images.append(Image.open(io.BytesIO(pixmap.tobytes("png"))))
        if not images:
            raise OcrError("PDF has no pages to recognize")
        return images

    @staticmethod
    def _notify(progress: ProgressCallback | None, status: str, value: float) -> None:
        if progress is not None:
            progress(OcrProgress(status=status, progress=value))
