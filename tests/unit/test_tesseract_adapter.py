from unittest.mock import MagicMock, patch

import pytest

from batchscan.ocr.exceptions import OcrError
from batchscan.ocr.factory import OcrEngineFactory
from batchscan.ocr.models import OcrProgress
from batchscan.ocr.tesseract_adapter import TesseractAdapter

IMAGE_TO_STRING = "batchscan.ocr.tesseract_adapter.pytesseract.image_to_string"


class TestRecognizeImage:
    def test_returns_engine_text(self, png_bytes: bytes) -> None:
        with patch(IMAGE_TO_STRING, return_value="Job # 5\n") as mock_ocr:
            result = TesseractAdapter().recognize(png_bytes, "eng")

        assert result.text == "Job # 5\n"
        assert result.page_count == 1
        assert mock_ocr.call_args.kwargs == {"lang": "eng"}

    def test_reports_progress(self, png_bytes: bytes) -> None:
        events: list[OcrProgress] = []
        with patch(IMAGE_TO_STRING, return_value="x"):
            TesseractAdapter().recognize(png_bytes, "eng", progress=events.append)

        assert events[0] == OcrProgress(status="recognizing text", progress=0.0)
        assert events[-1] == OcrProgress(status="done", progress=1.0)

    def test_engine_failure_wrapped(self, png_bytes: bytes) -> None:
        with patch(IMAGE_TO_STRING, side_effect=RuntimeError("tesseract not found")):
            with pytest.raises(OcrError, match="tesseract not found"):
                TesseractAdapter().recognize(png_bytes, "eng")

    def test_unreadable_bytes_wrapped(self) -> None:
        with pytest.raises(OcrError):
            TesseractAdapter().recognize(b"definitely not an image", "eng")

    def test_empty_bytes_rejected(self) -> None:
        with pytest.raises(OcrError, match="No bytes"):
            TesseractAdapter().recognize(b"", "eng")


class TestRecognizePdf:
    def test_rasterizes_each_page(self, text_native_pdf_bytes: bytes) -> None:
        with patch(IMAGE_TO_STRING, side_effect=["first", "second"]) as mock_ocr:
            result = TesseractAdapter(dpi=72).recognize(text_native_pdf_bytes, "eng")

        assert mock_ocr.call_count == 2
        assert result.text == "first\nsecond"
        assert result.page_count == 2


class TestOcrEngineFactory:
    def test_creates_tesseract(self) -> None:
        settings = MagicMock(ocr_engine="Tesseract", ocr_dpi=150, tesseract_cmd="")
        assert isinstance(OcrEngineFactory.create(settings), TesseractAdapter)

    def test_unknown_engine(self) -> None:
        with pytest.raises(ValueError, match="Unknown OCR engine"):
            OcrEngineFactory.create(MagicMock(ocr_engine="magic"))
