from batchscan.config.settings import Settings
from batchscan.ocr.base import BaseOcrEngine
from batchscan.ocr.tesseract_adapter import TesseractAdapter


class OcrEngineFactory:
    """Creates the OCR engine named by ``OCR_ENGINE``."""

    ENGINES = ("tesseract",)

    @classmethod
    def create(cls, settings: Settings) -> BaseOcrEngine:
        engine = settings.ocr_engine.lower()
        if engine == "tesseract":
            return TesseractAdapter(
                dpi=settings.ocr_dpi,
                tesseract_cmd=settings.tesseract_cmd,
            )
        raise ValueError(
            f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
