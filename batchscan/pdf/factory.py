from batchscan.config.settings import Settings
from batchscan.pdf.base import BasePdfExtractor
from batchscan.pdf.pdfplumber_adapter import PdfPlumberAdapter
from batchscan.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the text-layer engine named by ``PDF_ENGINE``."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        return cls.for_engine(settings.pdf_engine)

    @classmethod
    def for_engine(cls, engine: str) -> BasePdfExtractor:
        key = engine.strip().lower()
        try:
            return cls.ADAPTERS[key]()
        except KeyError:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {sorted(cls.ADAPTERS)}"
            ) from None
