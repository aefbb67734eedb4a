from pathlib import Path

from batchscan.config.settings import Settings
from batchscan.database.models import DocumentRecord
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.documents.status import ProcessingStatus, ensure_transition
from batchscan.extraction.text_extractor import TextExtractor
from batchscan.logging.logger import Log
from batchscan.metadata.extractor import MetadataExtractor
from batchscan.ocr.factory import OcrEngineFactory
from batchscan.pdf.factory import PdfExtractorFactory
from batchscan.processor.exceptions import StaleClaimError
from batchscan.processor.file_loader import FileLoader
from batchscan.processor.pipeline import PipelineContext, PipelineStep
from batchscan.processor.steps import (
    ExtractMetadataStep,
    ExtractTextStep,
    LoadDocumentStep,
    MarkCompletedStep,
    MarkFailedStep,
)
from batchscan.storage.base import BaseBlobStore
from batchscan.storage.factory import BlobStoreFactory


class Processor:
    """Drives one claimed document from processing to completed or failed.

    Pipeline: load -> extract text -> extract metadata -> mark completed.
    Any step error runs the failed step and is re-raised, except a lost
    claim, which leaves the row to its new owner. The staged temp file is
    removed on every path.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        failed_step: PipelineStep,
        file_loader: FileLoader,
    ) -> None:
        self._steps = steps
        self._failed_step = failed_step
        self._file_loader = file_loader

    def process(self, document: DocumentRecord, owner: str) -> PipelineContext:
        """Run the steps for a claimed document.

        Raises:
            InvalidStatusTransitionError: if the document is not in ``processing``,
                so it could not be completed. Nothing is written in that case.
        """
        ensure_transition(document.processing_status, ProcessingStatus.COMPLETED)
        Log.info(f"Processing: {document.filename}", document_id=document.id)
        context = PipelineContext(document=document, owner=owner)
        try:
            for step in self._steps:
                context = step.run(context)
        except StaleClaimError:
            raise
        except Exception as exc:
            context.error_message = str(exc) or exc.__class__.__name__
            self._failed_step.run(context)
            raise
        finally:
            self._file_loader.discard(context.local_path)
        return context


def build_text_extractor(settings: Settings) -> TextExtractor:
    return TextExtractor(
        pdf_extractor=PdfExtractorFactory.create(settings),
        ocr_engine=OcrEngineFactory.create(settings),
        ocr_language=settings.ocr_language,
    )


def build_processor(
    settings: Settings,
    blob_store: BaseBlobStore | None = None,
    temp_root: Path | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    if blob_store is None:
        blob_store = BlobStoreFactory.create(settings)
    if temp_root is None and settings.temp_dir:
        temp_root = Path(settings.temp_dir)
    file_loader = FileLoader(temp_root=temp_root)
    doc_repo = DocumentRepository()
    steps: list[PipelineStep] = [
        LoadDocumentStep(blob_store=blob_store, file_loader=file_loader),
        ExtractTextStep(text_extractor=build_text_extractor(settings)),
        ExtractMetadataStep(metadata_extractor=MetadataExtractor()),
        MarkCompletedStep(doc_repo=doc_repo),
    ]
    return Processor(
        steps=steps,
        failed_step=MarkFailedStep(doc_repo),
        file_loader=file_loader,
    )
