from typing import Any

from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.extraction.media import classify_media_type
from batchscan.extraction.models import ExtractionResult
from batchscan.extraction.text_extractor import TextExtractor
from batchscan.logging.logger import Log
from batchscan.metadata.extractor import ExtractedMetadata, MetadataExtractor
from batchscan.processor.file_loader import FileLoader
from batchscan.processor.pipeline import PipelineContext, PipelineStep
from batchscan.storage.base import BaseBlobStore
from batchscan.storage.exceptions import BlobNotFoundError, BlobStoreError


class LoadDocumentStep(PipelineStep):
    """Download the document's bytes and stage them as a local temp file."""

    def __init__(self, blob_store: BaseBlobStore, file_loader: FileLoader) -> None:
        self._blob_store = blob_store
        self._file_loader = file_loader

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        if not document.file_path:
            raise BlobNotFoundError(f"No file stored for document {document.id}")
        try:
            raw_bytes = self._blob_store.get(document.file_path)
        except BlobStoreError as exc:
            raise BlobStoreError(f"Download failed: {exc}") from exc
        context.local_path = self._file_loader.stage(document, raw_bytes)
        Log.info(f"Downloaded {len(raw_bytes)} bytes", document_id=document.id)
        return context


class ExtractTextStep(PipelineStep):
    def __init__(self, text_extractor: TextExtractor) -> None:
        self._text_extractor = text_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.local_path is None:
            raise ValueError("PipelineContext.local_path must be set before extraction")
        media_kind = classify_media_type(context.document.content_type)
        data = context.local_path.read_bytes()
        context.extraction = self._text_extractor.extract(data, media_kind)
        Log.info(
            f"Total extracted: {len(context.extraction.combined_text)} characters",
            document_id=context.document.id,
            pages=context.extraction.page_count,
        )
        return context


class ExtractMetadataStep(PipelineStep):
    def __init__(self, metadata_extractor: MetadataExtractor) -> None:
        self._metadata_extractor = metadata_extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before metadata")
        context.metadata = self._metadata_extractor.extract(
            context.extraction.combined_text
        )
        Log.info(
            f"Job #: {context.metadata.job_number or 'not found'}, "
            f"Formula: {context.metadata.formula_id or 'not found'}",
            document_id=context.document.id,
        )
        return context


class MarkCompletedStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None or context.metadata is None:
            raise ValueError("Extraction and metadata must be set before completion")
        context.completed = self._doc_repo.mark_completed(
            context.document.id,
            context.owner,
            completion_fields(context.extraction, context.metadata),
        )
        Log.info(f"Done: {context.document.filename}", document_id=context.document.id)
        return context


class MarkFailedStep(PipelineStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        self._doc_repo.mark_failed(
            context.document.id,
            context.owner,
            context.error_message,
        )
        Log.error(
            f"Document marked as failed: {context.error_message}",
            document_id=context.document.id,
        )
        return context


def completion_fields(
    extraction: ExtractionResult, extracted: ExtractedMetadata
) -> dict[str, Any]:
    """Columns written when a document completes."""
    metadata: dict[str, Any] = {
        **extracted.extra,
        "ocr_fallback_used": extraction.ocr_fallback_used,
    }
    if extraction.warnings:
        metadata["extraction_warnings"] = list(extraction.warnings)
    return {
        "extracted_text": extraction.combined_text,
        **extracted.as_dict(),
        "page_count": extraction.page_count,
        "metadata": metadata,
    }
