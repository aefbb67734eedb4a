import re
import uuid
from collections.abc import Callable
from pathlib import PurePath

from batchscan.config.settings import Settings
from batchscan.database.models import DocumentRecord, NewDocument
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.documents.status import ProcessingStatus
from batchscan.extraction.media import classify_media_type
from batchscan.extraction.models import MediaKind
from batchscan.extraction.text_extractor import TextExtractor
from batchscan.ingestion.models import UploadedFile, UploadResponse
from batchscan.logging.logger import Log
from batchscan.metadata.extractor import MetadataExtractor
from batchscan.processor.exceptions import (
    BatchScanError,
    FileTooLargeError,
    MissingFileError,
    UnsupportedMediaTypeError,
    UploadFailureError,
)
from batchscan.processor.processor import build_text_extractor
from batchscan.processor.steps import completion_fields
from batchscan.storage.base import BaseBlobStore
from batchscan.storage.exceptions import BlobStoreError
from batchscan.storage.factory import BlobStoreFactory

PDF_REJECTED_MESSAGE = (
    "PDF files need to be converted to images first. "
    "Please upload JPG/PNG screenshots of the batch sheets."
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def blob_path(document_id: str, filename: str) -> str:
    """Blob key for an upload: ``{document_id}/{sanitized filename}``."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", PurePath(filename).name).strip("._")
    return f"{document_id}/{name or 'upload'}"


class IngestionService:
    """Accepts uploads: images are extracted in-request, PDFs are queued.

    Rejected uploads never create or modify a document row.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        blob_store: BaseBlobStore,
        text_extractor: TextExtractor,
        metadata_extractor: MetadataExtractor,
        settings: Settings,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._doc_repo = doc_repo
        self._blob_store = blob_store
        self._text_extractor = text_extractor
        self._metadata_extractor = metadata_extractor
        self._settings = settings
        self._id_factory = id_factory

    def ingest(self, upload: UploadedFile) -> UploadResponse:
        try:
            media_kind = self._validate(upload)
            if media_kind is MediaKind.IMAGE and not self._settings.queue_image_uploads:
                record = self._ingest_now(upload)
                return UploadResponse(success=True, queued=False, document=record.to_dict())
            record = self._enqueue(upload)
        except BatchScanError as exc:
            Log.warning(f"Upload of '{upload.filename}' rejected: {exc}", code=exc.code)
            return UploadResponse.failure(exc)

        return UploadResponse(
            success=True,
            queued=True,
            message="Document queued for processing",
            document=record.to_dict(),
        )

    def _validate(self, upload: UploadedFile) -> MediaKind:
        if not upload.filename.strip() or not upload.content:
            raise MissingFileError("No file provided")
        if len(upload.content) > self._settings.max_upload_bytes:
            raise FileTooLargeError(
                f"File is {len(upload.content)} bytes; "
                f"the limit is {self._settings.max_upload_bytes} bytes"
            )
        media_kind = classify_media_type(upload.content_type)
        if media_kind is MediaKind.PDF and not self._settings.accept_pdf_uploads:
            raise UnsupportedMediaTypeError(PDF_REJECTED_MESSAGE)
        return media_kind

    def _ingest_now(self, upload: UploadedFile) -> DocumentRecord:
        """Fast path: OCR inside the request and store the finished document."""
        Log.info(f"Starting OCR for: {upload.filename}")
        extraction = self._text_extractor.extract(upload.content, MediaKind.IMAGE)
        extracted = self._metadata_extractor.extract(extraction.combined_text)
        fields = completion_fields(extraction, extracted)

        document_id = self._id_factory()
        file_path = None
        if self._settings.persist_image_uploads:
            file_path = self._store_blob(document_id, upload)

        record = self._insert(
            NewDocument(
                id=document_id,
                filename=upload.filename,
                processing_status=ProcessingStatus.COMPLETED,
                file_path=file_path,
                page_count=fields["page_count"],
                extracted_text=fields["extracted_text"],
                job_number=fields["job_number"],
                formula_id=fields["formula_id"],
                product_name=fields["product_name"],
                metadata={**self._upload_metadata(upload), **fields["metadata"]},
            )
        )
        Log.info(
            "Document saved",
            document_id=record.id,
            job_number=record.job_number,
            formula_id=record.formula_id,
            product_name=record.product_name,
        )
        return record

    def _enqueue(self, upload: UploadedFile) -> DocumentRecord:
        """Queued path: persist bytes, then record the document as pending."""
        document_id = self._id_factory()
        file_path = self._store_blob(document_id, upload)
        record = self._insert(
            NewDocument(
                id=document_id,
                filename=upload.filename,
                processing_status=ProcessingStatus.PENDING,
                file_path=file_path,
                metadata=self._upload_metadata(upload),
            )
        )
        Log.info(f"Queued {upload.filename} for processing", document_id=record.id)
        return record

    def _insert(self, document: NewDocument) -> DocumentRecord:
        """Insert the row; on failure remove the blob stored for it."""
        try:
            return self._doc_repo.insert(document)
        except Exception:
            if document.file_path:
                self._discard_blob(document.file_path)
            raise

    def _discard_blob(self, path: str) -> None:
        try:
            self._blob_store.delete(path)
        except BlobStoreError as exc:
            Log.warning(f"Could not remove orphaned blob {path}: {exc}")

    def _store_blob(self, document_id: str, upload: UploadedFile) -> str:
        path = blob_path(document_id, upload.filename)
        try:
            self._blob_store.put(path, upload.content, upload.content_type)
        except BlobStoreError as exc:
            raise UploadFailureError(f"Upload failed: {exc}") from exc
        return path

    @staticmethod
    def _upload_metadata(upload: UploadedFile) -> dict[str, object]:
        return {
            "content_type": upload.content_type,
            "size_bytes": len(upload.content),
        }


def build_ingestion_service(
    settings: Settings,
    blob_store: BaseBlobStore | None = None,
) -> IngestionService:
    """Build an IngestionService with the adapters named in settings."""
    if blob_store is None:
        blob_store = BlobStoreFactory.create(settings)
    return IngestionService(
        doc_repo=DocumentRepository(),
        blob_store=blob_store,
        text_extractor=build_text_extractor(settings),
        metadata_extractor=MetadataExtractor(),
        settings=settings,
    )
