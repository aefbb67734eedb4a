from dataclasses import dataclass

from batchscan.config.settings import Settings
from batchscan.database.models import DocumentFilter, DocumentRecord, SortOrder
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.documents.status import ProcessingStatus
from batchscan.processor.exceptions import DocumentNotFoundError, InvalidQueryError
from batchscan.storage.base import BaseBlobStore
from batchscan.storage.factory import BlobStoreFactory


@dataclass(frozen=True)
class SearchHit:
    document: DocumentRecord
    snippet: str


@dataclass(frozen=True)
class DownloadLink:
    url: str
    filename: str


def snippet(text: str | None, query: str | None, radius: int = 80) -> str:
    """Excerpt of ``text`` around the first case-insensitive hit of ``query``.

    Falls back to the start of the text when there is no query or no hit.
    """
    if not text:
        return ""
    position = text.lower().find(query.lower()) if query else -1
    if position < 0:
        head = text[: radius * 2].strip()
        return head + ("..." if len(text) > radius * 2 else "")
    start = max(0, position - radius)
    end = min(len(text), position + len(query or "") + radius)
    excerpt = text[start:end].strip()
    return f"{'...' if start > 0 else ''}{excerpt}{'...' if end < len(text) else ''}"


class DocumentSearchService:
    """Read side: filtered listing and signed download links."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        blob_store: BaseBlobStore,
        signed_url_ttl_seconds: int = 3600,
    ) -> None:
        self._doc_repo = doc_repo
        self._blob_store = blob_store
        self._ttl = signed_url_ttl_seconds

    def search(
        self,
        q: str | None = None,
        job_number: str | None = None,
        formula_id: str | None = None,
        status: str | None = None,
    ) -> list[DocumentRecord]:
        """Documents matching every given filter, newest first.

        ``q`` is a case-insensitive substring of extracted text, filename or
        product name; the other filters are exact matches.

        Raises:
            InvalidQueryError: if ``status`` is not a processing status.
        """
        document_filter = DocumentFilter(
            status=self._parse_status(status),
            job_number=(job_number or "").strip() or None,
            formula_id=(formula_id or "").strip() or None,
            text_contains=(q or "").strip() or None,
        )
        return self._doc_repo.list_documents(document_filter, SortOrder.NEWEST_FIRST)

    def search_hits(self, q: str | None = None, **filters: str | None) -> list[SearchHit]:
        return [
            SearchHit(document=document, snippet=snippet(document.extracted_text, q))
            for document in self.search(q=q, **filters)
        ]

    def download_link(self, document_id: str) -> DownloadLink:
        """Short-lived URL to the original upload.

        Raises:
            DocumentNotFoundError: if the document or its stored file is missing.
            BlobStoreError: if the URL cannot be signed.
        """
        document = self._doc_repo.find_by_id(document_id)
        if not document.file_path:
            raise DocumentNotFoundError(f"No file stored for document {document_id}")
        url = self._blob_store.signed_url(document.file_path, self._ttl)
        return DownloadLink(url=url, filename=document.filename)

    @staticmethod
    def _parse_status(status: str | None) -> ProcessingStatus | None:
        if not status:
            return None
        try:
            return ProcessingStatus(status.strip().lower())
        except ValueError:
            allowed = [s.value for s in ProcessingStatus]
            raise InvalidQueryError(
                f"Unknown status '{status}'. Choose from: {allowed}"
            ) from None


def build_search_service(
    settings: Settings,
    blob_store: BaseBlobStore | None = None,
) -> DocumentSearchService:
    """Build a DocumentSearchService; links live for SIGNED_URL_TTL_SECONDS."""
    if blob_store is None:
        blob_store = BlobStoreFactory.create(settings)
    return DocumentSearchService(
        DocumentRepository(),
        blob_store,
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
    )
