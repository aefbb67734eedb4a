from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from batchscan.documents.status import ProcessingStatus


@dataclass
class DocumentRecord:
    """Represents a row from the pdf_documents table."""

    id: str
    filename: str
    processing_status: ProcessingStatus
    job_number: str | None = None
    formula_id: str | None = None
    product_name: str | None = None
    extracted_text: str | None = None
    file_path: str | None = None
    page_count: int = 1
    processing_error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    claimed_by: str | None = None
    claimed_at: datetime | None = None
    uploaded_at: datetime | None = None
    processed_at: datetime | None = None

    @property
    def content_type(self) -> str:
        return str(self.metadata.get("content_type") or "application/pdf")

    def to_dict(self) -> dict[str, Any]:
        """Public representation, camelCase like the upload/search responses."""
        return {
            "id": self.id,
            "filename": self.filename,
            "jobNumber": self.job_number,
            "formulaId": self.formula_id,
            "productName": self.product_name,
            "extractedText": self.extracted_text,
            "filePath": self.file_path,
            "pageCount": self.page_count,
            "processingStatus": self.processing_status.value,
            "processingError": self.processing_error,
            "metadata": dict(self.metadata),
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
        }


@dataclass(frozen=True)
class NewDocument:
    """Values for a document row about to be inserted."""

    id: str
    filename: str
    processing_status: ProcessingStatus
    file_path: str | None = None
    page_count: int = 1
    extracted_text: str | None = None
    job_number: str | None = None
    formula_id: str | None = None
    product_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class SortOrder(str, Enum):
    NEWEST_FIRST = "desc"
    OLDEST_FIRST = "asc"


@dataclass(frozen=True)
class DocumentFilter:
    """Optional criteria for DocumentRepository.list; unset fields match everything."""

    status: ProcessingStatus | None = None
    job_number: str | None = None
    formula_id: str | None = None
    text_contains: str | None = None
    limit: int | None = None
