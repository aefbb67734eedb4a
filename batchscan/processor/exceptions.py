class BatchScanError(Exception):
    """Base exception for pipeline errors. ``code`` is machine-readable."""

    code: str = "internal_error"


class UnsupportedMediaTypeError(BatchScanError):
    """Raised when an upload is neither an image nor a PDF."""

    code = "unsupported_media_type"


class MissingFileError(BatchScanError):
    """Raised when an upload carries no file name or no content."""

    code = "missing_file"


class FileTooLargeError(BatchScanError):
    """Raised when an upload exceeds the configured size limit."""

    code = "file_too_large"


class UploadFailureError(BatchScanError):
    """Raised when the blob store rejects an upload."""

    code = "upload_failure"


class OcrFailureError(BatchScanError):
    """Raised when the OCR engine errors or yields no usable text."""

    code = "ocr_failure"


class StoreUnavailableError(BatchScanError):
    """Raised when the document store cannot be reached."""

    code = "store_unavailable"


class StoreError(BatchScanError):
    """Raised when the document store rejects a statement or its data."""

    code = "store_error"


class DocumentNotFoundError(BatchScanError):
    """Raised when a document cannot be found in the database."""

    code = "not_found"


class InvalidStatusTransitionError(BatchScanError):
    """Raised when a status change is not allowed by the state machine."""

    code = "invalid_transition"


class StaleClaimError(BatchScanError):
    """Raised when a terminal update finds the document no longer claimed by us."""

    code = "stale_claim"


class InvalidQueryError(BatchScanError):
    """Raised for malformed search parameters."""

    code = "invalid_query"
