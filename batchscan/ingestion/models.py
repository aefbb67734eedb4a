from dataclasses import asdict, dataclass
from typing import Any

from batchscan.processor.exceptions import BatchScanError


@dataclass(frozen=True)
class UploadedFile:
    """The single file field of an upload request."""

    filename: str
    content: bytes
    content_type: str


@dataclass
class UploadResponse:
    """Upload outcome; ``to_dict`` drops unset keys."""

    success: bool
    queued: bool | None = None
    message: str | None = None
    document: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def failure(cls, exc: BatchScanError) -> "UploadResponse":
        return cls(success=False, error=str(exc), error_code=exc.code)

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}
