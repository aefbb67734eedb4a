import tempfile
from pathlib import Path

from batchscan.database.models import DocumentRecord
from batchscan.logging.logger import Log


def staged_file_path(temp_root: Path, document_id: str, filename: str) -> Path:
    """Build path to a staged copy: {temp_root}/{document_id}{suffix}"""
    suffix = Path(filename).suffix.lower() or ".bin"
    return temp_root / f"{document_id}{suffix}"


class FileLoader:
    """Keeps the local temporary copy of a document for one processing attempt."""

    TEMP_ROOT = Path(tempfile.gettempdir()) / "batchscan-worker"

    def __init__(self, temp_root: Path | None = None) -> None:
        self._temp_root = temp_root if temp_root is not None else self.TEMP_ROOT

    def stage(self, document: DocumentRecord, data: bytes) -> Path:
        """Write ``data`` to the document's temp path and return it."""
        path = staged_file_path(self._temp_root, document.id, document.filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def discard(self, path: Path | None) -> None:
        """Best-effort removal of a staged copy. Never raises."""
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            Log.warning(f"Could not remove temp file {path}: {exc}")
