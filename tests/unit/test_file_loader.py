from pathlib import Path
from unittest.mock import patch

from batchscan.database.models import DocumentRecord
from batchscan.documents.status import ProcessingStatus
from batchscan.processor.file_loader import FileLoader, staged_file_path


def _make_document(filename: str = "Sheet.PDF") -> DocumentRecord:
    return DocumentRecord(
        id="doc-1",
        filename=filename,
        processing_status=ProcessingStatus.PROCESSING,
    )


class TestStagedFilePath:
    def test_uses_document_id_and_lowercase_suffix(self, tmp_path: Path) -> None:
        assert staged_file_path(tmp_path, "doc-1", "Sheet.PDF") == tmp_path / "doc-1.pdf"

    def test_falls_back_to_bin_suffix(self, tmp_path: Path) -> None:
        assert staged_file_path(tmp_path, "doc-1", "scan") == tmp_path / "doc-1.bin"


class TestFileLoader:
    def test_stage_writes_bytes(self, tmp_path: Path) -> None:
        loader = FileLoader(tmp_path / "staging")
        path = loader.stage(_make_document(), b"%PDF")

        assert path == tmp_path / "staging" / "doc-1.pdf"
        assert path.read_bytes() == b"%PDF"

    def test_discard_removes_file(self, tmp_path: Path) -> None:
        loader = FileLoader(tmp_path)
        path = loader.stage(_make_document(), b"x")

        loader.discard(path)

        assert not path.exists()

    def test_discard_missing_or_none_is_noop(self, tmp_path: Path) -> None:
        loader = FileLoader(tmp_path)
        loader.discard(None)
        loader.discard(tmp_path / "gone.pdf")

    def test_discard_logs_os_errors(self, tmp_path: Path) -> None:
        loader = FileLoader(tmp_path)
        with (
            patch.object(Path, "unlink", side_effect=PermissionError("denied")),
            patch("batchscan.processor.file_loader.Log") as mock_log,
        ):
            loader.discard(tmp_path / "locked.pdf")

        mock_log.warning.assert_called_once()
