from pathlib import Path
from unittest.mock import MagicMock

import pytest

from batchscan.database.models import DocumentRecord
from batchscan.documents.status import ProcessingStatus
from batchscan.extraction.models import ExtractionResult, MediaKind, PageText
from batchscan.metadata.extractor import ExtractedMetadata, MetadataExtractor
from batchscan.processor.exceptions import (
    InvalidStatusTransitionError,
    OcrFailureError,
    StaleClaimError,
    UnsupportedMediaTypeError,
)
from batchscan.processor.file_loader import FileLoader
from batchscan.processor.pipeline import PipelineContext, PipelineStep
from batchscan.processor.processor import Processor
from batchscan.processor.steps import (
    ExtractMetadataStep,
    ExtractTextStep,
    LoadDocumentStep,
    MarkCompletedStep,
    MarkFailedStep,
    completion_fields,
)
from batchscan.storage.exceptions import BlobNotFoundError, BlobStoreError

OWNER = "worker-a"


def _make_document(**overrides: object) -> DocumentRecord:
    values: dict = {
        "id": "doc-1",
        "filename": "sheet.png",
        "processing_status": ProcessingStatus.PROCESSING,
        "file_path": "doc-1/sheet.png",
        "metadata": {"content_type": "image/png"},
        "claimed_by": OWNER,
    }
    values.update(overrides)
    return DocumentRecord(**values)


def _make_extraction(text: str = "Job # 7\nFormula ID: 8") -> ExtractionResult:
    return ExtractionResult(
        media_kind=MediaKind.IMAGE,
        pages=[PageText(page_number=1, text=text)],
        page_count=1,
        combined_text=text,
    )


def _make_processor(
    tmp_path: Path,
    *,
    blob_bytes: bytes = b"png-bytes",
    extraction: ExtractionResult | None = None,
    extract_error: Exception | None = None,
    blob_error: Exception | None = None,
) -> tuple[Processor, MagicMock, MagicMock, FileLoader]:
    blob_store = MagicMock()
    blob_store.get.return_value = blob_bytes
    blob_store.get.side_effect = blob_error
    text_extractor = MagicMock()
    if extract_error is not None:
        text_extractor.extract.side_effect = extract_error
    else:
        text_extractor.extract.return_value = extraction or _make_extraction()
    doc_repo = MagicMock()
    file_loader = FileLoader(tmp_path)
    processor = Processor(
        steps=[
            LoadDocumentStep(blob_store, file_loader),
            ExtractTextStep(text_extractor),
            ExtractMetadataStep(MetadataExtractor()),
            MarkCompletedStep(doc_repo),
        ],
        failed_step=MarkFailedStep(doc_repo),
        file_loader=file_loader,
    )
    return processor, doc_repo, text_extractor, file_loader


class TestProcessorSuccess:
    def test_completes_with_extracted_fields(self, tmp_path: Path) -> None:
        processor, doc_repo, text_extractor, _ = _make_processor(tmp_path)

        context = processor.process(_make_document(), OWNER)

        text_extractor.extract.assert_called_once_with(b"png-bytes", MediaKind.IMAGE)
        document_id, owner, fields = doc_repo.mark_completed.call_args.args
        assert (document_id, owner) == ("doc-1", OWNER)
        assert fields["extracted_text"] == "Job # 7\nFormula ID: 8"
        assert fields["job_number"] == "7"
        assert fields["formula_id"] == "8"
        assert fields["product_name"] is None
        assert context.completed is doc_repo.mark_completed.return_value
        doc_repo.mark_failed.assert_not_called()

    def test_pdf_content_type_selects_pdf_path(self, tmp_path: Path) -> None:
        processor, _, text_extractor, _ = _make_processor(tmp_path)
        document = _make_document(filename="sheet.pdf", metadata={})

        processor.process(document, OWNER)

        assert text_extractor.extract.call_args.args[1] is MediaKind.PDF

    def test_temp_file_removed_after_success(self, tmp_path: Path) -> None:
        processor, _, _, _ = _make_processor(tmp_path)

        context = processor.process(_make_document(), OWNER)

        assert context.local_path is not None
        assert not context.local_path.exists()


class TestProcessorFailure:
    def test_ocr_failure_marks_failed_with_message(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(
            tmp_path, extract_error=OcrFailureError("engine crashed")
        )

        with pytest.raises(OcrFailureError):
            processor.process(_make_document(), OWNER)

        doc_repo.mark_failed.assert_called_once_with("doc-1", OWNER, "engine crashed")
        doc_repo.mark_completed.assert_not_called()
        assert list(tmp_path.iterdir()) == []

    def test_missing_blob_marks_failed(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(tmp_path)

        with pytest.raises(BlobNotFoundError):
            processor.process(_make_document(file_path=None), OWNER)

        message = doc_repo.mark_failed.call_args.args[2]
        assert "No file stored" in message

    def test_download_error_is_prefixed(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(
            tmp_path, blob_error=BlobStoreError("connection reset")
        )

        with pytest.raises(BlobStoreError):
            processor.process(_make_document(), OWNER)

        assert doc_repo.mark_failed.call_args.args[2] == "Download failed: connection reset"

    def test_unsupported_stored_type_marks_failed(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(tmp_path)

        with pytest.raises(UnsupportedMediaTypeError):
            processor.process(_make_document(metadata={"content_type": "text/plain"}), OWNER)

        assert "Unsupported file type" in doc_repo.mark_failed.call_args.args[2]

    def test_empty_message_falls_back_to_class_name(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(tmp_path, extract_error=RuntimeError())

        with pytest.raises(RuntimeError):
            processor.process(_make_document(), OWNER)

        assert doc_repo.mark_failed.call_args.args[2] == "RuntimeError"

    def test_stale_claim_skips_failed_step(self, tmp_path: Path) -> None:
        processor, doc_repo, _, _ = _make_processor(tmp_path)
        doc_repo.mark_completed.side_effect = StaleClaimError("lost lease")

        with pytest.raises(StaleClaimError):
            processor.process(_make_document(), OWNER)

        doc_repo.mark_failed.assert_not_called()
        assert list(tmp_path.iterdir()) == []


    @pytest.mark.parametrize(
        "status", [ProcessingStatus.PENDING, ProcessingStatus.COMPLETED, ProcessingStatus.FAILED]
    )
    def test_unclaimed_document_is_refused(
        self, tmp_path: Path, status: ProcessingStatus
    ) -> None:
        processor, doc_repo, text_extractor, _ = _make_processor(tmp_path)

        with pytest.raises(InvalidStatusTransitionError):
            processor.process(_make_document(processing_status=status), OWNER)

        text_extractor.extract.assert_not_called()
        doc_repo.mark_failed.assert_not_called()
        doc_repo.mark_completed.assert_not_called()


class TestStepsOrder:
    def test_steps_run_in_order(self, tmp_path: Path) -> None:
        calls: list[str] = []

        class _Recording(PipelineStep):
            def __init__(self, name: str) -> None:
                self.name = name

            def run(self, context: PipelineContext) -> PipelineContext:
                calls.append(self.name)
                return context

        processor = Processor(
            steps=[_Recording("load"), _Recording("extract"), _Recording("complete")],
            failed_step=_Recording("failed"),
            file_loader=FileLoader(tmp_path),
        )

        processor.process(_make_document(), OWNER)

        assert calls == ["load", "extract", "complete"]


class TestCompletionFields:
    def test_records_fallback_and_warnings(self) -> None:
        extraction = _make_extraction("text")
        extraction.ocr_fallback_used = True
        extraction.warnings.append("OCR fallback failed: boom")
        extracted = ExtractedMetadata(job_number="1", extra={"lot": "A"})

        fields = completion_fields(extraction, extracted)

        assert fields["metadata"] == {
            "lot": "A",
            "ocr_fallback_used": True,
            "extraction_warnings": ["OCR fallback failed: boom"],
        }
        assert fields["page_count"] == 1
        assert fields["job_number"] == "1"
