from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from batchscan.database.models import DocumentRecord
from batchscan.extraction.models import ExtractionResult
from batchscan.metadata.extractor import ExtractedMetadata


@dataclass(slots=True)
class PipelineContext:
    document: DocumentRecord
    owner: str
    local_path: Path | None = None
    extraction: ExtractionResult | None = None
    metadata: ExtractedMetadata | None = None
    completed: DocumentRecord | None = None
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
