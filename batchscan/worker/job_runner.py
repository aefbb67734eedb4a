from batchscan.database.models import DocumentRecord
from batchscan.logging.logger import Log
from batchscan.processor.exceptions import StaleClaimError
from batchscan.processor.processor import Processor


class JobRunner:
    """Run one claimed document and keep its failure inside the worker."""

    def __init__(self, processor: Processor, owner: str) -> None:
        self._processor = processor
        self._owner = owner

    def run(self, document: DocumentRecord) -> bool:
        """Process a document. Returns True when it completed."""
        Log.info(f"Running document {document.id} ({document.filename})")
        try:
            self._processor.process(document, self._owner)
        except StaleClaimError as exc:
            Log.warning(f"Lost claim on document {document.id}: {exc}")
            return False
        except Exception as exc:
            Log.error(f"Error processing {document.filename}: {exc}", document_id=document.id)
            return False
        Log.info(f"Document {document.id} completed successfully")
        return True
