import os
import socket
import time

from batchscan.config.settings import Settings
from batchscan.database.models import DocumentRecord
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.logging.logger import Log
from batchscan.worker.job_runner import JobRunner


def default_worker_id(settings: Settings) -> str:
    """Lease owner name: WORKER_ID if set, else hostname:pid."""
    return settings.worker_id or f"{socket.gethostname()}:{os.getpid()}"


class Worker:
    """Poll loop: release stale claims -> list pending -> claim -> dispatch -> sleep."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        job_runner: JobRunner,
        settings: Settings,
        owner: str,
    ) -> None:
        self._doc_repo = doc_repo
        self._job_runner = job_runner
        self._settings = settings
        self._owner = owner

    def run(self, max_polls: int | None = None) -> None:
        """Poll immediately, then every poll interval, until interrupted.

        If max_polls is set, stop after that many polls (for testing).
        """
        Log.info(
            f"Worker started, polling every {self._settings.poll_interval_seconds} seconds",
            owner=self._owner,
        )
        polls = 0
        try:
            while True:
                self.poll_once()
                polls += 1
                if max_polls is not None and polls >= max_polls:
                    break
                time.sleep(self._settings.poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def poll_once(self) -> int:
        """Process one batch of pending documents sequentially.

        Returns the number of documents this worker claimed and ran.
        """
        documents = self._fetch_pending()
        if not documents:
            Log.debug("No pending documents")
            return 0

        Log.info(f"Found {len(documents)} pending document(s)")
        processed = 0
        for document in documents:
            claimed = self._try_claim(document)
            if claimed is None:
                continue
            self._job_runner.run(claimed)
            processed += 1
        return processed

    def _fetch_pending(self) -> list[DocumentRecord]:
        """Query pending work. Store errors are logged and retried next poll."""
        try:
            lease = self._settings.claim_lease_seconds
            if lease > 0:
                released = self._doc_repo.release_expired_claims(lease)
                if released:
                    Log.warning(f"Released {released} expired claim(s) back to pending")
            return self._doc_repo.list_pending(self._settings.poll_batch_size)
        except Exception as exc:
            Log.warning(f"Error fetching pending documents, will retry: {exc}")
            return []

    def _try_claim(self, document: DocumentRecord) -> DocumentRecord | None:
        try:
            claimed = self._doc_repo.claim(document.id, self._owner)
        except Exception as exc:
            Log.warning(f"Could not claim document {document.id}, will retry: {exc}")
            return None
        if claimed is None:
            Log.info(f"Document {document.id} already claimed, skipping")
        return claimed
