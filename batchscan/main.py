from batchscan.config.settings import Settings
from batchscan.database.connection import close_pool, init_pool
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.logging.logger import Log
from batchscan.processor.processor import build_processor
from batchscan.worker.job_runner import JobRunner
from batchscan.worker.worker import Worker, default_worker_id


def main() -> None:
    """Entry point: initialize pool -> build dependencies -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        owner = default_worker_id(settings)
        processor = build_processor(settings)
        job_runner = JobRunner(processor, owner)
        worker = Worker(DocumentRepository(), job_runner, settings, owner)
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
