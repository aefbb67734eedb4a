import os
import uuid
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from batchscan.config.settings import Settings
from batchscan.database.connection import close_pool, get_connection, init_pool
from batchscan.database.models import DocumentRecord, NewDocument
from batchscan.database.repositories.document_repository import DocumentRepository
from batchscan.documents.status import ProcessingStatus

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "batchscan_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            with conn.cursor() as cur:
                for migration in sorted(MIGRATIONS_DIR.glob("*.sql")):
                    cur.execute(migration.read_text())
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a scratch database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    created: list[str] = []
    yield created
    if not created:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM pdf_documents WHERE id = ANY(%s::uuid[])", (created,))
        conn.commit()


@pytest.fixture
def seed_document(
    integration_cleanup: list[str],
) -> Callable[..., DocumentRecord]:
    """Insert a document through the repository and register it for cleanup."""

    def _seed(
        status: ProcessingStatus = ProcessingStatus.PENDING,
        **values: Any,
    ) -> DocumentRecord:
        document_id = str(uuid.uuid4())
        values.setdefault("filename", "sheet.pdf")
        values.setdefault("file_path", f"{document_id}/sheet.pdf")
        if status is ProcessingStatus.COMPLETED:
            values.setdefault("extracted_text", "")
        record = DocumentRepository().insert(
            NewDocument(id=document_id, processing_status=status, **values)
        )
        integration_cleanup.append(document_id)
        return record

    return _seed
