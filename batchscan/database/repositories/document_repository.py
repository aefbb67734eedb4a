from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from batchscan.database.connection import get_connection
from batchscan.database.models import DocumentFilter, DocumentRecord, NewDocument, SortOrder
from batchscan.documents.status import ProcessingStatus, ensure_initial, sources_for
from batchscan.processor.exceptions import DocumentNotFoundError, StaleClaimError

_COLUMNS = (
    "id",
    "filename",
    "job_number",
    "formula_id",
    "product_name",
    "extracted_text",
    "file_path",
    "page_count",
    "processing_status",
    "processing_error",
    "metadata",
    "claimed_by",
    "claimed_at",
    "uploaded_at",
    "processed_at",
)

_SELECT_COLUMNS = sql.SQL(", ").join(sql.Identifier(c) for c in _COLUMNS)

# Columns a plain update may touch. Status, text and error move only through
# the transition methods so the status invariants hold.
UPDATABLE_COLUMNS = frozenset(
    {
        "filename",
        "job_number",
        "formula_id",
        "product_name",
        "file_path",
        "page_count",
        "metadata",
    }
)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DocumentRepository:
    """Database operations for the pdf_documents table."""

    def insert(self, document: NewDocument) -> DocumentRecord:
        """Insert a new document row and return it as stored."""
        ensure_initial(document.processing_status)
        processed_at = (
            sql.SQL("NOW()")
            if document.processing_status.is_terminal
            else sql.SQL("NULL")
        )
        query = sql.SQL(
            """
            INSERT INTO pdf_documents
                (id, filename, file_path, page_count, extracted_text,
                 job_number, formula_id, product_name, metadata,
                 processing_status, processed_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, {processed_at})
            RETURNING {columns}
            """
        ).format(processed_at=processed_at, columns=_SELECT_COLUMNS)
        params = (
            document.id,
            document.filename,
            document.file_path,
            document.page_count,
            document.extracted_text,
            document.job_number,
            document.formula_id,
            document.product_name,
            Jsonb(document.metadata),
            document.processing_status.value,
        )
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Insert of document {document.id} returned no row")
        return self._to_record(row)

    def find_by_id(self, document_id: str) -> DocumentRecord:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        query = sql.SQL("SELECT {columns} FROM pdf_documents WHERE id = %s").format(
            columns=_SELECT_COLUMNS
        )
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, (document_id,))
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return self._to_record(row)

    def update(self, document_id: str, fields: dict[str, Any]) -> DocumentRecord:
        """Partially update non-status columns. ``metadata`` is merged, not replaced.

        Raises:
            ValueError: for empty updates or columns outside UPDATABLE_COLUMNS.
            DocumentNotFoundError: if no document with this ID exists.
        """
        if not fields:
            raise ValueError("update requires at least one field")
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")

        assignments, params = self._assignments(fields)
        query = sql.SQL(
            "UPDATE pdf_documents SET {assignments} WHERE id = %s RETURNING {columns}"
        ).format(assignments=assignments, columns=_SELECT_COLUMNS)
        row = self._execute_returning(query, (*params, document_id))
        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return self._to_record(row)

    def list_documents(
        self,
        document_filter: DocumentFilter | None = None,
        order: SortOrder = SortOrder.NEWEST_FIRST,
    ) -> list[DocumentRecord]:
        """List documents matching the filter ordered by upload time."""
        document_filter = document_filter or DocumentFilter()
        clauses: list[sql.Composable] = []
        params: list[Any] = []

        if document_filter.status is not None:
            clauses.append(sql.SQL("processing_status = %s"))
            params.append(document_filter.status.value)
        if document_filter.job_number:
            clauses.append(sql.SQL("job_number = %s"))
            params.append(document_filter.job_number)
        if document_filter.formula_id:
            clauses.append(sql.SQL("formula_id = %s"))
            params.append(document_filter.formula_id)
        if document_filter.text_contains:
            pattern = f"%{escape_like(document_filter.text_contains)}%"
            clauses.append(
                sql.SQL(
                    "(extracted_text ILIKE %s OR filename ILIKE %s OR product_name ILIKE %s)"
                )
            )
            params.extend([pattern, pattern, pattern])

        where = (
            sql.SQL("WHERE ") + sql.SQL(" AND ").join(clauses)
            if clauses
            else sql.SQL("")
        )
        direction = sql.SQL("ASC" if order is SortOrder.OLDEST_FIRST else "DESC")
        limit = sql.SQL("")
        if document_filter.limit is not None:
            limit = sql.SQL("LIMIT %s")
            params.append(document_filter.limit)

        query = sql.SQL(
            "SELECT {columns} FROM pdf_documents {where} "
            "ORDER BY uploaded_at {direction}, id {direction} {limit}"
        ).format(columns=_SELECT_COLUMNS, where=where, direction=direction, limit=limit)

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [self._to_record(row) for row in rows]

    def list_pending(self, limit: int) -> list[DocumentRecord]:
        """Pending documents, oldest upload first."""
        return self.list_documents(
            DocumentFilter(status=ProcessingStatus.PENDING, limit=limit),
            order=SortOrder.OLDEST_FIRST,
        )

    def claim(self, document_id: str, owner: str) -> DocumentRecord | None:
        """Atomically move a pending document to processing under ``owner``'s lease.

        Returns None when the document is no longer pending (another worker
        claimed it, or it was already processed).
        """
        return self._transition(
            document_id,
            ProcessingStatus.PROCESSING,
            set_sql=[sql.SQL("claimed_by = %s"), sql.SQL("claimed_at = NOW()")],
            set_params=[owner],
        )

    def mark_completed(
        self,
        document_id: str,
        owner: str,
        fields: dict[str, Any],
    ) -> DocumentRecord:
        """Finish a claimed document with its extraction results.

        Raises:
            StaleClaimError: if the document is no longer processing under ``owner``.
        """
        assignments, params = self._assignments(
            {"extracted_text": fields.get("extracted_text", ""), **fields}
        )
        record = self._transition(
            document_id,
            ProcessingStatus.COMPLETED,
            set_sql=[
                assignments,
                sql.SQL("processing_error = NULL"),
                sql.SQL("processed_at = NOW()"),
                sql.SQL("claimed_by = NULL"),
                sql.SQL("claimed_at = NULL"),
            ],
            set_params=params,
            owner=owner,
        )
        if record is None:
            raise StaleClaimError(
                f"Document {document_id} is not processing under owner {owner}"
            )
        return record

    def mark_failed(self, document_id: str, owner: str, error: str) -> DocumentRecord:
        """Fail a claimed document, keeping the error message for operators.

        Raises:
            StaleClaimError: if the document is no longer processing under ``owner``.
        """
        record = self._transition(
            document_id,
            ProcessingStatus.FAILED,
            set_sql=[
                sql.SQL("processing_error = %s"),
                sql.SQL("extracted_text = NULL"),
                sql.SQL("processed_at = NOW()"),
                sql.SQL("claimed_by = NULL"),
                sql.SQL("claimed_at = NULL"),
            ],
            set_params=[error],
            owner=owner,
        )
        if record is None:
            raise StaleClaimError(
                f"Document {document_id} is not processing under owner {owner}"
            )
        return record

    def release_expired_claims(self, lease_seconds: int) -> int:
        """Return documents whose claim is older than the lease to pending."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE pdf_documents
                    SET processing_status = %s, claimed_by = NULL, claimed_at = NULL
                    WHERE processing_status = %s
                      AND claimed_at < NOW() - make_interval(secs => %s)
                    """,
                    (
                        ProcessingStatus.PENDING.value,
                        ProcessingStatus.PROCESSING.value,
                        lease_seconds,
                    ),
                )
                released = cur.rowcount
            conn.commit()
        return released

    def _transition(
        self,
        document_id: str,
        target: ProcessingStatus,
        *,
        set_sql: list[sql.Composable],
        set_params: list[Any],
        owner: str | None = None,
    ) -> DocumentRecord | None:
        """Conditionally move a row into ``target`` from one of its allowed sources."""
        sources = [source.value for source in sources_for(target)]
        owner_clause = sql.SQL("")
        owner_params: list[Any] = []
        if owner is not None:
            owner_clause = sql.SQL(" AND claimed_by = %s")
            owner_params.append(owner)

        query = sql.SQL(
            """
            UPDATE pdf_documents
            SET processing_status = %s, {assignments}
            WHERE id = %s AND processing_status = ANY(%s){owner_clause}
            RETURNING {columns}
            """
        ).format(
            assignments=sql.SQL(", ").join(set_sql),
            owner_clause=owner_clause,
            columns=_SELECT_COLUMNS,
        )
        params = (target.value, *set_params, document_id, sources, *owner_params)
        row = self._execute_returning(query, params)
        return self._to_record(row) if row is not None else None

    @staticmethod
    def _assignments(fields: dict[str, Any]) -> tuple[sql.Composable, list[Any]]:
        parts: list[sql.Composable] = []
        params: list[Any] = []
        for column, value in fields.items():
            if column == "metadata":
                parts.append(sql.SQL("metadata = COALESCE(metadata, '{}'::jsonb) || %s"))
                params.append(Jsonb(value or {}))
            else:
                parts.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(value)
        return sql.SQL(", ").join(parts), params

    @staticmethod
    def _execute_returning(
        query: sql.Composable, params: tuple[Any, ...]
    ) -> dict[str, Any] | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
            conn.commit()
        return row

    @staticmethod
    def _to_record(row: dict[str, Any]) -> DocumentRecord:
        return DocumentRecord(
            id=str(row["id"]),
            filename=row["filename"],
            job_number=row["job_number"],
            formula_id=row["formula_id"],
            product_name=row["product_name"],
            extracted_text=row["extracted_text"],
            file_path=row["file_path"],
            page_count=row["page_count"] if row["page_count"] is not None else 1,
            processing_status=ProcessingStatus(row["processing_status"]),
            processing_error=row["processing_error"],
            metadata=dict(row["metadata"] or {}),
            claimed_by=row["claimed_by"],
            claimed_at=row["claimed_at"],
            uploaded_at=row["uploaded_at"],
            processed_at=row["processed_at"],
        )


