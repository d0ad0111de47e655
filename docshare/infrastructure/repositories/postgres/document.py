"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/document.py
============================================================
Class: PostgresDocumentRepository

Responsibilities:
- Leer dueño / workspace de un documento (tabla documents).
- Upsert mínimo (seed / tests de integración).
============================================================
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.entities import Document
from ....domain.ids import DocumentId, UserId
from .base import PostgresRepository


def _row_to_document(row: tuple) -> Document:
    return Document(
        id=DocumentId(row[0]),
        owner_id=UserId(row[1]),
        title=row[2] or "",
        workspace_id=row[3],
        created_at=row[4],
    )


class PostgresDocumentRepository(PostgresRepository):
    _SQL_GET = """
        SELECT id, owner_id, title, workspace_id, created_at
        FROM documents
        WHERE id = %s
    """

    _SQL_UPSERT = """
        INSERT INTO documents (id, owner_id, title, workspace_id)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (id) DO UPDATE SET
            owner_id = EXCLUDED.owner_id,
            title = EXCLUDED.title,
            workspace_id = EXCLUDED.workspace_id
        RETURNING id, owner_id, title, workspace_id, created_at
    """

    def get_document(self, document_id: UUID) -> Optional[Document]:
        row = self._fetchone(
            query=self._SQL_GET,
            params=[document_id],
            context_msg="PostgresDocumentRepository: Failed to get document",
            extra={"document_id": str(document_id)},
        )
        return _row_to_document(row) if row else None

    def save_document(self, document: Document) -> Document:
        row = self._fetchone(
            query=self._SQL_UPSERT,
            params=[document.id, document.owner_id, document.title, document.workspace_id],
            context_msg="PostgresDocumentRepository: Failed to save document",
            extra={"document_id": str(document.id)},
        )
        if row is None:  # pragma: no cover - RETURNING siempre devuelve
            raise DatabaseError("Unexpected: RETURNING clause returned no rows")
        return _row_to_document(row)
