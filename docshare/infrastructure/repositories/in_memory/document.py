"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/document.py
============================================================
Class: InMemoryDocumentRepository

Responsibilities:
- Vista in-memory de documentos (dueño / workspace) para tests y local.
============================================================
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional
from uuid import UUID

from ....domain.entities import Document


class InMemoryDocumentRepository:
    def __init__(self, documents: Iterable[Document] | None = None) -> None:
        self._lock = threading.Lock()
        self._documents: dict[UUID, Document] = {d.id: d for d in (documents or [])}

    def get_document(self, document_id: UUID) -> Optional[Document]:
        with self._lock:
            return self._documents.get(document_id)

    def save_document(self, document: Document) -> Document:
        with self._lock:
            self._documents[document.id] = document
            return document
