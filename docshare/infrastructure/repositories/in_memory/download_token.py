"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/download_token.py
============================================================
Class: InMemoryDownloadTokenRepository

Responsibilities:
- Implementar DownloadTokenRepository en memoria.
- mark_used como check-and-set bajo lock (equivalente al
  UPDATE ... WHERE used_at IS NULL de PostgreSQL).
- Unicidad de id y de valor de token (ConflictError).

Collaborators:
- domain.download_token.DownloadToken
- crosscutting.exceptions.ConflictError
============================================================
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from ....crosscutting.exceptions import ConflictError
from ....domain.download_token import DownloadToken


class InMemoryDownloadTokenRepository:
    """Repositorio in-memory de download tokens."""

    def __init__(self, tokens: Iterable[DownloadToken] | None = None) -> None:
        self._lock = threading.Lock()
        self._tokens: dict[UUID, DownloadToken] = {}
        self._by_value: dict[str, UUID] = {}
        for token in tokens or []:
            self.save(token)

    def save(self, token: DownloadToken) -> DownloadToken:
        with self._lock:
            if token.id in self._tokens:
                raise ConflictError("Download token id already exists.")
            if token.token in self._by_value:
                raise ConflictError("Download token value already exists.")
            self._tokens[token.id] = token
            self._by_value[token.token] = token.id
            return token

    def find_by_id(self, token_id: UUID) -> Optional[DownloadToken]:
        with self._lock:
            return self._tokens.get(token_id)

    def find_by_token(self, token_value: str) -> Optional[DownloadToken]:
        with self._lock:
            token_id = self._by_value.get(token_value)
            return self._tokens.get(token_id) if token_id else None

    def find_by_document_id(self, document_id: UUID) -> list[DownloadToken]:
        with self._lock:
            return self._sorted(
                t for t in self._tokens.values() if t.document_id == document_id
            )

    def find_by_user_id(self, user_id: UUID) -> list[DownloadToken]:
        with self._lock:
            return self._sorted(
                t for t in self._tokens.values() if t.issued_to == user_id
            )

    def mark_used(self, token_id: UUID, used_at: datetime) -> Optional[DownloadToken]:
        with self._lock:
            current = self._tokens.get(token_id)
            if current is None or current.used_at is not None:
                return None
            redeemed = current.mark_used(used_at)
            self._tokens[token_id] = redeemed
            return redeemed

    def delete(self, token_id: UUID) -> bool:
        with self._lock:
            token = self._tokens.pop(token_id, None)
            if token is None:
                return False
            self._by_value.pop(token.token, None)
            return True

    def delete_expired(self, now: datetime) -> int:
        return self._delete_where(lambda t: t.expires_at <= now)

    def delete_used(self) -> int:
        return self._delete_where(lambda t: t.used_at is not None)

    def _delete_where(self, predicate) -> int:
        with self._lock:
            doomed = [t for t in self._tokens.values() if predicate(t)]
            for token in doomed:
                del self._tokens[token.id]
                self._by_value.pop(token.token, None)
            return len(doomed)

    @staticmethod
    def _sorted(tokens: Iterable[DownloadToken]) -> list[DownloadToken]:
        return sorted(tokens, key=lambda t: (t.created_at, str(t.id)), reverse=True)
