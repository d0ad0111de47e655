"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/download_token.py
============================================================
Class: PostgresDownloadTokenRepository

Responsibilities:
- Persistir tokens en download_tokens.
- Canje exactamente-una-vez: UPDATE ... WHERE id = %s AND used_at IS NULL
  RETURNING. Dos transacciones concurrentes no pueden ambas encontrar
  used_at IS NULL: la segunda espera el lock de fila y re-evalúa el WHERE.
- Limpieza de tokens expirados / usados.

Collaborators:
- domain.download_token.DownloadToken (to_record / from_record)
- PostgresRepository (pool + errores; UniqueViolation -> ConflictError)

Constraints / Notes:
- El valor del token NUNCA va a logs (extra solo lleva token_id).
============================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.download_token import DownloadToken
from .base import PostgresRepository

_COLUMNS = (
    "id",
    "token",
    "document_id",
    "issued_to",
    "expires_at",
    "used_at",
    "created_at",
    "updated_at",
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM download_tokens"


def _row_to_token(row: tuple) -> DownloadToken:
    return DownloadToken.from_record(dict(zip(_COLUMNS, row)))


class PostgresDownloadTokenRepository(PostgresRepository):
    """Repositorio PostgreSQL de download tokens."""

    _SQL_INSERT = f"""
        INSERT INTO download_tokens ({', '.join(_COLUMNS)})
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {', '.join(_COLUMNS)}
    """

    _SQL_FIND_BY_ID = f"{_SELECT} WHERE id = %s"

    _SQL_FIND_BY_TOKEN = f"{_SELECT} WHERE token = %s"

    _SQL_FIND_BY_DOCUMENT = f"""
        {_SELECT}
        WHERE document_id = %s
        ORDER BY created_at DESC, id DESC
    """

    _SQL_FIND_BY_USER = f"""
        {_SELECT}
        WHERE issued_to = %s
        ORDER BY created_at DESC, id DESC
    """

    _SQL_MARK_USED = f"""
        UPDATE download_tokens
        SET used_at = %s, updated_at = %s
        WHERE id = %s AND used_at IS NULL
        RETURNING {', '.join(_COLUMNS)}
    """

    _SQL_DELETE = "DELETE FROM download_tokens WHERE id = %s"

    _SQL_DELETE_EXPIRED = "DELETE FROM download_tokens WHERE expires_at <= %s"

    _SQL_DELETE_USED = "DELETE FROM download_tokens WHERE used_at IS NOT NULL"

    def save(self, token: DownloadToken) -> DownloadToken:
        record = token.to_record()
        row = self._fetchone(
            query=self._SQL_INSERT,
            params=[record[column] for column in _COLUMNS],
            context_msg="PostgresDownloadTokenRepository: Failed to save token",
            extra={"token_id": str(token.id), "document_id": str(token.document_id)},
        )
        if row is None:  # pragma: no cover - RETURNING siempre devuelve
            raise DatabaseError("Unexpected: RETURNING clause returned no rows")
        return _row_to_token(row)

    def find_by_id(self, token_id: UUID) -> Optional[DownloadToken]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_ID,
            params=[token_id],
            context_msg="PostgresDownloadTokenRepository: Failed to get token",
            extra={"token_id": str(token_id)},
        )
        return _row_to_token(row) if row else None

    def find_by_token(self, token_value: str) -> Optional[DownloadToken]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_TOKEN,
            params=[token_value],
            context_msg="PostgresDownloadTokenRepository: Failed to get token by value",
            extra={},
        )
        return _row_to_token(row) if row else None

    def find_by_document_id(self, document_id: UUID) -> list[DownloadToken]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_DOCUMENT,
            params=[document_id],
            context_msg="PostgresDownloadTokenRepository: Failed to list document tokens",
            extra={"document_id": str(document_id)},
        )
        return [_row_to_token(row) for row in rows]

    def find_by_user_id(self, user_id: UUID) -> list[DownloadToken]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_USER,
            params=[user_id],
            context_msg="PostgresDownloadTokenRepository: Failed to list user tokens",
            extra={"user_id": str(user_id)},
        )
        return [_row_to_token(row) for row in rows]

    def mark_used(self, token_id: UUID, used_at: datetime) -> Optional[DownloadToken]:
        row = self._fetchone(
            query=self._SQL_MARK_USED,
            params=[used_at, used_at, token_id],
            context_msg="PostgresDownloadTokenRepository: Failed to redeem token",
            extra={"token_id": str(token_id)},
        )
        return _row_to_token(row) if row else None

    def delete(self, token_id: UUID) -> bool:
        return (
            self._execute(
                query=self._SQL_DELETE,
                params=[token_id],
                context_msg="PostgresDownloadTokenRepository: Failed to delete token",
                extra={"token_id": str(token_id)},
            )
            > 0
        )

    def delete_expired(self, now: datetime) -> int:
        return self._execute(
            query=self._SQL_DELETE_EXPIRED,
            params=[now],
            context_msg="PostgresDownloadTokenRepository: Failed to delete expired tokens",
            extra={"cutoff": now.isoformat()},
        )

    def delete_used(self) -> int:
        return self._execute(
            query=self._SQL_DELETE_USED,
            params=[],
            context_msg="PostgresDownloadTokenRepository: Failed to delete used tokens",
            extra={},
        )
