"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/base.py
============================================================
Class: PostgresRepository

Responsibilities:
- Resolver el pool (inyectado o global, lazy).
- Ejecutar SQL parametrizado con manejo de errores consistente:
  UniqueViolation -> ConflictError, cualquier otra falla -> DatabaseError.
- Loguear con contexto (sin parámetros: pueden contener secretos).

Collaborators:
- psycopg_pool.ConnectionPool
- crosscutting.exceptions (DatabaseError, ConflictError)
- crosscutting.logger
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional

from psycopg import errors as pg_errors
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import ConflictError, DatabaseError
from ....crosscutting.logger import logger


class PostgresRepository:
    """Base de repositorios PostgreSQL (SQL crudo)."""

    def __init__(self, pool: Optional[ConnectionPool] = None):
        # Pool inyectable para tests. En prod se obtiene por factory global.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool
        from ...db.pool import get_pool

        return get_pool()

    def _fetchall(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            raise self._translate(exc, context_msg, extra) from exc

    def _fetchone(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            raise self._translate(exc, context_msg, extra) from exc

    def _execute(
        self, *, query: str, params: Iterable[object], context_msg: str, extra: dict
    ) -> int:
        """Ejecuta un comando y devuelve rowcount."""
        try:
            with self._get_pool().connection() as conn:
                result = conn.execute(query, tuple(params))
                return result.rowcount or 0
        except Exception as exc:
            raise self._translate(exc, context_msg, extra) from exc

    @staticmethod
    def _translate(exc: Exception, context_msg: str, extra: dict) -> Exception:
        if isinstance(exc, pg_errors.UniqueViolation):
            logger.warning(context_msg, extra={**extra, "error": "unique_violation"})
            return ConflictError(f"{context_msg}: duplicate key", original_error=exc)
        logger.exception(context_msg, extra={**extra, "error": str(exc)})
        return DatabaseError(f"{context_msg}: {exc}", original_error=exc)
