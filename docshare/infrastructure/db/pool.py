"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool de conexiones PostgreSQL (singleton por proceso)

Responsabilidades:
  - Inicializar, exponer y cerrar el pool.
  - Configurar cada conexión nueva con statement_timeout.

Colaboradores:
  - psycopg_pool.ConnectionPool
  - crosscutting.config (timeout)
  - infrastructure/repositories/postgres/* (usan get_pool() si no se inyecta)

Principios:
  - Fail-fast: doble init o uso sin init levantan errores tipados.
===============================================================================
"""

from __future__ import annotations

import threading
from typing import Optional

from psycopg import Connection
from psycopg_pool import ConnectionPool

from ...crosscutting.logger import logger
from .errors import PoolAlreadyInitializedError, PoolNotInitializedError

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def _configure_connection(conn: Connection) -> None:
    """Se ejecuta cuando el pool abre una conexión nueva."""
    from ...crosscutting.config import get_settings

    timeout_ms = int(get_settings().db_statement_timeout_ms)
    if timeout_ms > 0:
        conn.execute(f"SET statement_timeout = {timeout_ms}")
        conn.commit()


def init_pool(database_url: str, min_size: int, max_size: int) -> ConnectionPool:
    """Inicializa el pool (una vez por proceso)."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            raise PoolAlreadyInitializedError("Pool already initialized.")

        logger.info(
            "Inicializando pool DB",
            extra={"min_size": min_size, "max_size": max_size},
        )
        _pool = ConnectionPool(
            conninfo=database_url,
            min_size=min_size,
            max_size=max_size,
            configure=_configure_connection,
            open=True,
        )
        return _pool


def get_pool() -> ConnectionPool:
    if _pool is None:
        raise PoolNotInitializedError("Pool not initialized. Call init_pool() first.")
    return _pool


def close_pool() -> None:
    """Cierra el pool (idempotente)."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            logger.info("Cerrando pool DB")
            try:
                _pool.close()
            finally:
                _pool = None


def reset_pool() -> None:
    """Reset para tests: descarta el singleton aunque close() falle."""
    global _pool

    with _pool_lock:
        if _pool is not None:
            try:
                _pool.close()
            except Exception as exc:
                logger.warning("Error cerrando pool en reset", extra={"error": str(exc)})
        _pool = None
