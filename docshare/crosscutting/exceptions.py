"""
===============================================================================
MÓDULO: Excepciones de infraestructura
===============================================================================

Objetivo
--------
Errores internos que cruzan la frontera repositorio -> caso de uso:
- error_code estable (lo usan los resultados tipados)
- error_id para correlacionar con logs
- message sin secretos (nunca incluye el valor de un token)

Colaboradores:
  - infrastructure/repositories/postgres/*: envuelven fallas de psycopg
  - application/usecases/*: traducen a AccessErrorCode / TokenErrorCode
===============================================================================
"""

from __future__ import annotations

from uuid import uuid4


class DocShareError(Exception):
    """Base para errores internos del sistema."""

    error_code: str = "DOCSHARE_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "error_id": self.error_id,
        }


class DatabaseError(DocShareError):
    """Errores de DB (conexión, query, timeout, pool). Reintentable."""

    error_code: str = "DATABASE_ERROR"


class ConflictError(DocShareError):
    """Violación de unicidad (id o valor de token duplicado)."""

    error_code: str = "CONFLICT"
