"""
===============================================================================
CRC CARD — infrastructure/db/errors.py
===============================================================================

Componente:
  Errores tipados del ciclo de vida del pool

Responsabilidades:
  - Distinguir "no inicializado" de "ya inicializado" (tests los verifican).
  - Heredan de RuntimeError: mal uso del ciclo de vida, no falla de query.
===============================================================================
"""


class DatabasePoolError(RuntimeError):
    """Base de errores del pool."""


class PoolAlreadyInitializedError(DatabasePoolError):
    """init_pool() llamado dos veces en el mismo proceso."""


class PoolNotInitializedError(DatabasePoolError):
    """get_pool() llamado antes de init_pool()."""
