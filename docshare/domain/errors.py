"""
===============================================================================
TARJETA CRC — domain/errors.py
===============================================================================

Responsabilidades:
  - Definir el error de validación del dominio (invariantes de entidades,
    identificadores mal formados, expiraciones inválidas).

Colaboradores:
  - domain/ids.py, domain/access_policy.py, domain/download_token.py (lanzan)
  - application/usecases/* (traducen a VALIDATION_ERROR)

Notas:
  - Hereda de ValueError: es un error de valor, no de infraestructura.
===============================================================================
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Valor inválido para una entidad o identificador del dominio."""

    def __init__(self, message: str, *, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)
