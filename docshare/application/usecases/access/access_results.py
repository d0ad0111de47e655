"""
===============================================================================
ACCESS POLICY USE CASE RESULTS (Inputs / Result / Error Models)
===============================================================================

Business Goal:
    Contrato estable para los casos de uso de políticas de acceso
    (grant / revoke / check / list): inputs explícitos y resultados tipados.

Why:
    - Los use cases devuelven resultados en lugar de lanzar excepciones hacia
      afuera: quien llama mapea AccessErrorCode a su transporte.
    - DATABASE_ERROR se marca como retryable; el resto no.

-------------------------------------------------------------------------------
CRC CARD
-------------------------------------------------------------------------------
Component:
    access_results models (module)

Responsibilities:
    - AccessErrorCode / AccessError
    - Inputs: GrantAccessInput, RevokeAccessInput, CheckAccessInput
    - Results: AccessPolicyResult, RevokeAccessResult, CheckAccessResult,
      AccessPolicyListResult

Collaborators:
    - domain.access_policy.AccessPolicy
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence
from uuid import UUID

from ....domain.access_policy import AccessPolicy


class AccessErrorCode(str, Enum):
    """
    Códigos de error para casos de uso de políticas.

    Códigos:
      - VALIDATION_ERROR: input mal formado o política inválida.
      - NOT_FOUND: documento inexistente.
      - FORBIDDEN: el actor no puede gestionar el documento.
      - CONFLICT: colisión de unicidad al persistir.
      - DATABASE_ERROR: falla de infraestructura (reintentable).
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"


@dataclass(frozen=True)
class AccessError:
    code: AccessErrorCode
    message: str
    retryable: bool = False


@dataclass(frozen=True)
class GrantAccessInput:
    document_id: UUID | str
    granted_to: UUID | str
    actions: Sequence[str]
    priority: int | None = None
    description: str | None = None


@dataclass(frozen=True)
class RevokeAccessInput:
    document_id: UUID | str
    revoked_from: UUID | str


@dataclass(frozen=True)
class CheckAccessInput:
    document_id: UUID | str
    user_id: UUID | str
    action: str
    roles: Sequence[str] = ()


@dataclass
class AccessPolicyResult:
    """Éxito => policy presente; fallo => error presente."""

    policy: AccessPolicy | None = None
    error: AccessError | None = None


@dataclass
class RevokeAccessResult:
    """revoked: cantidad de políticas eliminadas (0 también es éxito)."""

    revoked: int = 0
    error: AccessError | None = None


@dataclass
class CheckAccessResult:
    allowed: bool = False
    error: AccessError | None = None


@dataclass
class AccessPolicyListResult:
    policies: List[AccessPolicy] = field(default_factory=list)
    error: AccessError | None = None


def access_error(code: AccessErrorCode, message: str) -> AccessError:
    return AccessError(
        code=code,
        message=message,
        retryable=code is AccessErrorCode.DATABASE_ERROR,
    )
