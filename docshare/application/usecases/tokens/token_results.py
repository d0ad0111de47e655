"""
===============================================================================
DOWNLOAD TOKEN USE CASE RESULTS
===============================================================================

CRC CARD
-------------------------------------------------------------------------------
Component:
    token_results models (module)

Responsibilities:
    - TokenErrorCode: categorías estables de fallo de emisión/canje/limpieza.
    - Inputs: CreateDownloadTokenInput, ValidateDownloadTokenInput.
    - Results: TokenResult, TokenCleanupResult.

Collaborators:
    - domain.download_token.DownloadToken / TokenRejection
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from ....domain.download_token import DownloadToken, TokenRejection


class TokenErrorCode(str, Enum):
    """
    Códigos:
      - VALIDATION_ERROR: ids mal formados, expiración inválida.
      - NOT_FOUND: documento o token inexistente.
      - FORBIDDEN: el actor no puede leer el documento / limpiar tokens.
      - CONFLICT: colisión de id o secreto al persistir.
      - DATABASE_ERROR: falla de infraestructura (reintentable).
      - ALREADY_USED / EXPIRED / INVALID_RECIPIENT: rechazos de canje.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    ALREADY_USED = "ALREADY_USED"
    EXPIRED = "EXPIRED"
    INVALID_RECIPIENT = "INVALID_RECIPIENT"


_REJECTION_CODES: dict[TokenRejection, TokenErrorCode] = {
    TokenRejection.INVALID_RECIPIENT: TokenErrorCode.INVALID_RECIPIENT,
    TokenRejection.ALREADY_USED: TokenErrorCode.ALREADY_USED,
    TokenRejection.EXPIRED: TokenErrorCode.EXPIRED,
}

_REJECTION_MESSAGES: dict[TokenRejection, str] = {
    TokenRejection.INVALID_RECIPIENT: "Token was issued to a different user.",
    TokenRejection.ALREADY_USED: "Token has already been used.",
    TokenRejection.EXPIRED: "Token has expired.",
}


@dataclass(frozen=True)
class TokenError:
    code: TokenErrorCode
    message: str
    retryable: bool = False


@dataclass(frozen=True)
class CreateDownloadTokenInput:
    """expires_at omitido => now + TTL por defecto."""

    document_id: UUID | str
    issued_to: UUID | str
    expires_at: datetime | None = None


@dataclass(frozen=True)
class ValidateDownloadTokenInput:
    """Identifica el token por id o por su valor secreto (exactamente uno)."""

    token_id: UUID | str | None = None
    token: str | None = None


@dataclass
class TokenResult:
    token: DownloadToken | None = None
    error: TokenError | None = None


@dataclass
class TokenCleanupResult:
    expired_removed: int = 0
    used_removed: int = 0
    error: TokenError | None = None


def token_error(code: TokenErrorCode, message: str) -> TokenError:
    return TokenError(
        code=code,
        message=message,
        retryable=code is TokenErrorCode.DATABASE_ERROR,
    )


def rejection_error(rejection: TokenRejection) -> TokenError:
    return token_error(_REJECTION_CODES[rejection], _REJECTION_MESSAGES[rejection])
