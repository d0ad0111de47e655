"""
===============================================================================
TARJETA CRC — domain/download_token.py
===============================================================================

Módulo:
    DownloadToken (credencial bearer de un solo uso)

Responsabilidades:
    - Emitir tokens con secreto aleatorio (32 bytes -> 64 hex).
    - Validar la ventana de expiración al emitir (futuro, <= max_ttl).
    - Derivar el estado: UNUSED | USED | EXPIRED (EXPIRED nunca se guarda).
    - Evaluar un intento de canje sin mutar (check_redemption).
    - Transicionar UNUSED -> USED (mark_used). used_at nunca vuelve a None.

Colaboradores:
    - domain.repositories.DownloadTokenRepository (mark_used condicional)
    - application/usecases/tokens/*

Notas de seguridad:
    - __repr__ NO incluye el secreto (evita filtrarlo en logs/tracebacks).
    - La comparación de destinatario ocurre antes que cualquier otra:
      un no-destinatario no aprende si el token está usado o expirado.
===============================================================================
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from .clock import is_aware
from .errors import ValidationError
from .ids import (
    DocumentId,
    DownloadTokenId,
    UserId,
    new_token_id,
    parse_document_id,
    parse_token_id,
    parse_user_id,
)

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2
DEFAULT_MAX_TTL = timedelta(hours=24)

_TOKEN_PATTERN = re.compile(r"^[0-9a-f]{%d}$" % TOKEN_LENGTH)


class TokenState(str, Enum):
    UNUSED = "unused"
    USED = "used"
    EXPIRED = "expired"


class TokenRejection(str, Enum):
    """Motivo por el que un canje no procede (orden de evaluación = orden de declaración)."""

    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    ALREADY_USED = "ALREADY_USED"
    EXPIRED = "EXPIRED"


def generate_token_value() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def is_token_value(value: object) -> bool:
    return isinstance(value, str) and bool(_TOKEN_PATTERN.match(value))


def _require_aware(value: object, field: str) -> None:
    if not isinstance(value, datetime) or not is_aware(value):
        raise ValidationError(f"{field} must be a timezone-aware datetime.", field=field)


@dataclass(frozen=True, slots=True, repr=False)
class DownloadToken:
    """Token de descarga ligado a un documento, un destinatario y una expiración."""

    id: DownloadTokenId
    token: str
    document_id: DocumentId
    issued_to: UserId
    expires_at: datetime
    created_at: datetime
    used_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, UUID):
            raise ValidationError("Token id must be a UUID.", field="id")
        if not is_token_value(self.token):
            raise ValidationError(
                f"Token value must be {TOKEN_LENGTH} lowercase hex characters.",
                field="token",
            )
        if not isinstance(self.document_id, UUID):
            raise ValidationError("document_id must be a UUID.", field="document_id")
        if not isinstance(self.issued_to, UUID):
            raise ValidationError("issued_to must be a UUID.", field="issued_to")
        _require_aware(self.expires_at, "expires_at")
        _require_aware(self.created_at, "created_at")
        if self.expires_at <= self.created_at:
            raise ValidationError(
                "expires_at must be after created_at.", field="expires_at"
            )
        if self.used_at is not None:
            _require_aware(self.used_at, "used_at")
        if self.updated_at is not None:
            _require_aware(self.updated_at, "updated_at")

    def __repr__(self) -> str:
        return (
            f"DownloadToken(id={self.id}, document_id={self.document_id}, "
            f"issued_to={self.issued_to}, expires_at={self.expires_at.isoformat()}, "
            f"used_at={self.used_at.isoformat() if self.used_at else None})"
        )

    # ------------------------------------------------------------------
    # Emisión
    # ------------------------------------------------------------------
    @classmethod
    def issue(
        cls,
        *,
        document_id: UUID | str,
        issued_to: UUID | str,
        expires_at: datetime,
        now: datetime,
        max_ttl: timedelta = DEFAULT_MAX_TTL,
        token_id: UUID | None = None,
    ) -> "DownloadToken":
        """
        Emite un token nuevo (UNUSED).

        Raises:
            ValidationError: ids mal formados, expiración en el pasado o más
            allá de max_ttl.
        """
        _require_aware(now, "now")
        _require_aware(expires_at, "expires_at")
        if expires_at <= now:
            raise ValidationError(
                "Expiration must be in the future.", field="expires_at"
            )
        if expires_at - now > max_ttl:
            raise ValidationError(
                f"Expiration exceeds the maximum window of "
                f"{int(max_ttl.total_seconds())} seconds.",
                field="expires_at",
            )

        return cls(
            id=DownloadTokenId(token_id) if token_id else new_token_id(),
            token=generate_token_value(),
            document_id=parse_document_id(document_id),
            issued_to=parse_user_id(issued_to, "issued_to"),
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    # Estado y canje
    # ------------------------------------------------------------------
    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def state(self, now: datetime) -> TokenState:
        if self.used_at is not None:
            return TokenState.USED
        if self.is_expired(now):
            return TokenState.EXPIRED
        return TokenState.UNUSED

    def check_redemption(
        self, user_id: UUID, now: datetime
    ) -> TokenRejection | None:
        """Evalúa un intento de canje sin mutar. None = puede canjearse."""
        if self.issued_to != user_id:
            return TokenRejection.INVALID_RECIPIENT
        if self.used_at is not None:
            return TokenRejection.ALREADY_USED
        if self.is_expired(now):
            return TokenRejection.EXPIRED
        return None

    def mark_used(self, now: datetime) -> "DownloadToken":
        if self.used_at is not None:
            raise ValidationError("Token has already been used.", field="used_at")
        _require_aware(now, "used_at")
        return replace(self, used_at=now, updated_at=now)

    # ------------------------------------------------------------------
    # Forma persistida
    # ------------------------------------------------------------------
    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "token": self.token,
            "document_id": self.document_id,
            "issued_to": self.issued_to,
            "expires_at": self.expires_at,
            "used_at": self.used_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DownloadToken":
        """Rehidrata una fila: valida estructura, NO que siga vigente."""
        return cls(
            id=parse_token_id(record["id"], "id"),
            token=record["token"],
            document_id=parse_document_id(record["document_id"]),
            issued_to=parse_user_id(record["issued_to"], "issued_to"),
            expires_at=record["expires_at"],
            used_at=record.get("used_at"),
            created_at=record["created_at"],
            updated_at=record.get("updated_at"),
        )
