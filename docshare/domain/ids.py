"""
Identificadores tipados del dominio.

UserId / DocumentId / AccessPolicyId / DownloadTokenId son NewType sobre UUID:
en runtime son UUID comunes, pero un type checker rechaza pasar uno donde se
espera otro (p. ej. un DocumentId como issued_to).
"""

from __future__ import annotations

from typing import NewType
from uuid import UUID, uuid4

from .errors import ValidationError

UserId = NewType("UserId", UUID)
DocumentId = NewType("DocumentId", UUID)
AccessPolicyId = NewType("AccessPolicyId", UUID)
DownloadTokenId = NewType("DownloadTokenId", UUID)


def _parse_uuid(value: object, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a UUID.", field=field)
    try:
        return UUID(value.strip())
    except ValueError as exc:
        raise ValidationError(f"{field} must be a UUID.", field=field) from exc


def parse_user_id(value: UUID | str, field: str = "user_id") -> UserId:
    return UserId(_parse_uuid(value, field))


def parse_document_id(value: UUID | str, field: str = "document_id") -> DocumentId:
    return DocumentId(_parse_uuid(value, field))


def parse_policy_id(value: UUID | str, field: str = "policy_id") -> AccessPolicyId:
    return AccessPolicyId(_parse_uuid(value, field))


def parse_token_id(value: UUID | str, field: str = "token_id") -> DownloadTokenId:
    return DownloadTokenId(_parse_uuid(value, field))


def new_policy_id() -> AccessPolicyId:
    return AccessPolicyId(uuid4())


def new_token_id() -> DownloadTokenId:
    return DownloadTokenId(uuid4())
