"""Dominio: entidades inmutables, identificadores tipados y puertos de persistencia."""

from .access_policy import AccessPolicy, ResourceType, SubjectType
from .download_token import DownloadToken, TokenRejection, TokenState
from .entities import Document
from .errors import ValidationError

__all__ = [
    "AccessPolicy",
    "Document",
    "DownloadToken",
    "ResourceType",
    "SubjectType",
    "TokenRejection",
    "TokenState",
    "ValidationError",
]
