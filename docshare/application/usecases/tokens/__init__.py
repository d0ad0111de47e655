"""Casos de uso de tokens de descarga (emisión, canje, limpieza)."""

from .cleanup_download_tokens import CleanupDownloadTokensUseCase
from .create_download_token import CreateDownloadTokenUseCase
from .token_results import (
    CreateDownloadTokenInput,
    TokenCleanupResult,
    TokenError,
    TokenErrorCode,
    TokenResult,
    ValidateDownloadTokenInput,
)
from .validate_download_token import ValidateDownloadTokenUseCase

__all__ = [
    "CleanupDownloadTokensUseCase",
    "CreateDownloadTokenInput",
    "CreateDownloadTokenUseCase",
    "TokenCleanupResult",
    "TokenError",
    "TokenErrorCode",
    "TokenResult",
    "ValidateDownloadTokenInput",
    "ValidateDownloadTokenUseCase",
]
