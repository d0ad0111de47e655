"""
===============================================================================
TARJETA CRC — docshare/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer repositorios, AccessControlService, AuditLogger y casos de uso.
  - Elegir adapters según entorno: in-memory en test, PostgreSQL en runtime.
  - Trasladar Settings (TTLs de tokens, prioridad por defecto) a los casos de uso.

Colaboradores:
  - docshare.crosscutting.config.get_settings
  - docshare.domain.repositories.* (puertos)
  - docshare.infrastructure.repositories.* (implementaciones)
  - docshare.application.usecases.* (casos de uso)

Patrones aplicados:
  - Composition Root
  - Dependency Inversion (los casos de uso reciben puertos por constructor)
  - Singletons con lru_cache SOLO para repositorios y servicios sin estado
    propio; los casos de uso se construyen por llamada.

Notas:
  - Sin lógica de negocio.
  - reset_container() limpia los caches (tests).
===============================================================================
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from .application.usecases.access import (
    CheckAccessUseCase,
    GrantAccessUseCase,
    ListDocumentPoliciesUseCase,
    RevokeAccessUseCase,
)
from .application.usecases.tokens import (
    CleanupDownloadTokensUseCase,
    CreateDownloadTokenUseCase,
    ValidateDownloadTokenUseCase,
)
from .audit import AuditLogger
from .crosscutting.config import get_settings
from .domain.repositories import (
    AccessPolicyRepository,
    AuditEventRepository,
    DocumentRepository,
    DownloadTokenRepository,
)
from .identity.access_control import AccessControlService
from .infrastructure.repositories.in_memory import (
    InMemoryAccessPolicyRepository,
    InMemoryAuditEventRepository,
    InMemoryDocumentRepository,
    InMemoryDownloadTokenRepository,
)
from .infrastructure.repositories.postgres import (
    PostgresAccessPolicyRepository,
    PostgresAuditEventRepository,
    PostgresDocumentRepository,
    PostgresDownloadTokenRepository,
)


def _is_test_env() -> bool:
    """app_env ∈ {"test", "testing", "ci"} => adapters in-memory."""
    return get_settings().app_env.strip().lower() in {"test", "testing", "ci"}


# =============================================================================
# Repositorios (singletons)
# =============================================================================


@lru_cache(maxsize=1)
def get_document_repository() -> DocumentRepository:
    if _is_test_env():
        return InMemoryDocumentRepository()
    return PostgresDocumentRepository()


@lru_cache(maxsize=1)
def get_access_policy_repository() -> AccessPolicyRepository:
    if _is_test_env():
        return InMemoryAccessPolicyRepository()
    return PostgresAccessPolicyRepository()


@lru_cache(maxsize=1)
def get_download_token_repository() -> DownloadTokenRepository:
    if _is_test_env():
        return InMemoryDownloadTokenRepository()
    return PostgresDownloadTokenRepository()


@lru_cache(maxsize=1)
def get_audit_repository() -> AuditEventRepository:
    if _is_test_env():
        return InMemoryAuditEventRepository()
    return PostgresAuditEventRepository()


# =============================================================================
# Servicios
# =============================================================================


@lru_cache(maxsize=1)
def get_access_control_service() -> AccessControlService:
    return AccessControlService(get_access_policy_repository())


@lru_cache(maxsize=1)
def get_audit_logger() -> AuditLogger:
    return AuditLogger(get_audit_repository())


# =============================================================================
# Casos de uso (uno por llamada)
# =============================================================================


def get_grant_access_use_case() -> GrantAccessUseCase:
    return GrantAccessUseCase(
        get_document_repository(),
        get_access_policy_repository(),
        get_access_control_service(),
        get_audit_logger(),
        default_priority=get_settings().default_policy_priority,
    )


def get_revoke_access_use_case() -> RevokeAccessUseCase:
    return RevokeAccessUseCase(
        get_document_repository(),
        get_access_policy_repository(),
        get_access_control_service(),
        get_audit_logger(),
    )


def get_check_access_use_case() -> CheckAccessUseCase:
    return CheckAccessUseCase(get_access_policy_repository(), get_audit_logger())


def get_list_document_policies_use_case() -> ListDocumentPoliciesUseCase:
    return ListDocumentPoliciesUseCase(
        get_document_repository(),
        get_access_policy_repository(),
        get_access_control_service(),
    )


def get_create_download_token_use_case() -> CreateDownloadTokenUseCase:
    settings = get_settings()
    return CreateDownloadTokenUseCase(
        get_document_repository(),
        get_download_token_repository(),
        get_access_control_service(),
        get_audit_logger(),
        default_ttl=timedelta(seconds=settings.download_token_default_ttl_seconds),
        max_ttl=timedelta(seconds=settings.download_token_max_ttl_seconds),
    )


def get_validate_download_token_use_case() -> ValidateDownloadTokenUseCase:
    return ValidateDownloadTokenUseCase(
        get_download_token_repository(), get_audit_logger()
    )


def get_cleanup_download_tokens_use_case() -> CleanupDownloadTokensUseCase:
    return CleanupDownloadTokensUseCase(
        get_download_token_repository(),
        get_access_control_service(),
        get_audit_logger(),
    )


def reset_container() -> None:
    """Limpia los singletons (tests)."""
    for factory in (
        get_document_repository,
        get_access_policy_repository,
        get_download_token_repository,
        get_audit_repository,
        get_access_control_service,
        get_audit_logger,
    ):
        factory.cache_clear()
