"""Casos de uso de políticas de acceso a documentos."""

from .access_results import (
    AccessError,
    AccessErrorCode,
    AccessPolicyListResult,
    AccessPolicyResult,
    CheckAccessInput,
    CheckAccessResult,
    GrantAccessInput,
    RevokeAccessInput,
    RevokeAccessResult,
)
from .check_access import CheckAccessUseCase
from .grant_access import GrantAccessUseCase
from .list_access_policies import ListDocumentPoliciesUseCase
from .revoke_access import RevokeAccessUseCase

__all__ = [
    "AccessError",
    "AccessErrorCode",
    "AccessPolicyListResult",
    "AccessPolicyResult",
    "CheckAccessInput",
    "CheckAccessResult",
    "CheckAccessUseCase",
    "GrantAccessInput",
    "GrantAccessUseCase",
    "ListDocumentPoliciesUseCase",
    "RevokeAccessInput",
    "RevokeAccessResult",
    "RevokeAccessUseCase",
]
