"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/access_policy.py
============================================================
Class: InMemoryAccessPolicyRepository

Responsibilities:
- Implementar AccessPolicyRepository en memoria (tests / local).
- Misma semántica que PostgreSQL: has_permission sobre políticas activas,
  orden por prioridad, deletes con conteo.

Collaborators:
- domain.access_policy.AccessPolicy

Constraints / Notes:
- Thread-safe con threading.Lock.
- Las entidades son inmutables: se guardan tal cual.
============================================================
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional
from uuid import UUID

from ....domain.access_policy import (
    AccessPolicy,
    ResourceType,
    SubjectType,
    sort_by_priority,
)


class InMemoryAccessPolicyRepository:
    """Repositorio in-memory de políticas de acceso."""

    def __init__(self, policies: Iterable[AccessPolicy] | None = None) -> None:
        self._lock = threading.Lock()
        self._policies: dict[UUID, AccessPolicy] = {
            policy.id: policy for policy in (policies or [])
        }

    def find_by_id(self, policy_id: UUID) -> Optional[AccessPolicy]:
        with self._lock:
            return self._policies.get(policy_id)

    def find_by_resource_id(self, resource_id: UUID) -> list[AccessPolicy]:
        with self._lock:
            return sort_by_priority(
                p
                for p in self._policies.values()
                if p.resource_type is ResourceType.DOCUMENT
                and p.resource_id == resource_id
            )

    def find_by_subject(
        self,
        subject_type: SubjectType,
        *,
        subject_id: UUID | None = None,
        role_name: str | None = None,
    ) -> list[AccessPolicy]:
        subject_type = SubjectType(subject_type)
        role = role_name.strip().lower() if role_name else None
        with self._lock:
            return sort_by_priority(
                p
                for p in self._policies.values()
                if p.subject_type is subject_type
                and (
                    p.subject_id == subject_id
                    if subject_type is SubjectType.USER
                    else p.role_name == role
                )
            )

    def find_by_user_and_resource(
        self, user_id: UUID, resource_id: UUID
    ) -> list[AccessPolicy]:
        with self._lock:
            return sort_by_priority(
                p
                for p in self._policies.values()
                if p.subject_type is SubjectType.USER
                and p.subject_id == user_id
                and p.resource_type is ResourceType.DOCUMENT
                and p.resource_id == resource_id
            )

    def has_permission(
        self,
        resource_id: UUID,
        user_id: UUID,
        action: str,
        *,
        roles: Iterable[str] = (),
    ) -> bool:
        roles = tuple(roles)
        with self._lock:
            return any(
                p.permits(
                    resource_id=resource_id, user_id=user_id, action=action, roles=roles
                )
                for p in self._policies.values()
            )

    def save(self, policy: AccessPolicy) -> AccessPolicy:
        with self._lock:
            self._policies[policy.id] = policy
            return policy

    def delete(self, policy_id: UUID) -> bool:
        with self._lock:
            return self._policies.pop(policy_id, None) is not None

    def delete_by_resource_id(self, resource_id: UUID) -> int:
        return self._delete_where(
            lambda p: p.resource_type is ResourceType.DOCUMENT
            and p.resource_id == resource_id
        )

    def delete_by_user_id(self, user_id: UUID) -> int:
        return self._delete_where(
            lambda p: p.subject_type is SubjectType.USER and p.subject_id == user_id
        )

    def delete_by_user_and_resource(self, resource_id: UUID, user_id: UUID) -> int:
        return self._delete_where(
            lambda p: p.subject_type is SubjectType.USER
            and p.subject_id == user_id
            and p.resource_type is ResourceType.DOCUMENT
            and p.resource_id == resource_id
        )

    def _delete_where(self, predicate) -> int:
        with self._lock:
            doomed = [pid for pid, p in self._policies.items() if predicate(p)]
            for pid in doomed:
                del self._policies[pid]
            return len(doomed)
