"""
===============================================================================
TARJETA CRC — domain/access_policy.py
===============================================================================

Módulo:
    AccessPolicy (entidad inmutable)

Responsabilidades:
    - Representar un grant: "el sujeto S puede hacer {acciones} sobre R".
    - Validar invariantes al construir (cualquier instancia es válida).
    - Responder si aplica a un usuario/rol, a un recurso y a una acción.
    - Codificar/decodificar la forma persistida (fila de access_policies).

Colaboradores:
    - domain.ids (identificadores tipados)
    - domain.errors.ValidationError
    - domain.repositories.AccessPolicyRepository

Invariantes:
    - subject_type=user  <=> subject_id presente y role_name ausente.
    - subject_type=role  <=> role_name presente y subject_id ausente.
    - resource_type=document <=> resource_id presente.
    - actions no vacío, subconjunto de {read, write, delete, manage}.
    - priority en 1..100 (menor = primero). Solo ordena, nunca deniega.
    - name 1..255 chars, description <= 1000 chars.
    - updated_at ausente hasta la primera mutación.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping
from uuid import UUID

from .clock import is_aware
from .errors import ValidationError
from .ids import (
    AccessPolicyId,
    DocumentId,
    UserId,
    new_policy_id,
    parse_document_id,
    parse_policy_id,
    parse_user_id,
)

POLICY_ACTIONS: frozenset[str] = frozenset({"read", "write", "delete", "manage"})

MIN_PRIORITY = 1
MAX_PRIORITY = 100
DEFAULT_PRIORITY = 50
MAX_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000
MAX_ROLE_NAME_LENGTH = 64


class SubjectType(str, Enum):
    USER = "user"
    ROLE = "role"


class ResourceType(str, Enum):
    DOCUMENT = "document"
    GLOBAL = "global"


def normalize_action(action: object) -> str:
    """Normaliza y valida una acción del vocabulario de políticas."""
    if not isinstance(action, str):
        raise ValidationError("Policy actions must be strings.", field="actions")
    normalized = action.strip().lower()
    if normalized not in POLICY_ACTIONS:
        raise ValidationError(
            f"Unknown policy action '{action}'. Allowed: {sorted(POLICY_ACTIONS)}.",
            field="actions",
        )
    return normalized


def normalize_actions(actions: Iterable[str]) -> frozenset[str]:
    if isinstance(actions, str):
        actions = [actions]
    normalized = frozenset(normalize_action(a) for a in actions)
    if not normalized:
        raise ValidationError("At least one action is required.", field="actions")
    return normalized


def _coerce_enum(enum_cls, value: object, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = [member.value for member in enum_cls]
        raise ValidationError(
            f"{field} must be one of {allowed}.", field=field
        ) from exc


@dataclass(frozen=True, slots=True)
class AccessPolicy:
    """Grant de acciones de un sujeto (usuario o rol) sobre un recurso."""

    id: AccessPolicyId
    name: str
    subject_type: SubjectType
    resource_type: ResourceType
    actions: frozenset[str]
    created_at: datetime
    description: str = ""
    subject_id: UserId | None = None
    role_name: str | None = None
    resource_id: DocumentId | None = None
    priority: int = DEFAULT_PRIORITY
    is_active: bool = True
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        _check_invariants(self)

    # ------------------------------------------------------------------
    # Construcción
    # ------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        *,
        name: str,
        subject_type: SubjectType | str,
        resource_type: ResourceType | str,
        actions: Iterable[str],
        now: datetime,
        subject_id: UUID | str | None = None,
        role_name: str | None = None,
        resource_id: UUID | str | None = None,
        description: str | None = None,
        priority: int = DEFAULT_PRIORITY,
        is_active: bool = True,
        policy_id: UUID | None = None,
    ) -> "AccessPolicy":
        """
        Factory validante: normaliza inputs y devuelve una política nueva.

        Raises:
            ValidationError: si algún invariante no se cumple.
        """
        if not isinstance(name, str):
            raise ValidationError("Policy name is required.", field="name")
        if role_name is not None:
            if not isinstance(role_name, str):
                raise ValidationError("role_name must be a string.", field="role_name")
            role_name = role_name.strip().lower() or None

        return cls(
            id=AccessPolicyId(policy_id) if policy_id else new_policy_id(),
            name=name.strip(),
            description=(description or "").strip(),
            subject_type=_coerce_enum(SubjectType, subject_type, "subject_type"),
            subject_id=(
                parse_user_id(subject_id, "subject_id")
                if subject_id is not None
                else None
            ),
            role_name=role_name,
            resource_type=_coerce_enum(ResourceType, resource_type, "resource_type"),
            resource_id=(
                parse_document_id(resource_id, "resource_id")
                if resource_id is not None
                else None
            ),
            actions=normalize_actions(actions),
            priority=priority,
            is_active=is_active,
            created_at=now,
        )

    def with_changes(self, *, now: datetime, **changes: Any) -> "AccessPolicy":
        """
        Devuelve una copia modificada con updated_at=now.

        id y created_at son inmutables.
        """
        for frozen_field in ("id", "created_at", "updated_at"):
            if frozen_field in changes:
                raise ValidationError(
                    f"{frozen_field} cannot be changed.", field=frozen_field
                )
        if "actions" in changes:
            changes["actions"] = normalize_actions(changes["actions"])
        if "subject_type" in changes:
            changes["subject_type"] = _coerce_enum(
                SubjectType, changes["subject_type"], "subject_type"
            )
        if "resource_type" in changes:
            changes["resource_type"] = _coerce_enum(
                ResourceType, changes["resource_type"], "resource_type"
            )
        if isinstance(changes.get("description"), str):
            changes["description"] = changes["description"].strip()
        return replace(self, **changes, updated_at=now)

    def deactivate(self, now: datetime) -> "AccessPolicy":
        return self.with_changes(now=now, is_active=False)

    # ------------------------------------------------------------------
    # Evaluación
    # ------------------------------------------------------------------
    def grants(self, action: str) -> bool:
        return self.is_active and action.strip().lower() in self.actions

    def applies_to_resource(self, resource_id: UUID) -> bool:
        if self.resource_type is ResourceType.GLOBAL:
            return True
        return self.resource_id == resource_id

    def applies_to_subject(self, user_id: UUID, roles: Iterable[str] = ()) -> bool:
        if self.subject_type is SubjectType.USER:
            return self.subject_id == user_id
        return self.role_name in {r.strip().lower() for r in roles}

    def permits(
        self,
        *,
        resource_id: UUID,
        user_id: UUID,
        action: str,
        roles: Iterable[str] = (),
    ) -> bool:
        """Una política activa permite si aplica al sujeto, al recurso y a la acción."""
        return (
            self.is_active
            and self.applies_to_subject(user_id, roles)
            and self.applies_to_resource(resource_id)
            and self.grants(action)
        )

    # ------------------------------------------------------------------
    # Forma persistida
    # ------------------------------------------------------------------
    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "subject_type": self.subject_type.value,
            "subject_id": self.subject_id,
            "role_name": self.role_name,
            "resource_type": self.resource_type.value,
            "resource_id": self.resource_id,
            "actions": sorted(self.actions),
            "priority": self.priority,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AccessPolicy":
        subject_id = record.get("subject_id")
        resource_id = record.get("resource_id")
        return cls(
            id=parse_policy_id(record["id"], "id"),
            name=record["name"],
            description=record.get("description") or "",
            subject_type=_coerce_enum(
                SubjectType, record["subject_type"], "subject_type"
            ),
            subject_id=(
                parse_user_id(subject_id, "subject_id")
                if subject_id is not None
                else None
            ),
            role_name=record.get("role_name"),
            resource_type=_coerce_enum(
                ResourceType, record["resource_type"], "resource_type"
            ),
            resource_id=(
                parse_document_id(resource_id, "resource_id")
                if resource_id is not None
                else None
            ),
            actions=frozenset(record["actions"]),
            priority=record["priority"],
            is_active=bool(record["is_active"]),
            created_at=record["created_at"],
            updated_at=record.get("updated_at"),
        )


def sort_by_priority(policies: Iterable[AccessPolicy]) -> list[AccessPolicy]:
    """Orden estable: priority ASC, created_at ASC, id. El primero es el "primario"."""
    return sorted(policies, key=lambda p: (p.priority, p.created_at, str(p.id)))


def _check_invariants(policy: AccessPolicy) -> None:
    if not isinstance(policy.id, UUID):
        raise ValidationError("Policy id must be a UUID.", field="id")

    if not isinstance(policy.name, str) or not policy.name.strip():
        raise ValidationError("Policy name is required.", field="name")
    if len(policy.name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Policy name must be at most {MAX_NAME_LENGTH} characters.", field="name"
        )
    if not isinstance(policy.description, str):
        raise ValidationError("Description must be a string.", field="description")
    if len(policy.description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters.",
            field="description",
        )

    if not isinstance(policy.subject_type, SubjectType):
        raise ValidationError("Invalid subject_type.", field="subject_type")
    if policy.subject_type is SubjectType.USER:
        if policy.subject_id is None:
            raise ValidationError(
                "User policies require subject_id.", field="subject_id"
            )
        if policy.role_name is not None:
            raise ValidationError(
                "User policies must not carry role_name.", field="role_name"
            )
    else:
        if not policy.role_name:
            raise ValidationError("Role policies require role_name.", field="role_name")
        if len(policy.role_name) > MAX_ROLE_NAME_LENGTH:
            raise ValidationError(
                f"role_name must be at most {MAX_ROLE_NAME_LENGTH} characters.",
                field="role_name",
            )
        if policy.subject_id is not None:
            raise ValidationError(
                "Role policies must not carry subject_id.", field="subject_id"
            )

    if not isinstance(policy.resource_type, ResourceType):
        raise ValidationError("Invalid resource_type.", field="resource_type")
    if policy.resource_type is ResourceType.DOCUMENT and policy.resource_id is None:
        raise ValidationError(
            "Document policies require resource_id.", field="resource_id"
        )
    if policy.resource_type is ResourceType.GLOBAL and policy.resource_id is not None:
        raise ValidationError(
            "Global policies must not carry resource_id.", field="resource_id"
        )

    if not isinstance(policy.actions, frozenset) or not policy.actions:
        raise ValidationError("At least one action is required.", field="actions")
    unknown = policy.actions - POLICY_ACTIONS
    if unknown:
        raise ValidationError(
            f"Unknown policy actions: {sorted(unknown)}.", field="actions"
        )

    if (
        isinstance(policy.priority, bool)
        or not isinstance(policy.priority, int)
        or not MIN_PRIORITY <= policy.priority <= MAX_PRIORITY
    ):
        raise ValidationError(
            f"Priority must be an integer between {MIN_PRIORITY} and {MAX_PRIORITY}.",
            field="priority",
        )

    if not isinstance(policy.created_at, datetime) or not is_aware(policy.created_at):
        raise ValidationError(
            "created_at must be a timezone-aware datetime.", field="created_at"
        )
    if policy.updated_at is not None:
        if not isinstance(policy.updated_at, datetime) or not is_aware(
            policy.updated_at
        ):
            raise ValidationError(
                "updated_at must be a timezone-aware datetime.", field="updated_at"
            )
        if policy.updated_at < policy.created_at:
            raise ValidationError(
                "updated_at cannot precede created_at.", field="updated_at"
            )
