"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/access_policy.py
============================================================
Class: PostgresAccessPolicyRepository

Responsibilities:
- Persistir políticas en access_policies (SQL crudo, parametrizado).
- Evaluar has_permission en una sola query (EXISTS).
- Upsert por id (INSERT ... ON CONFLICT (id) DO UPDATE ... RETURNING).

Collaborators:
- domain.access_policy.AccessPolicy (to_record / from_record)
- PostgresRepository (pool + errores)

Constraints / Notes:
- Repo puro: NO decide autorización (eso vive en identity/application).
- Orden determinístico: priority ASC, created_at ASC, id ASC.
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from ....crosscutting.exceptions import DatabaseError
from ....domain.access_policy import AccessPolicy, SubjectType
from .base import PostgresRepository

_COLUMNS = (
    "id",
    "name",
    "description",
    "subject_type",
    "subject_id",
    "role_name",
    "resource_type",
    "resource_id",
    "actions",
    "priority",
    "is_active",
    "created_at",
    "updated_at",
)
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM access_policies"
_ORDER = "ORDER BY priority ASC, created_at ASC, id ASC"


def _row_to_policy(row: tuple) -> AccessPolicy:
    return AccessPolicy.from_record(dict(zip(_COLUMNS, row)))


class PostgresAccessPolicyRepository(PostgresRepository):
    """Repositorio PostgreSQL de políticas de acceso."""

    # =========================================================
    # SQL Constantes (Privadas)
    # =========================================================
    _SQL_FIND_BY_ID = f"{_SELECT} WHERE id = %s"

    _SQL_FIND_BY_RESOURCE = f"""
        {_SELECT}
        WHERE resource_type = 'document' AND resource_id = %s
        {_ORDER}
    """

    _SQL_FIND_BY_USER = f"""
        {_SELECT}
        WHERE subject_type = 'user' AND subject_id = %s
        {_ORDER}
    """

    _SQL_FIND_BY_ROLE = f"""
        {_SELECT}
        WHERE subject_type = 'role' AND role_name = %s
        {_ORDER}
    """

    _SQL_FIND_BY_USER_AND_RESOURCE = f"""
        {_SELECT}
        WHERE subject_type = 'user' AND subject_id = %s
          AND resource_type = 'document' AND resource_id = %s
        {_ORDER}
    """

    _SQL_HAS_PERMISSION = """
        SELECT EXISTS (
            SELECT 1
            FROM access_policies
            WHERE is_active
              AND (
                    (subject_type = 'user' AND subject_id = %s)
                 OR (subject_type = 'role' AND role_name = ANY(%s::text[]))
              )
              AND (
                    (resource_type = 'document' AND resource_id = %s)
                 OR resource_type = 'global'
              )
              AND %s = ANY(actions)
        )
    """

    _SQL_UPSERT = f"""
        INSERT INTO access_policies ({', '.join(_COLUMNS)})
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::text[], %s, %s, %s, %s)
        ON CONFLICT (id) DO UPDATE SET
            name = EXCLUDED.name,
            description = EXCLUDED.description,
            subject_type = EXCLUDED.subject_type,
            subject_id = EXCLUDED.subject_id,
            role_name = EXCLUDED.role_name,
            resource_type = EXCLUDED.resource_type,
            resource_id = EXCLUDED.resource_id,
            actions = EXCLUDED.actions,
            priority = EXCLUDED.priority,
            is_active = EXCLUDED.is_active,
            updated_at = EXCLUDED.updated_at
        RETURNING {', '.join(_COLUMNS)}
    """

    _SQL_DELETE = "DELETE FROM access_policies WHERE id = %s"

    _SQL_DELETE_BY_RESOURCE = """
        DELETE FROM access_policies
        WHERE resource_type = 'document' AND resource_id = %s
    """

    _SQL_DELETE_BY_USER = """
        DELETE FROM access_policies
        WHERE subject_type = 'user' AND subject_id = %s
    """

    _SQL_DELETE_BY_USER_AND_RESOURCE = """
        DELETE FROM access_policies
        WHERE subject_type = 'user' AND subject_id = %s
          AND resource_type = 'document' AND resource_id = %s
    """

    # =========================================================
    # Lecturas
    # =========================================================
    def find_by_id(self, policy_id: UUID) -> Optional[AccessPolicy]:
        row = self._fetchone(
            query=self._SQL_FIND_BY_ID,
            params=[policy_id],
            context_msg="PostgresAccessPolicyRepository: Failed to get policy",
            extra={"policy_id": str(policy_id)},
        )
        return _row_to_policy(row) if row else None

    def find_by_resource_id(self, resource_id: UUID) -> list[AccessPolicy]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_RESOURCE,
            params=[resource_id],
            context_msg="PostgresAccessPolicyRepository: Failed to list resource policies",
            extra={"resource_id": str(resource_id)},
        )
        return [_row_to_policy(row) for row in rows]

    def find_by_subject(
        self,
        subject_type: SubjectType,
        *,
        subject_id: UUID | None = None,
        role_name: str | None = None,
    ) -> list[AccessPolicy]:
        if SubjectType(subject_type) is SubjectType.USER:
            query, param = self._SQL_FIND_BY_USER, subject_id
        else:
            query, param = self._SQL_FIND_BY_ROLE, (role_name or "").strip().lower()
        rows = self._fetchall(
            query=query,
            params=[param],
            context_msg="PostgresAccessPolicyRepository: Failed to list subject policies",
            extra={"subject_type": str(SubjectType(subject_type).value)},
        )
        return [_row_to_policy(row) for row in rows]

    def find_by_user_and_resource(
        self, user_id: UUID, resource_id: UUID
    ) -> list[AccessPolicy]:
        rows = self._fetchall(
            query=self._SQL_FIND_BY_USER_AND_RESOURCE,
            params=[user_id, resource_id],
            context_msg="PostgresAccessPolicyRepository: Failed to list user policies",
            extra={"user_id": str(user_id), "resource_id": str(resource_id)},
        )
        return [_row_to_policy(row) for row in rows]

    def has_permission(
        self,
        resource_id: UUID,
        user_id: UUID,
        action: str,
        *,
        roles: Iterable[str] = (),
    ) -> bool:
        row = self._fetchone(
            query=self._SQL_HAS_PERMISSION,
            params=[
                user_id,
                sorted({r.strip().lower() for r in roles}),
                resource_id,
                action.strip().lower(),
            ],
            context_msg="PostgresAccessPolicyRepository: Failed to evaluate permission",
            extra={
                "user_id": str(user_id),
                "resource_id": str(resource_id),
                "action": action,
            },
        )
        return bool(row and row[0])

    # =========================================================
    # Escrituras
    # =========================================================
    def save(self, policy: AccessPolicy) -> AccessPolicy:
        record = policy.to_record()
        row = self._fetchone(
            query=self._SQL_UPSERT,
            params=[record[column] for column in _COLUMNS],
            context_msg="PostgresAccessPolicyRepository: Failed to save policy",
            extra={"policy_id": str(policy.id)},
        )
        if row is None:  # pragma: no cover - RETURNING siempre devuelve
            raise DatabaseError("Unexpected: RETURNING clause returned no rows")
        return _row_to_policy(row)

    def delete(self, policy_id: UUID) -> bool:
        return (
            self._execute(
                query=self._SQL_DELETE,
                params=[policy_id],
                context_msg="PostgresAccessPolicyRepository: Failed to delete policy",
                extra={"policy_id": str(policy_id)},
            )
            > 0
        )

    def delete_by_resource_id(self, resource_id: UUID) -> int:
        return self._execute(
            query=self._SQL_DELETE_BY_RESOURCE,
            params=[resource_id],
            context_msg="PostgresAccessPolicyRepository: Failed to delete resource policies",
            extra={"resource_id": str(resource_id)},
        )

    def delete_by_user_id(self, user_id: UUID) -> int:
        return self._execute(
            query=self._SQL_DELETE_BY_USER,
            params=[user_id],
            context_msg="PostgresAccessPolicyRepository: Failed to delete user policies",
            extra={"user_id": str(user_id)},
        )

    def delete_by_user_and_resource(self, resource_id: UUID, user_id: UUID) -> int:
        return self._execute(
            query=self._SQL_DELETE_BY_USER_AND_RESOURCE,
            params=[user_id, resource_id],
            context_msg="PostgresAccessPolicyRepository: Failed to revoke access",
            extra={"user_id": str(user_id), "resource_id": str(resource_id)},
        )
