"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define persistence contracts for policies, download tokens, documents and
  audit events (ports).
- Keep domain/application independent from PostgreSQL or in-memory storage.

Collaborators
- domain.access_policy: AccessPolicy, SubjectType
- domain.download_token: DownloadToken
- domain.entities: Document
- domain.audit: AuditEvent
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no SQL.
- Infrastructure failures surface as crosscutting.exceptions.DatabaseError;
  unique violations as ConflictError.
- DownloadTokenRepository.mark_used MUST be an atomic conditional write.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Protocol
from uuid import UUID

from .access_policy import AccessPolicy, SubjectType
from .audit import AuditEvent
from .download_token import DownloadToken
from .entities import Document


class AccessPolicyRepository(Protocol):
    """
    R: Interface for access policy persistence and evaluation.

    Implementations must provide:
      - Lookups by id, resource, subject and (user, resource) pair
      - has_permission evaluation over active policies
      - Insert-or-update keyed by id
      - Bulk deletes returning affected counts
    """

    def find_by_id(self, policy_id: UUID) -> Optional[AccessPolicy]:
        """R: Get a policy by id (None if absent)."""
        ...

    def find_by_resource_id(self, resource_id: UUID) -> List[AccessPolicy]:
        """R: Policies attached to a document, ordered by priority."""
        ...

    def find_by_subject(
        self,
        subject_type: SubjectType,
        *,
        subject_id: UUID | None = None,
        role_name: str | None = None,
    ) -> List[AccessPolicy]:
        """R: Policies held by a user (subject_id) or a role (role_name)."""
        ...

    def find_by_user_and_resource(
        self, user_id: UUID, resource_id: UUID
    ) -> List[AccessPolicy]:
        """R: User policies on one document (used by grant to replace in place)."""
        ...

    def has_permission(
        self,
        resource_id: UUID,
        user_id: UUID,
        action: str,
        *,
        roles: Iterable[str] = (),
    ) -> bool:
        """
        R: True iff an ACTIVE policy matches the user (or one of its roles),
        the resource (or is global) and lists the action.
        """
        ...

    def save(self, policy: AccessPolicy) -> AccessPolicy:
        """R: Insert or update by id. Returns the stored policy."""
        ...

    def delete(self, policy_id: UUID) -> bool:
        """R: Hard delete. True if a row existed."""
        ...

    def delete_by_resource_id(self, resource_id: UUID) -> int:
        """R: Remove every policy on a document. Returns the count."""
        ...

    def delete_by_user_id(self, user_id: UUID) -> int:
        """R: Remove every user policy held by a user. Returns the count."""
        ...

    def delete_by_user_and_resource(self, resource_id: UUID, user_id: UUID) -> int:
        """R: Revoke: remove a user's policies on one document. Returns the count."""
        ...


class DownloadTokenRepository(Protocol):
    """
    R: Interface for download token persistence.

    Implementations must provide:
      - Insert (ConflictError on duplicate id or token value)
      - Lookups by id, secret value, document and recipient
      - Conditional redemption write
      - Garbage collection of expired / used tokens
    """

    def save(self, token: DownloadToken) -> DownloadToken:
        """R: Insert a new token."""
        ...

    def find_by_id(self, token_id: UUID) -> Optional[DownloadToken]:
        ...

    def find_by_token(self, token_value: str) -> Optional[DownloadToken]:
        ...

    def find_by_document_id(self, document_id: UUID) -> List[DownloadToken]:
        ...

    def find_by_user_id(self, user_id: UUID) -> List[DownloadToken]:
        ...

    def mark_used(self, token_id: UUID, used_at: datetime) -> Optional[DownloadToken]:
        """
        R: Set used_at only if it is still NULL (single atomic step).

        Returns:
            The redeemed token, or None when no row qualified (already used
            by a concurrent caller, or absent).
        """
        ...

    def delete(self, token_id: UUID) -> bool:
        ...

    def delete_expired(self, now: datetime) -> int:
        """R: Remove tokens with expires_at <= now. Returns the count."""
        ...

    def delete_used(self) -> int:
        """R: Remove redeemed tokens. Returns the count."""
        ...


class DocumentRepository(Protocol):
    """R: Read access to document ownership (bytes live elsewhere)."""

    def get_document(self, document_id: UUID) -> Optional[Document]:
        ...

    def save_document(self, document: Document) -> Document:
        ...


class AuditEventRepository(Protocol):
    """R: Interface for audit event persistence (append-only)."""

    def record_event(self, event: AuditEvent) -> None:
        ...

    def list_events(
        self,
        *,
        action_prefix: str | None = None,
        target_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditEvent]:
        ...
