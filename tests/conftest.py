"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test, no .env file)
  - Provide a fixed clock, actors and in-memory repositories
  - Build use cases wired to the in-memory adapters

Collaborators:
  - pytest: Test framework
  - docshare.infrastructure.repositories.in_memory: storage fakes
  - docshare.application.usecases: systems under test

Notes:
  - Fixtures are function scoped: every test gets fresh repositories
  - The clock is mutable (FixedClock.advance) to exercise expiry
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from docshare.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

os.environ.setdefault("APP_ENV", "test")

from docshare.application.usecases.access import (  # noqa: E402
    CheckAccessUseCase,
    GrantAccessUseCase,
    ListDocumentPoliciesUseCase,
    RevokeAccessUseCase,
)
from docshare.application.usecases.tokens import (  # noqa: E402
    CleanupDownloadTokensUseCase,
    CreateDownloadTokenUseCase,
    ValidateDownloadTokenUseCase,
)
from docshare.audit import AuditLogger  # noqa: E402
from docshare.domain.entities import Document  # noqa: E402
from docshare.identity.access_control import AccessControlService  # noqa: E402
from docshare.identity.users import Actor, UserRole  # noqa: E402
from docshare.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryAccessPolicyRepository,
    InMemoryAuditEventRepository,
    InMemoryDocumentRepository,
    InMemoryDownloadTokenRepository,
)

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (require PostgreSQL)"
    )


class FixedClock:
    """Reloj controlable: devuelve siempre `now` hasta que se avanza."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ============================================================================
# Clock / Actors
# ============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def owner() -> Actor:
    """R: Owner of the sample document."""
    return Actor(user_id=uuid4(), roles=frozenset({UserRole.USER.value}))


@pytest.fixture
def recipient() -> Actor:
    return Actor(user_id=uuid4(), roles=frozenset({UserRole.USER.value}))


@pytest.fixture
def stranger() -> Actor:
    return Actor(user_id=uuid4(), roles=frozenset({UserRole.USER.value}))


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=uuid4(), roles=frozenset({UserRole.ADMIN.value}))


# ============================================================================
# Repositories
# ============================================================================


@pytest.fixture
def document(owner: Actor) -> Document:
    return Document(id=uuid4(), owner_id=owner.user_id, title="Quarterly report")


@pytest.fixture
def document_repo(document: Document) -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository([document])


@pytest.fixture
def policy_repo() -> InMemoryAccessPolicyRepository:
    return InMemoryAccessPolicyRepository()


@pytest.fixture
def token_repo() -> InMemoryDownloadTokenRepository:
    return InMemoryDownloadTokenRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditEventRepository:
    return InMemoryAuditEventRepository()


# ============================================================================
# Services / Use cases
# ============================================================================


@pytest.fixture
def access_control(policy_repo) -> AccessControlService:
    return AccessControlService(policy_repo)


@pytest.fixture
def audit_logger(audit_repo, clock) -> AuditLogger:
    return AuditLogger(audit_repo, clock=clock)


@pytest.fixture
def grant_use_case(document_repo, policy_repo, access_control, audit_logger, clock):
    return GrantAccessUseCase(
        document_repo, policy_repo, access_control, audit_logger, clock=clock
    )


@pytest.fixture
def revoke_use_case(document_repo, policy_repo, access_control, audit_logger):
    return RevokeAccessUseCase(document_repo, policy_repo, access_control, audit_logger)


@pytest.fixture
def check_use_case(policy_repo, audit_logger):
    return CheckAccessUseCase(policy_repo, audit_logger)


@pytest.fixture
def list_use_case(document_repo, policy_repo, access_control):
    return ListDocumentPoliciesUseCase(document_repo, policy_repo, access_control)


@pytest.fixture
def create_token_use_case(
    document_repo, token_repo, access_control, audit_logger, clock
):
    return CreateDownloadTokenUseCase(
        document_repo, token_repo, access_control, audit_logger, clock=clock
    )


@pytest.fixture
def validate_token_use_case(token_repo, audit_logger, clock):
    return ValidateDownloadTokenUseCase(token_repo, audit_logger, clock=clock)


@pytest.fixture
def cleanup_use_case(token_repo, access_control, audit_logger, clock):
    return CleanupDownloadTokensUseCase(
        token_repo, access_control, audit_logger, clock=clock
    )
