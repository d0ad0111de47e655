"""
Name: Download Token Use Case Tests

Responsibilities:
  - Create: authorization, expiry window, persistence, audit without secret
  - Validate: decision order, single-use redemption, concurrency
  - Cleanup: expired / used garbage collection and authorization
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from uuid import uuid4

import pytest

from docshare.application.usecases.access import GrantAccessInput
from docshare.application.usecases.tokens import (
    CreateDownloadTokenInput,
    CreateDownloadTokenUseCase,
    TokenErrorCode,
    ValidateDownloadTokenInput,
    ValidateDownloadTokenUseCase,
)
from docshare.crosscutting.exceptions import ConflictError, DatabaseError
from docshare.domain.download_token import DownloadToken
from docshare.infrastructure.repositories.in_memory import (
    InMemoryDownloadTokenRepository,
)

pytestmark = pytest.mark.unit


class FailingTokenRepository(InMemoryDownloadTokenRepository):
    def find_by_id(self, token_id):
        raise DatabaseError("connection reset")

    def delete_expired(self, now):
        raise DatabaseError("connection reset")


class CollidingTokenRepository(InMemoryDownloadTokenRepository):
    """Simula un valor de token (o id) ya existente al persistir."""

    def save(self, token):
        raise ConflictError("Download token already exists.")


class PartialCleanupTokenRepository(InMemoryDownloadTokenRepository):
    """Borra expirados y luego falla al borrar canjeados."""

    def delete_used(self):
        raise DatabaseError("connection reset")


class LosingRaceTokenRepository(InMemoryDownloadTokenRepository):
    """Simula que otro canje ganó entre la lectura y la escritura condicional."""

    def mark_used(self, token_id, used_at):
        return None


def _issue(create_token_use_case, document, owner, recipient, **kwargs):
    result = create_token_use_case.execute(
        CreateDownloadTokenInput(document.id, recipient.user_id, **kwargs), owner
    )
    assert result.error is None, result.error
    return result.token


class TestCreateDownloadToken:
    def test_owner_creates_token(
        self, create_token_use_case, token_repo, document, owner, recipient, clock
    ):
        token = _issue(create_token_use_case, document, owner, recipient)

        assert token.document_id == document.id
        assert token.issued_to == recipient.user_id
        assert token.expires_at == clock.now + timedelta(hours=1)
        assert token.used_at is None
        assert token_repo.find_by_id(token.id) == token

    def test_explicit_expiry(self, create_token_use_case, document, owner, recipient, clock):
        expires_at = clock.now + timedelta(minutes=10)
        token = _issue(
            create_token_use_case, document, owner, recipient, expires_at=expires_at
        )
        assert token.expires_at == expires_at

    def test_audit_never_contains_secret(
        self, create_token_use_case, document, owner, recipient, audit_repo
    ):
        token = _issue(create_token_use_case, document, owner, recipient)

        event = audit_repo.list_events(action_prefix="token_created")[0]
        assert event.target_id == token.id
        assert event.metadata["details"]["token_id"] == str(token.id)
        assert token.token not in repr(event.metadata)

    def test_read_grantee_may_issue(
        self, grant_use_case, create_token_use_case, document, owner, recipient, stranger
    ):
        """R: Should allow anyone who can read the document to share it."""
        grant_use_case.execute(
            GrantAccessInput(document.id, recipient.user_id, ["read"]), owner
        )
        result = create_token_use_case.execute(
            CreateDownloadTokenInput(document.id, stranger.user_id), recipient
        )
        assert result.error is None

    def test_stranger_forbidden(
        self, create_token_use_case, token_repo, document, stranger, audit_repo
    ):
        result = create_token_use_case.execute(
            CreateDownloadTokenInput(document.id, stranger.user_id), stranger
        )
        assert result.error.code is TokenErrorCode.FORBIDDEN
        assert token_repo.find_by_user_id(stranger.user_id) == []
        assert audit_repo.list_events(action_prefix="token_create_failed")

    def test_unknown_document(self, create_token_use_case, owner, recipient):
        result = create_token_use_case.execute(
            CreateDownloadTokenInput(uuid4(), recipient.user_id), owner
        )
        assert result.error.code is TokenErrorCode.NOT_FOUND

    def test_past_expiry_rejected(
        self, create_token_use_case, document, owner, recipient, clock
    ):
        result = create_token_use_case.execute(
            CreateDownloadTokenInput(
                document.id, recipient.user_id, expires_at=clock.now - timedelta(seconds=1)
            ),
            owner,
        )
        assert result.error.code is TokenErrorCode.VALIDATION_ERROR

    def test_expiry_beyond_max_ttl_rejected(
        self, document_repo, token_repo, access_control, audit_logger, clock, document, owner, recipient
    ):
        use_case = CreateDownloadTokenUseCase(
            document_repo,
            token_repo,
            access_control,
            audit_logger,
            clock=clock,
            max_ttl=timedelta(hours=2),
        )
        result = use_case.execute(
            CreateDownloadTokenInput(
                document.id, recipient.user_id, expires_at=clock.now + timedelta(hours=3)
            ),
            owner,
        )
        assert result.error.code is TokenErrorCode.VALIDATION_ERROR

    def test_malformed_recipient(self, create_token_use_case, document, owner):
        result = create_token_use_case.execute(
            CreateDownloadTokenInput(document.id, "bob"), owner
        )
        assert result.error.code is TokenErrorCode.VALIDATION_ERROR

    def test_token_collision_reports_conflict(
        self, document_repo, access_control, audit_logger, audit_repo, clock, document, owner, recipient
    ):
        """R: Should map a duplicate token on save to a non-retryable CONFLICT."""
        use_case = CreateDownloadTokenUseCase(
            document_repo,
            CollidingTokenRepository(),
            access_control,
            audit_logger,
            clock=clock,
        )

        result = use_case.execute(
            CreateDownloadTokenInput(document.id, recipient.user_id), owner
        )

        assert result.token is None
        assert result.error.code is TokenErrorCode.CONFLICT
        assert result.error.retryable is False
        failures = audit_repo.list_events(action_prefix="token_create_failed")
        assert len(failures) == 1
        assert failures[0].metadata["outcome"] == "failure"
        assert failures[0].metadata["error"] == TokenErrorCode.CONFLICT.value
        assert not audit_repo.list_events(action_prefix="token_created")


class TestValidateDownloadToken:
    def test_recipient_redeems_once(
        self, create_token_use_case, validate_token_use_case, document, owner, recipient, clock
    ):
        token = _issue(create_token_use_case, document, owner, recipient)
        clock.advance(minutes=1)

        first = validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=token.id), recipient
        )
        second = validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=token.id), recipient
        )

        assert first.error is None
        assert first.token.used_at == clock.now
        assert second.error.code is TokenErrorCode.ALREADY_USED

    def test_redeem_by_secret_value(
        self, create_token_use_case, validate_token_use_case, document, owner, recipient
    ):
        token = _issue(create_token_use_case, document, owner, recipient)
        result = validate_token_use_case.execute(
            ValidateDownloadTokenInput(token=token.token), recipient
        )
        assert result.error is None
        assert result.token.id == token.id

    def test_not_found(self, validate_token_use_case, recipient, audit_repo):
        result = validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=uuid4()), recipient
        )
        assert result.error.code is TokenErrorCode.NOT_FOUND
        assert audit_repo.list_events(
            action_prefix="token_validation_failed_not_found"
        )

    @pytest.mark.parametrize(
        "input_data",
        [
            ValidateDownloadTokenInput(),
            ValidateDownloadTokenInput(token_id=uuid4(), token="a" * 64),
            ValidateDownloadTokenInput(token_id="nope"),
            ValidateDownloadTokenInput(token="short"),
        ],
    )
    def test_malformed_input(self, validate_token_use_case, recipient, input_data):
        result = validate_token_use_case.execute(input_data, recipient)
        assert result.error.code is TokenErrorCode.VALIDATION_ERROR

    def test_rejection_does_not_mutate(
        self, create_token_use_case, validate_token_use_case, token_repo, document, owner, recipient, stranger
    ):
        token = _issue(create_token_use_case, document, owner, recipient)

        result = validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=token.id), stranger
        )

        assert result.error.code is TokenErrorCode.INVALID_RECIPIENT
        assert token_repo.find_by_id(token.id).used_at is None

    def test_lost_race_reports_already_used(
        self, audit_logger, clock, document, recipient
    ):
        repo = LosingRaceTokenRepository()
        token = repo.save(
            DownloadToken.issue(
                document_id=document.id,
                issued_to=recipient.user_id,
                expires_at=clock.now + timedelta(hours=1),
                now=clock.now,
            )
        )
        use_case = ValidateDownloadTokenUseCase(repo, audit_logger, clock=clock)

        result = use_case.execute(ValidateDownloadTokenInput(token_id=token.id), recipient)

        assert result.error.code is TokenErrorCode.ALREADY_USED

    def test_database_error(self, audit_logger, clock, recipient):
        use_case = ValidateDownloadTokenUseCase(
            FailingTokenRepository(), audit_logger, clock=clock
        )
        result = use_case.execute(
            ValidateDownloadTokenInput(token_id=uuid4()), recipient
        )
        assert result.error.code is TokenErrorCode.DATABASE_ERROR
        assert result.error.retryable is True

    def test_concurrent_redemption_single_winner(
        self, create_token_use_case, validate_token_use_case, document, owner, recipient
    ):
        """R: Should let exactly one of many concurrent redemptions succeed."""
        token = _issue(create_token_use_case, document, owner, recipient)
        workers = 8
        barrier = threading.Barrier(workers)

        def redeem(_):
            barrier.wait()
            return validate_token_use_case.execute(
                ValidateDownloadTokenInput(token_id=token.id), recipient
            )

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(redeem, range(workers)))

        winners = [r for r in results if r.error is None]
        losers = [r for r in results if r.error is not None]
        assert len(winners) == 1
        assert {r.error.code for r in losers} == {TokenErrorCode.ALREADY_USED}


class TestCleanupDownloadTokens:
    def test_system_cleanup_removes_expired_and_used(
        self, create_token_use_case, validate_token_use_case, cleanup_use_case, token_repo, document, owner, recipient, clock
    ):
        used = _issue(create_token_use_case, document, owner, recipient)
        validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=used.id), recipient
        )
        short = _issue(
            create_token_use_case,
            document,
            owner,
            recipient,
            expires_at=clock.now + timedelta(minutes=5),
        )
        alive = _issue(
            create_token_use_case,
            document,
            owner,
            recipient,
            expires_at=clock.now + timedelta(hours=2),
        )
        clock.advance(minutes=10)

        result = cleanup_use_case.execute()

        assert result.error is None
        assert result.expired_removed == 1
        assert result.used_removed == 1
        assert token_repo.find_by_id(short.id) is None
        assert token_repo.find_by_id(used.id) is None
        assert token_repo.find_by_id(alive.id) is not None

    def test_expired_only(
        self, create_token_use_case, validate_token_use_case, cleanup_use_case, token_repo, document, owner, recipient
    ):
        used = _issue(create_token_use_case, document, owner, recipient)
        validate_token_use_case.execute(
            ValidateDownloadTokenInput(token_id=used.id), recipient
        )

        result = cleanup_use_case.execute(None, used=False)

        assert result.used_removed == 0
        assert token_repo.find_by_id(used.id) is not None

    def test_admin_allowed_user_forbidden(self, cleanup_use_case, admin, stranger):
        assert cleanup_use_case.execute(admin).error is None
        assert (
            cleanup_use_case.execute(stranger).error.code is TokenErrorCode.FORBIDDEN
        )

    def test_database_error(self, access_control, audit_logger, clock):
        from docshare.application.usecases.tokens import CleanupDownloadTokensUseCase

        use_case = CleanupDownloadTokensUseCase(
            FailingTokenRepository(), access_control, audit_logger, clock=clock
        )
        assert use_case.execute().error.code is TokenErrorCode.DATABASE_ERROR

    def test_partial_failure_reports_removed_expired(
        self, access_control, audit_logger, audit_repo, clock, document, recipient
    ):
        """R: Should report and audit expired tokens already removed when a later step fails."""
        repo = PartialCleanupTokenRepository(
            [
                DownloadToken.issue(
                    document_id=document.id,
                    issued_to=recipient.user_id,
                    expires_at=clock.now + timedelta(minutes=5),
                    now=clock.now,
                )
            ]
        )
        clock.advance(minutes=10)
        from docshare.application.usecases.tokens import CleanupDownloadTokensUseCase

        use_case = CleanupDownloadTokensUseCase(
            repo, access_control, audit_logger, clock=clock
        )
        result = use_case.execute()

        assert result.error.code is TokenErrorCode.DATABASE_ERROR
        assert result.expired_removed == 1
        assert result.used_removed == 0
        event = audit_repo.list_events(action_prefix="tokens_cleaned")[0]
        assert event.metadata["outcome"] == "failure"
        assert event.metadata["details"]["expired_removed"] == 1
