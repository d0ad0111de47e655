"""
===============================================================================
USE CASE: Cleanup Download Tokens
===============================================================================

Garbage collection de tokens expirados y/o ya canjeados.

Reglas:
  - actor=None => job de sistema (scripts/cleanup_download_tokens.py).
  - Con actor: requiere "manage" sobre downloadToken por rol (admins).
  - Borrar tokens expirados nunca cambia decisiones: un token expirado ya
    no puede canjearse.
===============================================================================
"""

from __future__ import annotations

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import record_tokens_cleaned
from ....domain.clock import Clock, utc_now
from ....domain.permissions import ResourceKind
from ....domain.repositories import DownloadTokenRepository
from ....identity.access_control import AccessControlService
from ....identity.users import Actor
from .token_results import TokenCleanupResult, TokenErrorCode, token_error

EVENT_TOKENS_CLEANED = "tokens_cleaned"


class CleanupDownloadTokensUseCase:
    """Elimina tokens que ya no pueden canjearse."""

    def __init__(
        self,
        token_repository: DownloadTokenRepository,
        access_control: AccessControlService,
        audit_logger: AuditLogger,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._tokens = token_repository
        self._access = access_control
        self._audit = audit_logger
        self._clock = clock

    def execute(
        self,
        actor: Actor | None = None,
        *,
        expired: bool = True,
        used: bool = True,
    ) -> TokenCleanupResult:
        if actor is not None:
            denial = self._access.enforce_access(
                actor, ResourceKind.DOWNLOAD_TOKEN, "manage"
            )
            if denial is not None:
                self._audit.log_security_event(
                    EVENT_TOKENS_CLEANED,
                    actor=actor,
                    outcome=AuditOutcome.DENIED,
                    error=TokenErrorCode.FORBIDDEN.value,
                )
                return TokenCleanupResult(
                    error=token_error(TokenErrorCode.FORBIDDEN, "Access denied.")
                )

        now = self._clock()
        # Cada borrado confirma por separado; ante un fallo se reporta lo ya borrado.
        expired_removed = 0
        used_removed = 0
        try:
            if expired:
                expired_removed = self._tokens.delete_expired(now)
                record_tokens_cleaned("expired", expired_removed)
            if used:
                used_removed = self._tokens.delete_used()
                record_tokens_cleaned("used", used_removed)
        except DatabaseError as exc:
            logger.error(
                "CleanupDownloadTokensUseCase: database failure",
                extra={
                    "error_id": exc.error_id,
                    "expired_removed": expired_removed,
                    "used_removed": used_removed,
                },
            )
            self._audit.log_security_event(
                EVENT_TOKENS_CLEANED,
                actor=actor,
                outcome=AuditOutcome.FAILURE,
                details={
                    "expired_removed": expired_removed,
                    "used_removed": used_removed,
                    "cutoff": now,
                },
                error=TokenErrorCode.DATABASE_ERROR.value,
            )
            return TokenCleanupResult(
                expired_removed=expired_removed,
                used_removed=used_removed,
                error=token_error(
                    TokenErrorCode.DATABASE_ERROR, "Failed to clean up tokens."
                ),
            )

        logger.info(
            "Limpieza de download tokens",
            extra={"expired_removed": expired_removed, "used_removed": used_removed},
        )
        self._audit.log_security_event(
            EVENT_TOKENS_CLEANED,
            actor=actor,
            outcome=AuditOutcome.SUCCESS,
            details={
                "expired_removed": expired_removed,
                "used_removed": used_removed,
                "cutoff": now,
            },
        )
        return TokenCleanupResult(
            expired_removed=expired_removed, used_removed=used_removed
        )
