"""
===============================================================================
USE CASE: Validate (Redeem) Download Token
===============================================================================

Canjea un token de descarga: UNUSED -> USED, exactamente una vez.

Orden de evaluación:
  1) Token inexistente          -> NOT_FOUND
  2) Actor != issued_to         -> INVALID_RECIPIENT (no revela estado)
  3) used_at presente           -> ALREADY_USED
  4) now >= expires_at          -> EXPIRED
  5) Escritura condicional (used_at IS NULL); 0 filas -> ALREADY_USED

Un rechazo NUNCA modifica el token. Todo intento se audita.
===============================================================================
"""

from __future__ import annotations

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import observe_usecase_duration, record_token_redemption
from ....crosscutting.timing import Timer
from ....domain.clock import Clock, utc_now
from ....domain.download_token import DownloadToken, TokenRejection, is_token_value
from ....domain.errors import ValidationError
from ....domain.ids import parse_token_id, parse_user_id
from ....domain.repositories import DownloadTokenRepository
from ....identity.users import Actor
from .token_results import (
    TokenErrorCode,
    TokenResult,
    ValidateDownloadTokenInput,
    rejection_error,
    token_error,
)

EVENT_TOKEN_VALIDATED = "token_validated"
EVENT_TOKEN_VALIDATION_FAILED = "token_validation_failed"
EVENT_TOKEN_NOT_FOUND = "token_validation_failed_not_found"


class ValidateDownloadTokenUseCase:
    """Canjea un DownloadToken para el actor."""

    def __init__(
        self,
        token_repository: DownloadTokenRepository,
        audit_logger: AuditLogger,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._tokens = token_repository
        self._audit = audit_logger
        self._clock = clock

    def execute(
        self, input_data: ValidateDownloadTokenInput, actor: Actor
    ) -> TokenResult:
        with Timer() as timer:
            try:
                result = self._redeem(input_data, actor)
            except DatabaseError as exc:
                logger.error(
                    "ValidateDownloadTokenUseCase: database failure",
                    extra={"error_id": exc.error_id},
                )
                record_token_redemption("database_error")
                self._audit.log_security_event(
                    EVENT_TOKEN_VALIDATION_FAILED,
                    actor=actor,
                    outcome=AuditOutcome.FAILURE,
                    details={"token_id": _safe_id(input_data)},
                    error=TokenErrorCode.DATABASE_ERROR.value,
                )
                result = TokenResult(
                    error=token_error(
                        TokenErrorCode.DATABASE_ERROR,
                        "Failed to validate download token.",
                    )
                )
        observe_usecase_duration("validate_download_token", timer.elapsed_seconds)
        return result

    def _redeem(
        self, input_data: ValidateDownloadTokenInput, actor: Actor
    ) -> TokenResult:
        try:
            user_id = parse_user_id(actor.user_id)
            token = self._lookup(input_data)
        except ValidationError as exc:
            record_token_redemption("validation_error")
            return TokenResult(
                error=token_error(TokenErrorCode.VALIDATION_ERROR, exc.message)
            )

        # 1) Existencia
        if token is None:
            record_token_redemption("not_found")
            self._audit.log_security_event(
                EVENT_TOKEN_NOT_FOUND,
                actor=actor,
                outcome=AuditOutcome.FAILURE,
                details={"token_id": _safe_id(input_data)},
                error=TokenErrorCode.NOT_FOUND.value,
            )
            return TokenResult(
                error=token_error(
                    TokenErrorCode.NOT_FOUND, "Download token not found."
                )
            )

        # 2-4) Destinatario, uso previo, expiración
        now = self._clock()
        rejection = token.check_redemption(user_id, now)
        if rejection is not None:
            return self._reject(token, actor, rejection)

        # 5) Escritura condicional: gana un solo canje
        redeemed = self._tokens.mark_used(token.id, now)
        if redeemed is None:
            return self._reject(token, actor, TokenRejection.ALREADY_USED)

        record_token_redemption("success")
        self._audit.log_security_event(
            EVENT_TOKEN_VALIDATED,
            actor=actor,
            outcome=AuditOutcome.SUCCESS,
            target_id=redeemed.id,
            details={
                "token_id": redeemed.id,
                "document_id": redeemed.document_id,
                "used_at": redeemed.used_at,
            },
        )
        return TokenResult(token=redeemed)

    def _lookup(self, input_data: ValidateDownloadTokenInput) -> DownloadToken | None:
        if (input_data.token_id is None) == (input_data.token is None):
            raise ValidationError(
                "Provide exactly one of token_id or token.", field="token_id"
            )
        if input_data.token_id is not None:
            return self._tokens.find_by_id(parse_token_id(input_data.token_id))
        if not is_token_value(input_data.token):
            raise ValidationError("Malformed download token.", field="token")
        return self._tokens.find_by_token(input_data.token)

    def _reject(
        self, token: DownloadToken, actor: Actor, rejection: TokenRejection
    ) -> TokenResult:
        record_token_redemption(rejection.value.lower())
        self._audit.log_security_event(
            EVENT_TOKEN_VALIDATION_FAILED,
            actor=actor,
            outcome=AuditOutcome.DENIED,
            target_id=token.id,
            details={"token_id": token.id, "document_id": token.document_id},
            error=rejection.value,
        )
        return TokenResult(error=rejection_error(rejection))


def _safe_id(input_data: ValidateDownloadTokenInput) -> str | None:
    """Identificador apto para auditoría: el id, nunca el secreto."""
    if input_data.token_id is not None:
        return str(input_data.token_id)
    return None
