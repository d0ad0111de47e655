"""
===============================================================================
USE CASE: Create Download Token
===============================================================================

Emite un token de descarga de un solo uso para un documento y un destinatario.

Pasos:
  1) Validar identificadores.
  2) Cargar el documento (NOT_FOUND si no existe).
  3) Autorizar "read" sobre el documento (dueño o política).
  4) Emitir (expiración futura y dentro de la ventana máxima) y persistir.
  5) Auditar el resultado (token_created / token_create_failed).

Nota:
  - La auditoría guarda token_id, nunca el valor secreto.
===============================================================================
"""

from __future__ import annotations

from datetime import timedelta

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import ConflictError, DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import observe_usecase_duration, record_token_issued
from ....crosscutting.timing import Timer
from ....domain.clock import Clock, utc_now
from ....domain.download_token import DEFAULT_MAX_TTL, DownloadToken
from ....domain.errors import ValidationError
from ....domain.ids import parse_document_id, parse_user_id
from ....domain.permissions import ResourceKind
from ....domain.repositories import DocumentRepository, DownloadTokenRepository
from ....identity.access_control import AccessControlService
from ....identity.users import Actor
from .token_results import (
    CreateDownloadTokenInput,
    TokenErrorCode,
    TokenResult,
    token_error,
)

EVENT_TOKEN_CREATED = "token_created"
EVENT_TOKEN_CREATE_FAILED = "token_create_failed"


class CreateDownloadTokenUseCase:
    """Emite un DownloadToken."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        token_repository: DownloadTokenRepository,
        access_control: AccessControlService,
        audit_logger: AuditLogger,
        *,
        clock: Clock = utc_now,
        default_ttl: timedelta = timedelta(hours=1),
        max_ttl: timedelta = DEFAULT_MAX_TTL,
    ) -> None:
        self._documents = document_repository
        self._tokens = token_repository
        self._access = access_control
        self._audit = audit_logger
        self._clock = clock
        self._default_ttl = default_ttl
        self._max_ttl = max_ttl

    def execute(
        self, input_data: CreateDownloadTokenInput, actor: Actor
    ) -> TokenResult:
        with Timer() as timer:
            try:
                result = self._create(input_data, actor)
            except ConflictError as exc:
                result = self._fail(
                    input_data, actor, TokenErrorCode.CONFLICT, exc.message
                )
            except DatabaseError as exc:
                logger.error(
                    "CreateDownloadTokenUseCase: database failure",
                    extra={"error_id": exc.error_id},
                )
                result = self._fail(
                    input_data,
                    actor,
                    TokenErrorCode.DATABASE_ERROR,
                    "Failed to create download token.",
                )
        observe_usecase_duration("create_download_token", timer.elapsed_seconds)
        return result

    def _create(
        self, input_data: CreateDownloadTokenInput, actor: Actor
    ) -> TokenResult:
        # 1) Identificadores
        try:
            document_id = parse_document_id(input_data.document_id)
            issued_to = parse_user_id(input_data.issued_to, "issued_to")
        except ValidationError as exc:
            return self._fail(
                input_data, actor, TokenErrorCode.VALIDATION_ERROR, exc.message
            )

        # 2) Documento
        document = self._documents.get_document(document_id)
        if document is None:
            return self._fail(
                input_data, actor, TokenErrorCode.NOT_FOUND, "Document not found."
            )

        # 3) Autorización: quien comparte debe poder leer
        denial = self._access.require_permission(
            actor,
            ResourceKind.DOCUMENT,
            "read",
            resource_owner_id=document.owner_id,
            resource_id=document_id,
        )
        if denial is not None:
            return self._fail(
                input_data, actor, TokenErrorCode.FORBIDDEN, "Access denied."
            )

        # 4) Emisión
        now = self._clock()
        expires_at = input_data.expires_at or now + self._default_ttl
        try:
            token = DownloadToken.issue(
                document_id=document_id,
                issued_to=issued_to,
                expires_at=expires_at,
                now=now,
                max_ttl=self._max_ttl,
            )
        except ValidationError as exc:
            return self._fail(
                input_data, actor, TokenErrorCode.VALIDATION_ERROR, exc.message
            )

        saved = self._tokens.save(token)

        # 5) Auditoría
        record_token_issued("success")
        self._audit.log_security_event(
            EVENT_TOKEN_CREATED,
            actor=actor,
            outcome=AuditOutcome.SUCCESS,
            target_id=saved.id,
            details={
                "token_id": saved.id,
                "document_id": saved.document_id,
                "issued_to": saved.issued_to,
                "expires_at": saved.expires_at,
            },
        )
        return TokenResult(token=saved)

    def _fail(
        self,
        input_data: CreateDownloadTokenInput,
        actor: Actor,
        code: TokenErrorCode,
        message: str,
    ) -> TokenResult:
        record_token_issued(code.value.lower())
        self._audit.log_security_event(
            EVENT_TOKEN_CREATE_FAILED,
            actor=actor,
            outcome=(
                AuditOutcome.DENIED
                if code is TokenErrorCode.FORBIDDEN
                else AuditOutcome.FAILURE
            ),
            details={
                "document_id": str(input_data.document_id),
                "issued_to": str(input_data.issued_to),
            },
            error=code.value,
        )
        return TokenResult(error=token_error(code, message))
