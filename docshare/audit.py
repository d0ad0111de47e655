"""
===============================================================================
TARJETA CRC — docshare/audit.py (AuditLogger)
===============================================================================

Responsabilidades:
  - Construir eventos de auditoría consistentes para cambios de control de
    acceso (grant / revoke / check) y eventos de seguridad (tokens).
  - Emitir una línea de log estructurada por evento.
  - Persistir vía AuditEventRepository en modo best-effort: una falla de
    escritura se loguea y se cuenta, NUNCA se propaga al caso de uso.

Colaboradores:
  - docshare.domain.audit.AuditEvent
  - docshare.domain.repositories.AuditEventRepository
  - docshare.identity.users.Actor
  - docshare.context (correlation_id / request_id)
  - crosscutting.logger / crosscutting.metrics

Decisiones de seguridad:
  - El secreto de un download token nunca entra a la metadata: las claves
    sensibles se reemplazan y los casos de uso solo pasan token_id.
  - La metadata se reduce a tipos JSON-safe.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from .context import get_context_dict
from .crosscutting.logger import logger
from .crosscutting.metrics import record_audit_write_failure
from .domain.audit import AuditEvent
from .domain.clock import Clock, utc_now
from .domain.repositories import AuditEventRepository
from .identity.users import Actor

_SECRET_KEYS = frozenset({"token", "token_value", "secret", "password"})


class AuditOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    DENIED = "denied"


def _actor_name(actor: Actor | None) -> str:
    if actor is None:
        return "system"
    return actor.audit_name


def _sanitize(value: Any, *, key: str | None = None) -> Any:
    """Reduce a tipos JSON-safe y oculta claves sensibles."""
    if key is not None and key.lower() in _SECRET_KEYS:
        return "***"
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _sanitize(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_sanitize(v) for v in value]
        return sorted(items, key=str) if isinstance(value, (set, frozenset)) else items
    return str(value)


class AuditLogger:
    """Emisor best-effort de eventos de auditoría."""

    def __init__(
        self,
        repository: AuditEventRepository | None,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._clock = clock

    def log_access_control_change(
        self,
        event_type: str,
        *,
        resource_id: UUID | str | None,
        action: str,
        actor: Actor | None,
        outcome: AuditOutcome | str,
        target: UUID | str | None = None,
        details: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Cambio (o consulta) de control de acceso sobre un recurso."""
        metadata: dict[str, Any] = {
            "category": "access_control",
            "resource_id": resource_id,
            "action": action,
            "target": target,
        }
        self._emit(
            event_type,
            actor=actor,
            outcome=outcome,
            target_id=resource_id,
            metadata=metadata,
            details=details,
            error=error,
        )

    def log_security_event(
        self,
        event_type: str,
        *,
        actor: Actor | None,
        outcome: AuditOutcome | str,
        target_id: UUID | str | None = None,
        details: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Evento de seguridad (emisión/canje/limpieza de tokens)."""
        self._emit(
            event_type,
            actor=actor,
            outcome=outcome,
            target_id=target_id,
            metadata={"category": "security"},
            details=details,
            error=error,
        )

    def _emit(
        self,
        event_type: str,
        *,
        actor: Actor | None,
        outcome: AuditOutcome | str,
        target_id: UUID | str | None,
        metadata: dict[str, Any],
        details: dict[str, Any] | None,
        error: str | None,
    ) -> None:
        outcome_value = outcome.value if isinstance(outcome, AuditOutcome) else outcome
        payload: dict[str, Any] = {
            **metadata,
            "outcome": outcome_value,
            "details": details or {},
        }
        if error:
            payload["error"] = error
        if actor is not None and actor.correlation_id:
            payload["correlation_id"] = actor.correlation_id
        payload.update(
            {k: v for k, v in get_context_dict().items() if k not in payload}
        )
        payload = _sanitize(payload)

        event = AuditEvent(
            id=uuid4(),
            actor=_actor_name(actor),
            action=event_type,
            target_id=_as_uuid(target_id),
            metadata=payload,
            created_at=self._clock(),
        )

        logger.info(
            "Evento de auditoría",
            extra={
                "audit_event": event_type,
                "audit_actor": event.actor,
                "audit_outcome": outcome_value,
                "audit_target_id": str(event.target_id) if event.target_id else None,
            },
        )

        if self._repository is None:
            return
        try:
            self._repository.record_event(event)
        except Exception as exc:
            # Best-effort: el resultado del caso de uso no depende de la auditoría.
            record_audit_write_failure(event_type)
            logger.warning(
                "Falló la escritura del evento de auditoría",
                extra={"audit_event": event_type, "error": str(exc)},
            )


def _as_uuid(value: UUID | str | None) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None
