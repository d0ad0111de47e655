"""
===============================================================================
TARJETA CRC — docshare/context.py (Contexto por operación)
===============================================================================

Responsabilidades:
  - Mantener contexto de la operación en curso usando ContextVars.
  - Correlacionar logs y eventos de auditoría (request_id, correlation_id, actor).
  - Proveer helpers mínimos: set_*(), operation_context(), get_context_dict().

Colaboradores:
  - crosscutting.logger: enriquece cada línea JSON con get_context_dict().
  - audit.AuditLogger: copia correlation_id a la metadata del evento.
  - scripts/*: setean request_id por ejecución.

Restricciones:
  - Solo strings (serialización segura).
  - Defaults vacíos ("") significan "no disponible".
===============================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Final, Iterator

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
actor_id_var: ContextVar[str] = ContextVar("actor_id", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_CORRELATION_ID: Final[str] = "correlation_id"
_CTX_ACTOR_ID: Final[str] = "actor_id"


def set_request_context(
    *, request_id: str = "", correlation_id: str = "", actor_id: str = ""
) -> None:
    """Setea el contexto de la operación (strings vacíos = no disponible)."""
    request_id_var.set(request_id or "")
    correlation_id_var.set(correlation_id or "")
    actor_id_var.set(actor_id or "")


@contextmanager
def operation_context(
    *, request_id: str = "", correlation_id: str = "", actor_id: str = ""
) -> Iterator[None]:
    """
    Context manager que setea el contexto y lo restaura al salir.

    Uso típico: jobs y scripts, donde no hay middleware que limpie.
    """
    tokens = (
        request_id_var.set(request_id or ""),
        correlation_id_var.set(correlation_id or ""),
        actor_id_var.set(actor_id or ""),
    )
    try:
        yield
    finally:
        request_id_var.reset(tokens[0])
        correlation_id_var.reset(tokens[1])
        actor_id_var.reset(tokens[2])


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual omitiendo claves vacías."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := correlation_id_var.get():
        ctx[_CTX_CORRELATION_ID] = val
    if val := actor_id_var.get():
        ctx[_CTX_ACTOR_ID] = val

    return ctx


def clear_context() -> None:
    request_id_var.set("")
    correlation_id_var.set("")
    actor_id_var.set("")
