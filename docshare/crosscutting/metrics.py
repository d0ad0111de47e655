"""
===============================================================================
ARCHIVO: crosscutting/metrics.py
===============================================================================

CRC CARD (Módulo)
-------------------------------------------------------------------------------
Nombre:
    Métricas (Prometheus) de control de acceso y tokens

Responsabilidades:
    - Definir métricas en un CollectorRegistry propio (no el global).
    - Exponer funciones pequeñas para registrar decisiones, emisiones,
      canjes y fallas de auditoría.
    - Cuidar cardinalidad: labels acotados (kind, path, outcome),
      NUNCA user_id, document_id ni token.

Colaboradores:
    - identity/access_control.py: decisiones allow/deny por camino.
    - application/usecases/tokens/*: emisión y canje.
    - audit.py: fallas best-effort de escritura.
    - crosscutting/timing.py: latencia de casos de uso.
===============================================================================
"""

from __future__ import annotations

from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

_access_decisions_total = Counter(
    "docshare_access_decisions_total",
    "Decisiones de autorización por tipo de recurso, camino y resultado",
    ["resource_kind", "path", "outcome"],
    registry=_registry,
)

_tokens_issued_total = Counter(
    "docshare_download_tokens_issued_total",
    "Intentos de emisión de download tokens por resultado",
    ["outcome"],
    registry=_registry,
)

_token_redemptions_total = Counter(
    "docshare_download_token_redemptions_total",
    "Intentos de canje de download tokens por resultado",
    ["outcome"],
    registry=_registry,
)

_tokens_cleaned_total = Counter(
    "docshare_download_tokens_cleaned_total",
    "Tokens eliminados por limpieza (expirados / usados)",
    ["reason"],
    registry=_registry,
)

_audit_write_failures_total = Counter(
    "docshare_audit_write_failures_total",
    "Eventos de auditoría que no pudieron persistirse",
    ["event_type"],
    registry=_registry,
)

_usecase_latency = Histogram(
    "docshare_usecase_latency_seconds",
    "Latencia de casos de uso (segundos)",
    ["usecase"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    registry=_registry,
)


@lru_cache(maxsize=1)
def _enabled() -> bool:
    from .config import get_settings

    try:
        return get_settings().metrics_enabled
    except ValueError:
        return True


def record_access_decision(resource_kind: str, path: str, outcome: str) -> None:
    """path: owner | policy | role | none; outcome: allow | deny."""
    if _enabled():
        _access_decisions_total.labels(
            resource_kind=resource_kind, path=path, outcome=outcome
        ).inc()


def record_token_issued(outcome: str) -> None:
    if _enabled():
        _tokens_issued_total.labels(outcome=outcome).inc()


def record_token_redemption(outcome: str) -> None:
    if _enabled():
        _token_redemptions_total.labels(outcome=outcome).inc()


def record_tokens_cleaned(reason: str, count: int) -> None:
    if _enabled() and count > 0:
        _tokens_cleaned_total.labels(reason=reason).inc(count)


def record_audit_write_failure(event_type: str) -> None:
    if _enabled():
        _audit_write_failures_total.labels(event_type=event_type).inc()


def observe_usecase_duration(usecase: str, seconds: float) -> None:
    if _enabled():
        _usecase_latency.labels(usecase=usecase).observe(max(seconds, 0.0))


def get_metrics_response() -> tuple[bytes, str]:
    """Payload en formato texto de Prometheus + content type."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
