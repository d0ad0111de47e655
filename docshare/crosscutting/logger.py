"""
===============================================================================
MÓDULO: Logger estructurado (JSON)
===============================================================================

Objetivo
--------
Una línea JSON por evento, con:
- contexto de la operación (request_id / correlation_id / actor_id)
- redacción de secretos: el valor de un download token NUNCA sale en logs
- tamaño acotado (strings largos recortados, profundidad limitada)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear LogRecord -> JSON
  - Copiar los "extra" sanitizados
  - Adjuntar excepción (tipo, mensaje, stacktrace)

Colaboradores:
  - docshare/context.py (ContextVars)
  - crosscutting/config.py (nivel y formato)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos estándar de LogRecord: no se copian como "extra".
_RESERVED_RECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_REDACTED = "***REDACTED***"
_TRUNCATED = "***TRUNCATED***"


class _Redactor:
    """Sanitiza valores "extra" antes de serializarlos."""

    # "token" cubre el secreto del download token; token_id es seguro.
    SENSITIVE_KEYS = frozenset(
        {
            "token",
            "download_token",
            "token_value",
            "secret",
            "password",
            "authorization",
            "api_key",
            "access_token",
            "refresh_token",
            "database_url",
        }
    )

    def __init__(self, max_str: int = 4_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, key: str | None = None, depth: int = 0) -> Any:
        if key is not None and key.lower() in self.SENSITIVE_KEYS:
            return _REDACTED
        if depth > self._max_depth:
            return _TRUNCATED

        if isinstance(value, str):
            if len(value) > self._max_str:
                return value[: self._max_str] + "...(truncated)"
            return value
        if isinstance(value, (bytes, bytearray)):
            return f"<{len(value)} bytes>"
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, key=str(k), depth=depth + 1)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.sanitize(v, key=key, depth=depth + 1) for v in value]
        if value is None or isinstance(value, (bool, int, float)):
            return value
        return str(value)


class JSONFormatter(logging.Formatter):
    """Convierte LogRecord en una línea JSON enriquecida con contexto."""

    def __init__(self):
        super().__init__()
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "pid": os.getpid(),
        }

        from ..context import get_context_dict

        payload.update(get_context_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS:
                continue
            payload[key] = self._redactor.sanitize(value, key=key)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(
            payload, ensure_ascii=False, default=str, separators=(",", ":")
        )


def setup_logger(name: str = "docshare") -> logging.Logger:
    """
    Crea y configura el logger del paquete.

    - No duplica handlers si el módulo se reimporta
    - Toma log_level / log_json de Settings (si la config es inválida,
      se usa INFO + JSON y el error aparece al construir el container)
    """
    log = logging.getLogger(name)

    level = "INFO"
    use_json = True
    try:
        from .config import get_settings

        settings = get_settings()
        level = settings.log_level
        use_json = settings.log_json
    except ValueError:
        # pydantic.ValidationError hereda de ValueError
        pass

    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter()
            if use_json
            else logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
