"""Logging estructurado del Core.

Los servicios reciben un `logging.Logger` inyectado (por defecto uno bajo el
namespace `comercio_dash`) y emiten eventos con campos en `extra=`. Así los
tests pueden afirmar sobre eventos con `caplog` sin capturar stdout, y en
producción `StructuredFormatter` los vuelca como JSON de una línea.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

__all__ = [
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

_LOGGER_PREFIX = "comercio_dash"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """Formatea cada registro como una línea JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Campos estructurados pasados con extra=
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger bajo el namespace `comercio_dash`."""

    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    json_output: bool = False,
    stream: Any = None,
) -> logging.Logger:
    """Instala un único handler en el logger raíz del proyecto.

    Es idempotente: llamarlo otra vez reemplaza el handler anterior.
    """

    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()

    handler = logging.StreamHandler(stream)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.propagate = False
    return root


def reset_logging() -> None:
    """Quita handlers y restaura la propagación (útil en tests)."""

    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True
