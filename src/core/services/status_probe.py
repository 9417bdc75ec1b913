"""Sonda de disponibilidad de la IA del backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.domain.models import StatusSnapshot
from core.interfaces.gateway import CommerceBackend
from core.logging_config import get_logger


@dataclass(frozen=True)
class ProbeResult:
    ai_available: bool
    snapshot: StatusSnapshot | None = None


class StatusProbe:
    """Consulta el estado del backend una vez por despacho.

    Falla cerrado: cualquier error de red o de parseo equivale a
    `ai_available=False`, así una caída del endpoint de estado nunca bloquea
    el procesamiento de comandos (se sigue por el camino local).
    """

    def __init__(self, gateway: CommerceBackend, *, logger: logging.Logger | None = None) -> None:
        self._gateway = gateway
        self._log = logger or get_logger("status_probe")

    async def probe(self) -> ProbeResult:
        try:
            snapshot = await self._gateway.get_status()
        except Exception as exc:
            self._log.warning(
                "status probe failed, assuming AI unavailable: %s",
                exc,
                extra={"event": "probe_failed", "error": str(exc)},
            )
            return ProbeResult(ai_available=False)

        self._log.debug(
            "status probe: ia_disponible=%s status=%s",
            snapshot.ia_disponible,
            snapshot.status,
            extra={"event": "probe_ok", "ai_available": snapshot.ia_disponible},
        )
        return ProbeResult(ai_available=snapshot.ia_disponible, snapshot=snapshot)
