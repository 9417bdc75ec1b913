"""Excepciones del dominio.

Solo cruzan capas las excepciones que el gateway lanza hacia los servicios.
Los servicios las convierten siempre en un resultado tipado
(`DispatchOutcome` / `ReconciliationReport`); la UI no recibe excepciones.
"""

from __future__ import annotations


class CommerceDashError(Exception):
    """Base de todas las excepciones propias."""


class InvalidCommandError(CommerceDashError):
    """Entrada mal formada detectada antes de cualquier llamada de red."""


class BackendError(CommerceDashError):
    """El backend respondió con un error HTTP (4xx/5xx)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """Fallo de la petición: conexión rechazada, DNS, timeout, redirecciones, decodificación."""


class InvalidResponseError(BackendError):
    """El backend respondió 2xx pero el cuerpo no tiene la forma esperada."""
