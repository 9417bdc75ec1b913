"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Facilita normalizar las respuestas heterogéneas del backend.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import PurePath
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, computed_field, model_validator
from pydantic.config import ConfigDict


# mimetypes clasifica .webm/.ogg como video según la plataforma.
_AUDIO_TYPES = {
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
}


class TextCommand(BaseModel):
    """Comando en lenguaje natural escrito por el usuario."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str = Field(
        ...,
        description="Texto del comando (p.ej. 'reporte de ventas de septiembre').",
    )


class AudioCommand(BaseModel):
    """Clip de audio grabado en el navegador.

    No existe intérprete local para audio: solo la IA del backend lo entiende.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["audio"] = "audio"
    payload: bytes = Field(..., description="Bytes crudos del clip.")
    filename: str = Field(
        default="reporte.webm",
        min_length=1,
        description="Nombre con el que se adjunta el clip en el multipart.",
    )

    @property
    def content_type(self) -> str:
        suffix = PurePath(self.filename).suffix.lower()
        if suffix in _AUDIO_TYPES:
            return _AUDIO_TYPES[suffix]
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or "audio/webm"


Command = Annotated[Union[TextCommand, AudioCommand], Field(discriminator="kind")]


class ReportPayload(BaseModel):
    """Reporte devuelto por el backend.

    Es opaco para el Core: se reenvía tal cual a la UI. Solo se tipan las dos
    claves que la UI suele leer.
    """

    model_config = ConfigDict(extra="allow")

    kpis: dict[str, Any] | None = Field(
        default=None,
        description="Métricas con nombre (p.ej. total_ventas).",
    )
    datos: list[Any] | dict[str, Any] | None = Field(
        default=None,
        description="Filas crudas del reporte (lista o mapa por clave).",
    )


class BackendReply(BaseModel):
    """Respuesta cruda de los endpoints de comando (texto o audio)."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    reporte: ReportPayload | None = None
    error: str | None = None
    mensaje: str | None = None
    comando_procesado: str | None = None
    comando_detectado: str | None = None
    filtros_aplicados: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    @property
    def processed_command(self) -> str | None:
        return self.comando_procesado or self.comando_detectado


class StatusSnapshot(BaseModel):
    """Estado operativo del backend de reportes.

    Solo `ia_disponible` decide el flujo; el resto es informativo y se acepta
    con cualquier forma que mande el backend.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    status: str = Field(default="degradado", description="p.ej. operacional / degradado.")
    ia_disponible: bool = False
    endpoints: dict[str, Any] = Field(default_factory=dict)


class DispatchPath(str, Enum):
    """Intérprete que produjo realmente el resultado."""

    AI = "ai"
    LOCAL = "local"
    AI_ONLY_FAILED = "ai-only-failed"


class FallbackReason(str, Enum):
    """Por qué se abandonó el intento IA."""

    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    UNAVAILABLE = "unavailable"


class DispatchOutcome(BaseModel):
    """Resultado de un despacho de comando, listo para la UI.

    `path_taken` es None solo cuando un error fatal cortó el flujo antes de
    llegar a cualquier intérprete.
    """

    succeeded: bool
    report: ReportPayload | None = None
    error_message: str | None = None
    path_taken: DispatchPath | None = None
    fallback_reason: FallbackReason | None = None
    processed_command: str | None = None

    @classmethod
    def from_reply(
        cls,
        reply: BackendReply,
        *,
        path: DispatchPath,
        fallback_reason: FallbackReason | None = None,
    ) -> "DispatchOutcome":
        return cls(
            succeeded=reply.success,
            report=reply.reporte,
            error_message=None if reply.success else (reply.error or reply.mensaje),
            path_taken=path,
            fallback_reason=fallback_reason,
            processed_command=reply.processed_command,
        )

    @classmethod
    def failure(
        cls,
        message: str,
        *,
        path: DispatchPath | None,
        fallback_reason: FallbackReason | None = None,
    ) -> "DispatchOutcome":
        return cls(
            succeeded=False,
            error_message=message,
            path_taken=path,
            fallback_reason=fallback_reason,
        )


class RelationRequest(BaseModel):
    """Un vínculo deseado entre un dueño (p.ej. promoción) y un miembro (p.ej. producto)."""

    model_config = ConfigDict(frozen=True)

    owner_id: int
    member_id: int


class RelationRecord(BaseModel):
    """Relación tal como la devuelve el backend (con id generado)."""

    model_config = ConfigDict(extra="allow")

    id: int
    owner_id: int | None = None
    member_id: int | None = None


class ItemError(BaseModel):
    member_id: int | str = Field(..., description="Id tal como llegó (str si no era un entero).")
    message: str


class ReconciliationReport(BaseModel):
    """Resultado agregado de una operación por lotes sobre relaciones.

    Invariantes (validadas al construir):
    - success_count + failure_count == total
    - succeeded es True si y solo si failure_count == 0
    """

    total: int = Field(..., ge=0)
    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    per_item_errors: list[ItemError] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Avisos no fatales (p.ej. relaciones antiguas que no se pudieron borrar).",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> bool:
        return self.failure_count == 0

    @model_validator(mode="after")
    def _check_counts(self) -> "ReconciliationReport":
        if self.success_count + self.failure_count != self.total:
            raise ValueError(
                f"success_count ({self.success_count}) + failure_count ({self.failure_count}) "
                f"!= total ({self.total})"
            )
        if len(self.per_item_errors) != self.failure_count:
            raise ValueError("per_item_errors must have one entry per failure")
        return self

    def summary(self) -> str:
        if self.succeeded:
            return f"Todas las {self.total} relaciones creadas exitosamente"
        errors = "; ".join(f"Producto {e.member_id}: {e.message}" for e in self.per_item_errors)
        return f"Se crearon {self.success_count} de {self.total} relaciones. Errores: {errors}"
