"""Despacho de comandos (texto y audio) con escalado IA -> local.

Flujo del comando de texto:

    probe() -> ¿IA disponible?
      NO -> intérprete local (una vez)                       path=local
      SÍ -> intérprete IA con plazo (asyncio.wait_for)
              éxito                                          path=ai
              error de dominio (validación, etc.)            path=ai
              error del proveedor / plazo vencido / sin red / cuerpo ilegible
                -> intérprete local (una vez)                path=local si tuvo éxito,
                                                             ai-only-failed si no

El audio sigue el mismo intento IA pero no tiene intérprete local: cualquier
fallo del lado IA termina en error sugiriendo reenviar como texto.

Cuando vence el plazo, `wait_for` cancela la tarea de la llamada IA (y con
ella la petición httpx); su resultado nunca se consume. Ningún error sale de
`dispatch` salvo `asyncio.CancelledError`, que se deja propagar para que el
llamador pueda cancelar un despacho en curso.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Iterable

from core.config import AppSettings
from core.domain.errors import (
    BackendError,
    BackendUnavailableError,
    InvalidCommandError,
    InvalidResponseError,
)
from core.domain.language import Language, message
from core.domain.models import (
    AudioCommand,
    BackendReply,
    DispatchOutcome,
    DispatchPath,
    FallbackReason,
    TextCommand,
)
from core.interfaces.gateway import CommerceBackend
from core.logging_config import get_logger
from core.services.status_probe import StatusProbe


class AttemptKind(Enum):
    """Resultado cerrado de un intento de interpretación IA."""

    SUCCEEDED = "succeeded"
    DOMAIN_ERROR = "domain_error"
    PROVIDER_ERROR = "provider_error"
    TIMED_OUT = "timed_out"
    UNAVAILABLE = "unavailable"


_FALLBACK_REASONS: dict[AttemptKind, FallbackReason] = {
    AttemptKind.PROVIDER_ERROR: FallbackReason.PROVIDER_ERROR,
    AttemptKind.TIMED_OUT: FallbackReason.TIMEOUT,
    AttemptKind.UNAVAILABLE: FallbackReason.UNAVAILABLE,
}


@dataclass(frozen=True)
class AIAttempt:
    kind: AttemptKind
    reply: BackendReply | None = None
    detail: str | None = None

    @property
    def fallback_reason(self) -> FallbackReason | None:
        return _FALLBACK_REASONS.get(self.kind)


def is_provider_error(text: str | None, markers: Iterable[str]) -> bool:
    """True si el mensaje delata un fallo del proveedor IA (cuota, API key...)."""

    if not text:
        return False
    lowered = text.lower()
    return any(marker.lower() in lowered for marker in markers if marker)


async def run_ai_attempt(
    call: Awaitable[BackendReply],
    *,
    timeout: float,
    provider_markers: Iterable[str],
) -> AIAttempt:
    """Compite `call` contra el plazo y clasifica el resultado.

    Solo una respuesta de error bien formada del backend cuenta como error de
    dominio. Cuerpos ilegibles y cualquier otra excepción del lado IA se
    tratan como IA no disponible. `asyncio.CancelledError` no se captura.
    """

    try:
        reply = await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        return AIAttempt(AttemptKind.TIMED_OUT, detail=f"sin respuesta IA en {timeout:g}s")
    except (BackendUnavailableError, InvalidResponseError) as exc:
        return AIAttempt(AttemptKind.UNAVAILABLE, detail=exc.message)
    except BackendError as exc:
        return AIAttempt(
            AttemptKind.DOMAIN_ERROR,
            reply=BackendReply(success=False, error=exc.message),
            detail=exc.message,
        )
    except Exception as exc:
        return AIAttempt(AttemptKind.UNAVAILABLE, detail=f"{type(exc).__name__}: {exc}")

    if reply.success:
        return AIAttempt(AttemptKind.SUCCEEDED, reply=reply)
    error_text = reply.error or reply.mensaje
    if is_provider_error(error_text, provider_markers):
        return AIAttempt(AttemptKind.PROVIDER_ERROR, reply=reply, detail=error_text)
    return AIAttempt(AttemptKind.DOMAIN_ERROR, reply=reply, detail=error_text)


class _Dispatcher:
    """Plomería común: gateway, sonda, settings, plazo e idioma."""

    def __init__(
        self,
        gateway: CommerceBackend,
        *,
        settings: AppSettings | None = None,
        probe: StatusProbe | None = None,
        logger: logging.Logger | None = None,
        language: Language | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._gateway = gateway
        self._log = logger or get_logger("dispatch")
        self._probe = probe or StatusProbe(gateway, logger=self._log)
        self._language = language or self._settings.default_language

    def _timeout(self, override: float | None) -> float:
        if override is None:
            return self._settings.ai_timeout_seconds
        if override <= 0:
            raise InvalidCommandError("timeout must be positive")
        return override

    async def _try_ai(self, call: Awaitable[BackendReply], timeout: float) -> AIAttempt:
        attempt = await run_ai_attempt(
            call,
            timeout=timeout,
            provider_markers=self._settings.ai_provider_error_markers,
        )
        self._log.info(
            "AI attempt finished: %s",
            attempt.kind.value,
            extra={"event": "ai_attempt", "attempt": attempt.kind.value, "detail": attempt.detail},
        )
        return attempt


class CommandDispatcher(_Dispatcher):
    """Despacha comandos de texto con fallback automático al intérprete local."""

    async def dispatch(
        self,
        command: TextCommand | str,
        *,
        timeout: float | None = None,
        force_local: bool = False,
    ) -> DispatchOutcome:
        try:
            if isinstance(command, str):
                command = TextCommand(content=command)
            content = command.content.strip()
            if not content:
                raise InvalidCommandError(message("empty_command", self._language))
            deadline = self._timeout(timeout)
        except (InvalidCommandError, ValueError) as exc:
            self._log.error("rejected command: %s", exc, extra={"event": "fatal", "error": str(exc)})
            return DispatchOutcome.failure(
                message("command_fatal", self._language, detail=exc), path=None
            )

        try:
            return await self._run(content, deadline, force_local)
        except Exception as exc:
            self._log.exception("unexpected error dispatching command", extra={"event": "fatal"})
            return DispatchOutcome.failure(
                message("command_fatal", self._language, detail=exc), path=None
            )

    async def _run(self, content: str, timeout: float, force_local: bool) -> DispatchOutcome:
        if force_local:
            self._log.info("local mode requested", extra={"event": "local_only", "reason": "forced"})
            return await self._local(content)

        probe = await self._probe.probe()
        if not probe.ai_available:
            self._log.info("AI unavailable, using local interpreter", extra={"event": "local_only"})
            return await self._local(content)

        attempt = await self._try_ai(
            self._gateway.submit_text_command(content, use_ai=True), timeout
        )
        reason = attempt.fallback_reason
        if reason is None:
            assert attempt.reply is not None
            return DispatchOutcome.from_reply(attempt.reply, path=DispatchPath.AI)

        self._log.warning(
            "AI interpretation failed (%s), falling back to local interpreter",
            reason.value,
            extra={"event": "fallback", "reason": reason.value, "detail": attempt.detail},
        )
        return await self._local(content, fallback_reason=reason)

    async def _local(
        self,
        content: str,
        *,
        fallback_reason: FallbackReason | None = None,
    ) -> DispatchOutcome:
        # En fallback se entra como ai-only-failed y solo un éxito local lo corrige.
        failed_path = DispatchPath.LOCAL if fallback_reason is None else DispatchPath.AI_ONLY_FAILED
        try:
            reply = await self._gateway.submit_text_command(content, use_ai=False)
        except Exception as exc:
            detail = exc.message if isinstance(exc, BackendError) else f"{type(exc).__name__}: {exc}"
            self._log.error(
                "local interpreter failed: %s",
                detail,
                extra={"event": "local_failed", "error": detail},
            )
            return DispatchOutcome.failure(
                detail, path=failed_path, fallback_reason=fallback_reason
            )

        path = DispatchPath.LOCAL if reply.success else failed_path
        self._log.info(
            "local interpreter finished: success=%s",
            reply.success,
            extra={"event": "local_result", "path": path.value, "succeeded": reply.success},
        )
        return DispatchOutcome.from_reply(reply, path=path, fallback_reason=fallback_reason)


class AudioDispatcher(_Dispatcher):
    """Despacha clips de audio. Solo IA: no hay intérprete local de voz."""

    async def dispatch(
        self,
        command: AudioCommand,
        *,
        timeout: float | None = None,
    ) -> DispatchOutcome:
        try:
            if not command.payload:
                raise InvalidCommandError(message("empty_audio", self._language))
            deadline = self._timeout(timeout)
        except InvalidCommandError as exc:
            self._log.error("rejected audio: %s", exc, extra={"event": "fatal", "error": str(exc)})
            return DispatchOutcome.failure(
                message("audio_fatal", self._language, detail=exc), path=None
            )

        try:
            return await self._run(command, deadline)
        except Exception as exc:
            self._log.exception("unexpected error dispatching audio", extra={"event": "fatal"})
            return DispatchOutcome.failure(
                message("audio_fatal", self._language, detail=exc), path=None
            )

    async def _run(self, command: AudioCommand, timeout: float) -> DispatchOutcome:
        probe = await self._probe.probe()
        if not probe.ai_available:
            self._log.warning(
                "AI unavailable, audio cannot be processed",
                extra={"event": "audio_rejected", "reason": FallbackReason.UNAVAILABLE.value},
            )
            return DispatchOutcome.failure(
                message("audio_ai_unavailable", self._language),
                path=DispatchPath.AI_ONLY_FAILED,
                fallback_reason=FallbackReason.UNAVAILABLE,
            )

        attempt = await self._try_ai(self._gateway.submit_audio_command(command), timeout)
        reason = attempt.fallback_reason
        if reason is None:
            assert attempt.reply is not None
            return DispatchOutcome.from_reply(attempt.reply, path=DispatchPath.AI)

        self._log.warning(
            "audio interpretation failed (%s), no local fallback for audio",
            reason.value,
            extra={"event": "audio_failed", "reason": reason.value, "detail": attempt.detail},
        )
        return DispatchOutcome.failure(
            message("audio_ai_failed", self._language),
            path=DispatchPath.AI_ONLY_FAILED,
            fallback_reason=reason,
        )
