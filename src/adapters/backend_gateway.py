"""Gateway HTTP hacia el backend comercial.

Responsabilidad:
- Traducir las operaciones de `CommerceBackend` a llamadas REST.
- Normalizar respuestas a modelos del dominio.
- Convertir fallos de httpx en las excepciones del dominio.

Política de errores:
- Endpoints de comando (texto/audio): un HTTP de error se devuelve como
  `BackendReply(success=False, error=...)`; el dispatcher decide qué hacer.
- Endpoints de estado y relaciones: un HTTP de error lanza `BackendError`.
- Fallos de transporte lanzan `BackendUnavailableError` en ambos casos.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client, extract_error_message, parse_json_body
from core.config import AppSettings
from core.domain.errors import BackendError, BackendUnavailableError, InvalidResponseError
from core.domain.models import (
    AudioCommand,
    BackendReply,
    RelationRecord,
    RelationRequest,
    StatusSnapshot,
)

STATUS_PATH = "/reportes/status/"
TEXT_COMMAND_PATH = "/reportes/voz/"
AUDIO_COMMAND_PATH = "/reportes/voz/audio/"


@dataclass(frozen=True)
class RelationResource:
    """Describe un recurso REST de relación muchos-a-muchos.

    Por defecto: producto <-> promoción.
    """

    path: str = "/productospromociones/"
    owner_field: str = "promocion_id"
    member_field: str = "producto_id"
    owner_query: str = "promocion"
    owner_object_key: str = "promocion"
    member_object_key: str = "producto"

    def item_path(self, relation_id: int) -> str:
        return f"{self.path.rstrip('/')}/{relation_id}/"


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, dict):
        return _as_int(value.get("id"))
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class HttpCommerceBackend:
    """Implementación httpx de `core.interfaces.gateway.CommerceBackend`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        resource: RelationResource | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._resource = resource or RelationResource()
        self._transport = transport

    @property
    def resource(self) -> RelationResource:
        return self._resource

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                return await client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise BackendUnavailableError(f"{type(exc).__name__}: {exc}") from exc

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise BackendError(extract_error_message(response), status_code=response.status_code)

    # ----------------------------------------------------------------- status

    async def get_status(self) -> StatusSnapshot:
        response = await self._send("GET", STATUS_PATH)
        self._raise_for_status(response)
        data = parse_json_body(response)
        if not isinstance(data, dict):
            raise InvalidResponseError("Respuesta de estado inválida", status_code=response.status_code)
        try:
            return StatusSnapshot.model_validate(data)
        except ValidationError as exc:
            raise InvalidResponseError(
                f"Respuesta de estado inválida: {exc.error_count()} errores",
                status_code=response.status_code,
            ) from exc

    # --------------------------------------------------------------- comandos

    def _to_reply(self, response: httpx.Response) -> BackendReply:
        data = parse_json_body(response)
        if response.is_success:
            if not isinstance(data, dict):
                raise InvalidResponseError(
                    "Respuesta de comando inválida", status_code=response.status_code
                )
            try:
                return BackendReply.model_validate(data)
            except ValidationError as exc:
                raise InvalidResponseError(
                    f"Respuesta de comando inválida: {exc.error_count()} errores",
                    status_code=response.status_code,
                ) from exc

        body = data if isinstance(data, dict) else {}
        try:
            reply = BackendReply.model_validate(body)
        except ValidationError:
            reply = BackendReply()
        return reply.model_copy(
            update={"success": False, "error": reply.error or extract_error_message(response)}
        )

    async def submit_text_command(self, content: str, *, use_ai: bool) -> BackendReply:
        response = await self._send(
            "POST",
            TEXT_COMMAND_PATH,
            json={"comando": content, "usar_ia": use_ai},
        )
        return self._to_reply(response)

    async def submit_audio_command(self, command: AudioCommand) -> BackendReply:
        # httpx arma el boundary del multipart; no fijamos Content-Type.
        files = {"audio": (command.filename, command.payload, command.content_type)}
        response = await self._send("POST", AUDIO_COMMAND_PATH, files=files)
        return self._to_reply(response)

    # -------------------------------------------------------------- relaciones

    def _parse_relation(self, data: object) -> RelationRecord:
        if not isinstance(data, dict):
            raise InvalidResponseError("Relación inválida: se esperaba un objeto")
        res = self._resource
        relation_id = _as_int(data.get("id"))
        if relation_id is None:
            raise InvalidResponseError("Relación inválida: falta 'id'")
        owner = _as_int(data.get(res.owner_field))
        if owner is None:
            owner = _as_int(data.get(res.owner_object_key))
        member = _as_int(data.get(res.member_field))
        if member is None:
            member = _as_int(data.get(res.member_object_key))
        return RelationRecord.model_validate(
            {**data, "id": relation_id, "owner_id": owner, "member_id": member}
        )

    async def create_relation(self, request: RelationRequest) -> RelationRecord:
        res = self._resource
        response = await self._send(
            "POST",
            res.path,
            json={res.member_field: request.member_id, res.owner_field: request.owner_id},
        )
        self._raise_for_status(response)
        try:
            record = self._parse_relation(parse_json_body(response))
            if record.owner_id is None or record.member_id is None:
                raise InvalidResponseError("Relación creada sin dueño o miembro")
            return record
        except InvalidResponseError as exc:
            raise InvalidResponseError(
                "Respuesta inválida del servidor al crear la relación",
                status_code=response.status_code,
            ) from exc

    async def delete_relation(self, relation_id: int) -> None:
        response = await self._send("DELETE", self._resource.item_path(relation_id))
        self._raise_for_status(response)

    async def list_relations(self, owner_id: int) -> list[RelationRecord]:
        res = self._resource
        response = await self._send("GET", res.path, params={res.owner_query: owner_id})
        self._raise_for_status(response)

        data = parse_json_body(response)
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            items = data["results"]
        elif isinstance(data, list):
            items = data
        else:
            raise InvalidResponseError(
                "Listado de relaciones inválido", status_code=response.status_code
            )
        return [self._parse_relation(item) for item in items]
