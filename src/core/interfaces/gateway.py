"""Contrato del backend comercial.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Los servicios (dispatch, reconciliación) dependen de este contrato y no de
  httpx: en tests se sustituye por un fake en memoria.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import (
    AudioCommand,
    BackendReply,
    RelationRecord,
    RelationRequest,
    StatusSnapshot,
)


@runtime_checkable
class CommerceBackend(Protocol):
    """Operaciones del backend que usa el Core.

    Reglas de diseño:
    - Todo es asíncrono porque todo es I/O (HTTP).
    - Los errores HTTP se lanzan como `BackendError`; los de transporte como
      `BackendUnavailableError`. Las respuestas de comando con `success=false`
      NO son excepciones: se devuelven como `BackendReply`.
    """

    async def get_status(self) -> StatusSnapshot:
        ...

    async def submit_text_command(self, content: str, *, use_ai: bool) -> BackendReply:
        ...

    async def submit_audio_command(self, command: AudioCommand) -> BackendReply:
        ...

    async def create_relation(self, request: RelationRequest) -> RelationRecord:
        ...

    async def delete_relation(self, relation_id: int) -> None:
        ...

    async def list_relations(self, owner_id: int) -> list[RelationRecord]:
        ...
