"""Fixtures compartidas.

`FakeBackend` implementa `CommerceBackend` en memoria y registra cada llamada
en orden (`calls`), para afirmar sobre qué endpoints se invocaron y cuándo.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from core.config import AppSettings
from core.domain.errors import BackendError
from core.domain.models import (
    AudioCommand,
    BackendReply,
    RelationRecord,
    RelationRequest,
    StatusSnapshot,
)
from core.logging_config import reset_logging

OK_REPORT = {"kpis": {"total_ventas": 1500.0}, "datos": [{"producto": "A", "total": 1500.0}]}


class FakeBackend:
    def __init__(self, *, ai_available: bool = True) -> None:
        self.ai_available = ai_available
        self.status_error: Exception | None = None
        self.status_endpoints: dict[str, Any] = {}

        self.ai_reply = BackendReply(success=True, reporte=OK_REPORT, comando_procesado="ventas")
        self.ai_error: Exception | None = None
        self.ai_hangs = False
        self.ai_cancelled = False

        self.local_reply = BackendReply(success=True, reporte=OK_REPORT)
        self.local_error: Exception | None = None

        self.audio_reply = BackendReply(success=True, reporte=OK_REPORT, comando_detectado="ventas")

        self.create_failures: dict[int, Exception] = {}
        self.delete_failures: set[int] = set()
        self.list_error: Exception | None = None
        self.relations: list[RelationRecord] = []
        self._next_id = 1000

        self.calls: list[tuple[Any, ...]] = []

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    async def _ai(self, reply: BackendReply) -> BackendReply:
        if self.ai_hangs:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.ai_cancelled = True
                raise
        if self.ai_error is not None:
            raise self.ai_error
        return reply

    async def get_status(self) -> StatusSnapshot:
        self.calls.append(("status",))
        if self.status_error is not None:
            raise self.status_error
        return StatusSnapshot(
            success=True,
            status="operacional" if self.ai_available else "degradado",
            ia_disponible=self.ai_available,
            endpoints=self.status_endpoints,
        )

    async def submit_text_command(self, content: str, *, use_ai: bool) -> BackendReply:
        self.calls.append(("text_ai" if use_ai else "text_local", content))
        if use_ai:
            return await self._ai(self.ai_reply)
        if self.local_error is not None:
            raise self.local_error
        return self.local_reply

    async def submit_audio_command(self, command: AudioCommand) -> BackendReply:
        self.calls.append(("audio", command.filename))
        return await self._ai(self.audio_reply)

    async def create_relation(self, request: RelationRequest) -> RelationRecord:
        self.calls.append(("create", request.owner_id, request.member_id))
        # Punto de suspensión real, como en una llamada HTTP.
        await asyncio.sleep(0)
        failure = self.create_failures.get(request.member_id)
        if failure is not None:
            raise failure
        self._next_id += 1
        return RelationRecord(id=self._next_id, owner_id=request.owner_id, member_id=request.member_id)

    async def delete_relation(self, relation_id: int) -> None:
        self.calls.append(("delete", relation_id))
        if relation_id in self.delete_failures:
            raise BackendError("No encontrado.", status_code=404)
        self.relations = [r for r in self.relations if r.id != relation_id]

    async def list_relations(self, owner_id: int) -> list[RelationRecord]:
        self.calls.append(("list", owner_id))
        if self.list_error is not None:
            raise self.list_error
        return [r for r in self.relations if r.owner_id == owner_id]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        api_base_url="http://backend.test/api",
        ai_timeout_seconds=5.0,
    )


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()
