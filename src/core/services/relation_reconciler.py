"""Reconciliación de relaciones muchos-a-muchos (p.ej. promoción <-> producto).

El backend no ofrece endpoints masivos ni transaccionales: cada vínculo se
crea/borra con una llamada. Este módulo:
- emite las llamadas en orden de entrada, una a la vez por defecto;
- nunca corta el lote por un fallo individual;
- agrega el resultado en un `ReconciliationReport` con detalle por ítem.

`replace_all` es convergencia best-effort: borra lo existente y recrea, sin
rollback. Si algo falla a medias, el dueño queda exactamente con las
sub-llamadas que tuvieron éxito; el reporte y los warnings lo reflejan.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from core.config import AppSettings
from core.domain.errors import BackendError
from core.domain.language import Language, message
from core.domain.models import ItemError, ReconciliationReport, RelationRequest
from core.interfaces.gateway import CommerceBackend
from core.logging_config import get_logger


def _valid_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _error_text(exc: Exception) -> str:
    if isinstance(exc, BackendError):
        return exc.message
    return str(exc) or type(exc).__name__


class RelationReconciler:
    """Crea/reemplaza relaciones de un dueño y reporta éxitos parciales."""

    def __init__(
        self,
        gateway: CommerceBackend,
        *,
        settings: AppSettings | None = None,
        max_concurrency: int | None = None,
        logger: logging.Logger | None = None,
        language: Language | None = None,
    ) -> None:
        settings = settings or AppSettings()
        self._gateway = gateway
        self._max_concurrency = max(1, max_concurrency or settings.relation_max_concurrency)
        self._log = logger or get_logger("reconciler")
        self._language = language or settings.default_language

    async def _create_one(self, owner_id: int, member_id: object) -> str | None:
        """Crea un vínculo. Devuelve el mensaje de error o None si tuvo éxito."""

        if not _valid_id(member_id):
            return message("invalid_member", self._language, member_id=member_id)
        try:
            record = await self._gateway.create_relation(
                RelationRequest(owner_id=owner_id, member_id=member_id)  # type: ignore[arg-type]
            )
        except Exception as exc:
            detail = _error_text(exc)
            self._log.error(
                "relation %s -> %s failed: %s",
                owner_id,
                member_id,
                detail,
                extra={"event": "relation_failed", "owner_id": owner_id, "member_id": member_id},
            )
            return detail

        self._log.debug(
            "relation %s -> %s created (id=%s)",
            owner_id,
            member_id,
            record.id,
            extra={"event": "relation_created", "owner_id": owner_id, "member_id": member_id},
        )
        return None

    async def create_all(self, owner_id: int, member_ids: Iterable[int]) -> ReconciliationReport:
        ids = list(member_ids)
        self._log.info(
            "creating %d relations for owner %s",
            len(ids),
            owner_id,
            extra={"event": "create_all", "owner_id": owner_id, "count": len(ids)},
        )

        # Una ranura por ítem: el orden del reporte es el de entrada aunque
        # las llamadas terminen en otro orden.
        slots: list[str | None] = [None] * len(ids)

        if not _valid_id(owner_id):
            invalid = message("invalid_owner", self._language, owner_id=owner_id)
            slots = [invalid] * len(ids)
        elif self._max_concurrency == 1:
            for index, member_id in enumerate(ids):
                slots[index] = await self._create_one(owner_id, member_id)
        else:
            sem = asyncio.Semaphore(self._max_concurrency)

            async def run_slot(index: int, member_id: int) -> None:
                async with sem:
                    slots[index] = await self._create_one(owner_id, member_id)

            await asyncio.gather(*(run_slot(i, m) for i, m in enumerate(ids)))

        errors = [
            ItemError(
                member_id=member_id if isinstance(member_id, int) else str(member_id),
                message=error,
            )
            for member_id, error in zip(ids, slots)
            if error is not None
        ]
        report = ReconciliationReport(
            total=len(ids),
            success_count=len(ids) - len(errors),
            failure_count=len(errors),
            per_item_errors=errors,
        )
        log = self._log.info if report.succeeded else self._log.warning
        log(
            "relations for owner %s: %d ok, %d failed",
            owner_id,
            report.success_count,
            report.failure_count,
            extra={
                "event": "create_all_done",
                "owner_id": owner_id,
                "success_count": report.success_count,
                "failure_count": report.failure_count,
            },
        )
        return report

    async def current_member_ids(self, owner_id: int) -> list[int]:
        """Ids de miembros vinculados hoy al dueño ([] si no se pueden obtener)."""

        try:
            relations = await self._gateway.list_relations(owner_id)
        except Exception as exc:
            self._log.warning(
                "could not list relations for owner %s: %s",
                owner_id,
                _error_text(exc),
                extra={"event": "list_failed", "owner_id": owner_id},
            )
            return []
        return [r.member_id for r in relations if r.member_id is not None]

    async def replace_all(
        self,
        owner_id: int,
        new_member_ids: Iterable[int],
    ) -> ReconciliationReport:
        ids = list(new_member_ids)
        warnings: list[str] = []

        if _valid_id(owner_id):
            warnings.extend(await self._delete_existing(owner_id))

        report = await self.create_all(owner_id, ids)
        if not warnings:
            return report
        return report.model_copy(update={"warnings": [*warnings, *report.warnings]})

    async def _delete_existing(self, owner_id: int) -> list[str]:
        warnings: list[str] = []
        try:
            existing = await self._gateway.list_relations(owner_id)
        except Exception as exc:
            text = message("list_failed", self._language, detail=_error_text(exc))
            self._log.warning(text, extra={"event": "list_failed", "owner_id": owner_id})
            return [text]

        for relation in existing:
            try:
                await self._gateway.delete_relation(relation.id)
            except Exception as exc:
                text = message(
                    "delete_failed",
                    self._language,
                    relation_id=relation.id,
                    detail=_error_text(exc),
                )
                self._log.warning(
                    text,
                    extra={"event": "delete_failed", "owner_id": owner_id, "relation_id": relation.id},
                )
                warnings.append(text)

        self._log.info(
            "removed %d of %d existing relations for owner %s",
            len(existing) - len(warnings),
            len(existing),
            owner_id,
            extra={"event": "delete_done", "owner_id": owner_id},
        )
        return warnings
