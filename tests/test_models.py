from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from core.domain.models import (
    BackendReply,
    Command,
    DispatchOutcome,
    DispatchPath,
    FallbackReason,
    ItemError,
    ReconciliationReport,
    TextCommand,
)


def test_report_counts_must_add_up():
    with pytest.raises(ValidationError):
        ReconciliationReport(total=3, success_count=2, failure_count=0)


def test_report_needs_one_error_per_failure():
    with pytest.raises(ValidationError):
        ReconciliationReport(total=2, success_count=1, failure_count=1)


def test_report_summary_lists_failures():
    report = ReconciliationReport(
        total=3,
        success_count=2,
        failure_count=1,
        per_item_errors=[ItemError(member_id=102, message="duplicado")],
    )

    assert report.succeeded is False
    assert report.summary() == "Se crearon 2 de 3 relaciones. Errores: Producto 102: duplicado"
    assert report.model_dump()["succeeded"] is False


def test_report_summary_all_ok():
    report = ReconciliationReport(total=2, success_count=2, failure_count=0)
    assert report.summary() == "Todas las 2 relaciones creadas exitosamente"


def test_outcome_from_failed_reply_prefers_error_then_mensaje():
    only_mensaje = BackendReply(success=False, mensaje="Sin datos para el período")
    outcome = DispatchOutcome.from_reply(only_mensaje, path=DispatchPath.LOCAL)

    assert outcome.succeeded is False
    assert outcome.error_message == "Sin datos para el período"

    both = BackendReply(success=False, error="falló", mensaje="otra cosa")
    assert DispatchOutcome.from_reply(both, path=DispatchPath.AI).error_message == "falló"


def test_outcome_from_successful_reply_has_no_error():
    reply = BackendReply(success=True, reporte={"kpis": {"n": 1}}, comando_detectado="stock")
    outcome = DispatchOutcome.from_reply(
        reply, path=DispatchPath.LOCAL, fallback_reason=FallbackReason.TIMEOUT
    )

    assert outcome.error_message is None
    assert outcome.processed_command == "stock"
    assert outcome.model_dump(mode="json")["fallback_reason"] == "timeout"


def test_command_union_discriminates_on_kind():
    adapter = TypeAdapter(Command)

    parsed = adapter.validate_python({"kind": "text", "content": "ventas"})
    assert isinstance(parsed, TextCommand)

    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "video", "content": "x"})
