"""Reconciliación de relaciones con éxito parcial."""

from __future__ import annotations

import asyncio

import pytest

from core.domain.errors import BackendError, BackendUnavailableError, InvalidResponseError
from core.domain.models import RelationRecord
from core.services.relation_reconciler import RelationReconciler


@pytest.mark.asyncio
async def test_partial_failure_is_reported_per_item(backend, settings):
    backend.create_failures[102] = BackendError("producto_id: Este campo debe ser único.", status_code=400)

    report = await RelationReconciler(backend, settings=settings).create_all(7, [101, 102, 103])

    assert report.success_count == 2
    assert report.failure_count == 1
    assert report.succeeded is False
    assert [(e.member_id, e.message) for e in report.per_item_errors] == [
        (102, "producto_id: Este campo debe ser único.")
    ]
    assert backend.calls_named("create") == [("create", 7, 101), ("create", 7, 102), ("create", 7, 103)]


@pytest.mark.asyncio
async def test_every_item_failing_still_returns_a_report(backend, settings):
    for member in (1, 2, 3, 4):
        backend.create_failures[member] = BackendUnavailableError("ConnectError")

    report = await RelationReconciler(backend, settings=settings).create_all(9, [1, 2, 3, 4])

    assert report.total == 4
    assert report.success_count + report.failure_count == 4
    assert report.failure_count == 4
    assert [e.member_id for e in report.per_item_errors] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_unexpected_item_exception_is_counted_not_raised(backend, settings):
    backend.create_failures[5] = InvalidResponseError("Respuesta inválida del servidor al crear la relación")
    backend.create_failures[6] = RuntimeError("boom")

    report = await RelationReconciler(backend, settings=settings).create_all(1, [5, 6, 7])

    assert report.success_count == 1
    assert [e.message for e in report.per_item_errors] == [
        "Respuesta inválida del servidor al crear la relación",
        "boom",
    ]


@pytest.mark.asyncio
async def test_repeated_create_all_carries_no_hidden_state(backend, settings):
    reconciler = RelationReconciler(backend, settings=settings)

    first = await reconciler.create_all(7, [101, 102, 103])
    second = await reconciler.create_all(7, [101, 102, 103])

    assert first.success_count == 3
    assert second.success_count == 3
    assert len(backend.calls_named("create")) == 6


@pytest.mark.asyncio
async def test_empty_batch_succeeds(backend, settings):
    report = await RelationReconciler(backend, settings=settings).create_all(7, [])

    assert report.total == 0
    assert report.succeeded is True
    assert backend.calls == []


@pytest.mark.asyncio
async def test_invalid_ids_fail_without_network(backend, settings):
    reconciler = RelationReconciler(backend, settings=settings)

    bad_owner = await reconciler.create_all(0, [1, 2])
    assert bad_owner.failure_count == 2
    assert backend.calls == []

    bad_member = await reconciler.create_all(7, [1, -3, 2])
    assert bad_member.failure_count == 1
    assert bad_member.per_item_errors[0].member_id == -3
    assert backend.calls_named("create") == [("create", 7, 1), ("create", 7, 2)]


@pytest.mark.asyncio
async def test_bounded_concurrency_keeps_errors_in_input_order(backend, settings):
    in_flight = 0
    peak = 0
    real_create = backend.create_relation

    async def slow_create(request):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # Los primeros terminan últimos.
        await asyncio.sleep(0.01 * (10 - request.member_id))
        in_flight -= 1
        return await real_create(request)

    backend.create_relation = slow_create
    backend.create_failures = {2: BackendError("dos"), 5: BackendError("cinco")}

    report = await RelationReconciler(backend, settings=settings, max_concurrency=3).create_all(
        1, [1, 2, 3, 4, 5, 6]
    )

    assert peak <= 3
    assert report.success_count == 4
    assert [e.member_id for e in report.per_item_errors] == [2, 5]


@pytest.mark.asyncio
async def test_replace_all_deletes_existing_then_creates(backend, settings):
    backend.relations = [
        RelationRecord(id=1, owner_id=7, member_id=50),
        RelationRecord(id=2, owner_id=7, member_id=51),
        RelationRecord(id=3, owner_id=8, member_id=50),
    ]

    report = await RelationReconciler(backend, settings=settings).replace_all(7, [60, 61])

    assert report.succeeded is True
    assert report.warnings == []
    assert [c for c in backend.calls if c[0] != "list"] == [
        ("delete", 1),
        ("delete", 2),
        ("create", 7, 60),
        ("create", 7, 61),
    ]


@pytest.mark.asyncio
async def test_replace_all_delete_failures_are_warnings_not_failures(backend, settings):
    backend.relations = [
        RelationRecord(id=1, owner_id=7, member_id=50),
        RelationRecord(id=2, owner_id=7, member_id=51),
    ]
    backend.delete_failures = {2}

    report = await RelationReconciler(backend, settings=settings).replace_all(7, [60])

    assert report.succeeded is True
    assert report.failure_count == 0
    assert len(report.warnings) == 1
    assert "2" in report.warnings[0]
    assert len(backend.calls_named("create")) == 1


@pytest.mark.asyncio
async def test_replace_all_still_creates_when_listing_fails(backend, settings):
    backend.list_error = BackendError("Error 500: Internal Server Error", status_code=500)
    backend.create_failures[61] = BackendError("inválido", status_code=400)

    report = await RelationReconciler(backend, settings=settings).replace_all(7, [60, 61])

    assert backend.calls_named("delete") == []
    assert report.success_count == 1
    assert report.failure_count == 1
    assert len(report.warnings) == 1


@pytest.mark.asyncio
async def test_current_member_ids(backend, settings):
    backend.relations = [
        RelationRecord(id=1, owner_id=7, member_id=50),
        RelationRecord(id=2, owner_id=7, member_id=51),
    ]
    reconciler = RelationReconciler(backend, settings=settings)

    assert await reconciler.current_member_ids(7) == [50, 51]

    backend.list_error = BackendUnavailableError("ConnectError")
    assert await reconciler.current_member_ids(7) == []
