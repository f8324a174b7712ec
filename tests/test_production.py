import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone
from django_fsm_log.models import StateLog

from core.exceptions import IllegalStateTransition, InsufficientStock
from inventory.models import StockMovement
from inventory.services.ledger import apply_movement, get_balance
from production import services
from production.models import ProductionBatch, ProductionYield, compute_yield

State = ProductionBatch.State


def _state(batch):
    return ProductionBatch.objects.get(pk=batch.pk).state


@pytest.mark.parametrize("output,input_qty,expected", [
    ("220", "1000", "22.00"),
    ("1", "3", "33.33"),
    ("2", "3", "66.67"),
    ("0.125", "1", "12.50"),
    ("1000", "1000", "100.00"),
])
def test_compute_yield(output, input_qty, expected):
    assert compute_yield(Decimal(output), Decimal(input_qty)) == Decimal(expected)


def test_record_batch_computes_yield(entity, tbs, cpo):
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))], operator_name="Budi")

    assert batch.state == State.DRAFT
    assert batch.number.startswith(f"PROD-{timezone.localdate():%Y%m}-")
    out = ProductionYield.objects.get(batch=batch)
    assert out.yield_percentage == Decimal("22.00")


def test_batch_numbers_are_sequential(entity, tbs, cpo):
    first = services.record_batch(entity, tbs, Decimal("10"), [(cpo, Decimal("2"))])
    second = services.record_batch(entity, tbs, Decimal("10"), [(cpo, Decimal("2"))])

    assert first.number.endswith("-0001")
    assert second.number.endswith("-0002")


def test_complete_moves_stock(entity, tbs, cpo, stock):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    services.change_state(entity, batch.pk, State.COMPLETED)

    assert _state(batch) == State.COMPLETED
    assert get_balance(entity, tbs) == Decimal("0")
    assert get_balance(entity, cpo) == Decimal("220")
    refs = set(StockMovement.objects.filter(reference=batch.number).values_list("material__code", flat=True))
    assert refs == {"TBS-001", "CPO-001"}
    assert ProductionBatch.objects.get(pk=batch.pk).completed_at is not None


def test_complete_with_insufficient_input(entity, tbs, cpo, stock):
    stock(tbs, 500)
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    with pytest.raises(InsufficientStock):
        services.change_state(entity, batch.pk, State.COMPLETED)

    assert _state(batch) == State.DRAFT
    assert get_balance(entity, tbs) == Decimal("500")
    assert get_balance(entity, cpo) == Decimal("0")


def test_record_completed_batch_rolls_back_on_shortage(entity, tbs, cpo, stock):
    stock(tbs, 10)
    with pytest.raises(InsufficientStock):
        services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))], state=State.COMPLETED)

    assert ProductionBatch.objects.count() == 0
    assert get_balance(entity, tbs) == Decimal("10")


def test_record_completed_batch(entity, tbs, cpo, kernel, stock):
    stock(tbs, 2000)
    batch = services.record_batch(
        entity, tbs, Decimal("1000"),
        [(cpo, Decimal("215.5")), (kernel, Decimal("48"))],
        state=State.COMPLETED,
    )

    assert batch.state == State.COMPLETED
    assert get_balance(entity, tbs) == Decimal("1000")
    assert get_balance(entity, cpo) == Decimal("215.5")
    assert get_balance(entity, kernel) == Decimal("48")


def test_complete_then_cancel_restores_balances(entity, tbs, cpo, kernel, stock):
    stock(tbs, 1500)
    stock(cpo, 40)
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220")), (kernel, Decimal("50"))])

    services.change_state(entity, batch.pk, State.COMPLETED)
    services.change_state(entity, batch.pk, State.CANCELLED)

    assert _state(batch) == State.CANCELLED
    assert get_balance(entity, tbs) == Decimal("1500")
    assert get_balance(entity, cpo) == Decimal("40")
    assert get_balance(entity, kernel) == Decimal("0")


def test_cancel_with_outputs_already_sold_rolls_back(entity, tbs, cpo, kernel, stock):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220")), (kernel, Decimal("50"))],
                                  state=State.COMPLETED)
    apply_movement(entity, cpo, Decimal("-100"), reference="DO-001")
    movements = StockMovement.objects.count()

    with pytest.raises(InsufficientStock):
        services.change_state(entity, batch.pk, State.CANCELLED)

    # the input was booked back before the CPO shortage; that IN must be undone too
    assert _state(batch) == State.COMPLETED
    assert get_balance(entity, tbs) == Decimal("0")
    assert get_balance(entity, cpo) == Decimal("120")
    assert get_balance(entity, kernel) == Decimal("50")
    assert StockMovement.objects.count() == movements


def test_cancel_without_completion_does_not_touch_stock(entity, tbs, cpo, stock):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])
    movements = StockMovement.objects.count()

    services.change_state(entity, batch.pk, State.IN_PROGRESS)
    services.change_state(entity, batch.pk, State.CANCELLED)

    assert StockMovement.objects.count() == movements
    assert get_balance(entity, tbs) == Decimal("1000")


def test_cancelled_batch_can_be_completed_again(entity, tbs, cpo, stock):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("600"), [(cpo, Decimal("130"))])

    services.change_state(entity, batch.pk, State.COMPLETED)
    services.change_state(entity, batch.pk, State.CANCELLED)
    services.change_state(entity, batch.pk, State.COMPLETED)

    assert get_balance(entity, tbs) == Decimal("400")
    assert get_balance(entity, cpo) == Decimal("130")


@pytest.mark.parametrize("path", [
    [State.COMPLETED, State.COMPLETED],
    [State.COMPLETED, State.DRAFT],
    [State.COMPLETED, State.IN_PROGRESS],
    [State.CANCELLED, State.IN_PROGRESS],
    [State.DRAFT],
])
def test_illegal_transitions(entity, tbs, cpo, stock, path):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("100"), [(cpo, Decimal("20"))])

    *setup, illegal = path
    for target in setup:
        services.change_state(entity, batch.pk, target)

    with pytest.raises(IllegalStateTransition):
        services.change_state(entity, batch.pk, illegal)


def test_completed_batch_cannot_be_edited_or_deleted(entity, tbs, cpo, stock):
    stock(tbs, 1000)
    batch = services.record_batch(entity, tbs, Decimal("100"), [(cpo, Decimal("20"))], state=State.COMPLETED)

    with pytest.raises(IllegalStateTransition):
        services.update_batch(entity, batch.pk, input_quantity=Decimal("200"))
    with pytest.raises(IllegalStateTransition):
        services.delete_batch(entity, batch.pk)
    assert ProductionBatch.objects.filter(pk=batch.pk).exists()


def test_update_replaces_outputs_and_recomputes_yield(entity, tbs, cpo, kernel):
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    services.update_batch(entity, batch.pk, input_quantity=Decimal("800"),
                          outputs=[(cpo, Decimal("200")), (kernel, Decimal("40"))])

    yields = {o.output_material.code: o.yield_percentage for o in ProductionYield.objects.filter(batch=batch)}
    assert yields == {"CPO-001": Decimal("25.00"), "KER-001": Decimal("5.00")}


def test_update_input_only_recomputes_yield(entity, tbs, cpo):
    batch = services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    services.update_batch(entity, batch.pk, input_quantity=Decimal("440"))

    assert ProductionYield.objects.get(batch=batch).yield_percentage == Decimal("50.00")


def test_delete_draft_batch(entity, tbs, cpo):
    batch = services.record_batch(entity, tbs, Decimal("10"), [(cpo, Decimal("2"))])
    services.delete_batch(entity, batch.pk)
    assert not ProductionBatch.objects.exists()
    assert not ProductionYield.objects.exists()


@pytest.mark.parametrize("input_qty,outputs", [
    ("0", [("cpo", "1")]),
    ("100", []),
    ("100", [("cpo", "0")]),
    ("100", [("cpo", "100.5")]),
])
def test_record_batch_validation(entity, tbs, cpo, input_qty, outputs):
    materials = {"cpo": cpo}
    with pytest.raises(ValidationError):
        services.record_batch(entity, tbs, Decimal(input_qty), [(materials[m], Decimal(q)) for m, q in outputs])
    assert not ProductionBatch.objects.exists()


def test_transitions_are_logged(entity, tbs, cpo, stock, user):
    stock(tbs, 100)
    batch = services.record_batch(entity, tbs, Decimal("100"), [(cpo, Decimal("20"))])

    services.change_state(entity, batch.pk, State.IN_PROGRESS, by=user)
    services.change_state(entity, batch.pk, State.COMPLETED, by=user)

    logs = StateLog.objects.for_(ProductionBatch.objects.get(pk=batch.pk)).order_by("timestamp", "id")
    assert [log.state for log in logs] == [State.IN_PROGRESS, State.COMPLETED]
    assert all(log.by == user for log in logs)


def test_daily_report(entity, tbs, cpo, kernel, stock):
    stock(tbs, 5000)
    day = datetime.date(2026, 10, 1)
    services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220")), (kernel, Decimal("50"))],
                          production_date=day, state=State.COMPLETED)
    services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("200"))],
                          production_date=day, state=State.COMPLETED)
    services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("999"))], production_date=day)
    services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("210"))],
                          production_date=datetime.date(2026, 9, 30), state=State.COMPLETED)

    report = services.daily_report(entity, day, day)

    assert report["batch_count"] == 2
    assert report["total_input"] == Decimal("2000")
    assert report["by_input_material"][0]["total_input"] == Decimal("2000")
    outputs = {row["material_id"]: row for row in report["by_output_material"]}
    assert outputs[cpo.id]["total_output"] == Decimal("420")
    assert outputs[cpo.id]["average_yield"] == Decimal("21.00")
    assert outputs[kernel.id]["count"] == 1


def test_output_categories_exclude_fruit(entity, categories):
    names = {c.name for c in services.output_categories(entity)}
    assert names == {"CPO", "Kernel"}


def test_input_stock_lists_tbs_materials(entity, tbs, cpo, stock):
    stock(tbs, 750)
    rows = services.input_stock(entity)
    assert [(m.code, qty) for m, qty in rows] == [("TBS-001", Decimal("750"))]
