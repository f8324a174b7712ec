from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from core.exceptions import IllegalStateTransition, InsufficientStock
from inventory.services.ledger import apply_movement, get_balance
from masterdata.models import Supplier, Transporter
from receiving import services
from receiving.forms import TbsReceiptForm
from receiving.models import TbsReceipt

State = TbsReceipt.State


@pytest.fixture
def supplier(entity):
    return Supplier.objects.create(entity=entity, code="SUP-0001", name="KUD Makmur",
                                   supplier_type=Supplier.SupplierType.KUD)


def _ticket(tbs, supplier, **overrides):
    data = {
        "material": tbs.pk,
        "supplier": supplier.pk,
        "vehicle_plate": "bk 1234  abc",
        "driver_name": "Joko",
        "fruit_grade": TbsReceipt.FruitGrade.BS,
        "gross_weight": "12500",
        "tare_weight": "4500",
        "deduction_percent": "2.5",
        "price_per_kg": "2850",
    }
    data.update(overrides)
    return data


def _record(entity, data):
    form = TbsReceiptForm(data, entity=entity)
    assert form.is_valid(), form.errors
    return services.record_receipt(entity, form, operator_name="Budi")


def test_weights_are_derived(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier))

    assert receipt.net_weight == Decimal("8000")
    assert receipt.deduction_kg == Decimal("200")
    assert receipt.net_weight_after_deduction == Decimal("7800")
    assert receipt.total_payment == Decimal("22230000.00")
    assert receipt.state == State.DRAFT
    assert receipt.number.endswith("-00001")
    assert receipt.number.startswith("TBS-")


def test_new_plate_creates_transporter_once(entity, tbs, supplier):
    first = _record(entity, _ticket(tbs, supplier))
    second = _record(entity, _ticket(tbs, supplier, vehicle_plate="BK 1234 ABC"))

    assert first.transporter_id == second.transporter_id
    assert Transporter.objects.get(pk=first.transporter_id).vehicle_plate == "BK 1234 ABC"


def test_gross_below_tare_is_invalid(entity, tbs, supplier):
    form = TbsReceiptForm(_ticket(tbs, supplier, gross_weight="100", tare_weight="200"), entity=entity)
    assert not form.is_valid()
    assert "gross_weight" in form.errors


def test_transporter_or_plate_required(entity, tbs, supplier):
    form = TbsReceiptForm(_ticket(tbs, supplier, vehicle_plate=""), entity=entity)
    assert not form.is_valid()
    assert "transporter" in form.errors


def test_deduction_over_100_percent_is_invalid(entity, tbs, supplier):
    form = TbsReceiptForm(_ticket(tbs, supplier, deduction_percent="101"), entity=entity)
    assert not form.is_valid()
    assert "deduction_percent" in form.errors


@pytest.mark.parametrize("overrides", [
    {"gross_weight": "4500", "tare_weight": "4500"},
    {"deduction_percent": "100"},
    {"gross_weight": "4500.001", "tare_weight": "4500", "deduction_percent": "50"},
])
def test_ticket_without_net_weight_is_invalid(entity, tbs, supplier, overrides):
    form = TbsReceiptForm(_ticket(tbs, supplier, **overrides), entity=entity)
    assert not form.is_valid()
    assert "Net weight after deduction must be greater than zero." in form.non_field_errors()


def test_draft_cannot_be_edited_to_zero_net_weight(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier))

    with pytest.raises(ValidationError):
        services.update_receipt(entity, receipt.pk, TbsReceiptForm, _ticket(tbs, supplier, deduction_percent="100"))
    assert TbsReceipt.objects.get(pk=receipt.pk).net_weight_after_deduction == Decimal("7800")


def test_complete_books_stock_and_cancel_reverses(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier))

    services.change_state(entity, receipt.pk, State.COMPLETED)
    assert get_balance(entity, tbs) == Decimal("7800")

    services.change_state(entity, receipt.pk, State.CANCELLED)
    assert get_balance(entity, tbs) == Decimal("0")
    assert TbsReceipt.objects.get(pk=receipt.pk).state == State.CANCELLED


def test_record_as_completed(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier, state=State.COMPLETED))

    assert receipt.state == State.COMPLETED
    assert get_balance(entity, tbs) == Decimal("7800")


def test_cancel_fails_when_fruit_already_processed(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier, state=State.COMPLETED))
    apply_movement(entity, tbs, Decimal("-7000"), reference="PROD-202610-0001")

    with pytest.raises(InsufficientStock):
        services.change_state(entity, receipt.pk, State.CANCELLED)
    assert TbsReceipt.objects.get(pk=receipt.pk).state == State.COMPLETED


def test_only_drafts_can_be_edited_or_deleted(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier, state=State.COMPLETED))

    with pytest.raises(IllegalStateTransition):
        services.update_receipt(entity, receipt.pk, TbsReceiptForm, _ticket(tbs, supplier))
    with pytest.raises(IllegalStateTransition):
        services.delete_receipt(entity, receipt.pk)


def test_update_draft_recalculates(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier))

    updated = services.update_receipt(entity, receipt.pk, TbsReceiptForm,
                                      _ticket(tbs, supplier, deduction_percent="0"))

    assert updated.net_weight_after_deduction == Decimal("8000")
    assert updated.total_payment == Decimal("22800000.00")


def test_completed_receipt_cannot_go_back_to_draft(entity, tbs, supplier):
    receipt = _record(entity, _ticket(tbs, supplier, state=State.COMPLETED))
    with pytest.raises(IllegalStateTransition):
        services.change_state(entity, receipt.pk, State.DRAFT)


def test_statistics(entity, tbs, supplier):
    _record(entity, _ticket(tbs, supplier, state=State.COMPLETED))
    _record(entity, _ticket(tbs, supplier, gross_weight="9000", deduction_percent="0", state=State.COMPLETED))
    _record(entity, _ticket(tbs, supplier))  # draft, not counted

    stats = services.tbs_statistics(entity, tbs)

    assert stats["received_today"] == Decimal("12300")
    assert stats["received_this_month"] == Decimal("12300")
    assert stats["current_stock"] == Decimal("12300")
    assert stats["by_supplier"][0]["supplier_code"] == "SUP-0001"
    assert stats["by_supplier"][0]["receipt_count"] == 2
