import datetime
from decimal import Decimal

import pytest
from django.contrib import admin
from django.contrib.messages.storage.fallback import FallbackStorage
from django.core.exceptions import PermissionDenied

from inventory.admin import TankAdmin
from inventory.models import Tank
from inventory.services.tanks import add_to_tank
from masterdata.models import Supplier
from production import services as production_services
from production.admin import ProductionBatchAdmin
from production.models import ProductionBatch
from receiving import services as receiving_services
from receiving.admin import TbsReceiptAdmin
from receiving.forms import TbsReceiptForm
from receiving.models import TbsReceipt
from warehouse.admin import StoreRequestAdmin, StoreRequestLineInline
from warehouse.forms import StoreRequestForm, StoreRequestLineForm, clean_lines
from warehouse.models import StoreRequest
from warehouse.services import store_requests


@pytest.fixture
def admin_request(rf, admin_user):
    request = rf.post("/admin/")
    request.user = admin_user
    request.session = {}
    request._messages = FallbackStorage(request)
    return request


def _messages(request):
    return [str(m) for m in request._messages]


def _form_fields(model_admin, request, obj=None):
    return set(model_admin.get_form(request, obj).base_fields)


@pytest.fixture
def receipt(entity, tbs):
    supplier = Supplier.objects.create(entity=entity, code="SUP-0001", name="KUD Makmur")
    form = TbsReceiptForm({
        "material": tbs.pk,
        "supplier": supplier.pk,
        "vehicle_plate": "BK 1 AA",
        "gross_weight": "10000",
        "tare_weight": "4000",
    }, entity=entity)
    assert form.is_valid(), form.errors
    return receiving_services.record_receipt(entity, form)


# --- tanks ---

def test_tank_entity_and_material_fixed_after_creation(admin_request, cpo, make_tank):
    ma = TankAdmin(Tank, admin.site)
    tank = make_tank("Tangki A", cpo, 1000)

    assert {"entity", "material", "capacity"} <= _form_fields(ma, admin_request)
    fields = _form_fields(ma, admin_request, tank)
    assert "entity" not in fields
    assert "material" not in fields
    assert "current_volume" not in fields


def test_tank_admin_save_keeps_volume_moved_meanwhile(entity, admin_request, cpo, stock, make_tank):
    ma = TankAdmin(Tank, admin.site)
    stock(cpo, 1000)
    tank = make_tank("Tangki A", cpo, 1000, volume=100)
    stale = Tank.objects.get(pk=tank.pk)

    form = ma.get_form(admin_request, stale)({"name": "Tangki Utama", "capacity": "1200"}, instance=stale)
    assert form.is_valid(), form.errors
    add_to_tank(entity, tank.pk, Decimal("50"))
    ma.save_model(admin_request, form.save(commit=False), form, change=True)

    fresh = Tank.objects.get(pk=tank.pk)
    assert fresh.current_volume == Decimal("150")
    assert fresh.name == "Tangki Utama"
    assert sum(m.signed_quantity for m in fresh.movements.all()) == fresh.current_volume


def test_tank_admin_form_checks_capacity(entity, admin_request, cpo, stock, make_tank):
    ma = TankAdmin(Tank, admin.site)
    stock(cpo, 1000)
    tank = make_tank("Tangki A", cpo, 1000, volume=600)

    form = ma.get_form(admin_request, tank)({"name": "Tangki A", "capacity": "500"}, instance=tank)
    assert not form.is_valid()
    assert "capacity" in form.errors

    form = ma.get_form(admin_request)({"entity": entity.pk, "material": cpo.pk, "name": "Tangki B", "capacity": "0"})
    assert not form.is_valid()
    assert "capacity" in form.errors


# --- documents ---

def test_completed_receipt_is_read_only(admin_request, receipt):
    ma = TbsReceiptAdmin(TbsReceipt, admin.site)

    draft_fields = _form_fields(ma, admin_request, receipt)
    assert {"gross_weight", "tare_weight", "material", "supplier"} <= draft_fields
    assert "entity" not in draft_fields
    assert ma.has_delete_permission(admin_request, receipt)

    ma.complete_action(admin_request, receipt)
    receipt = TbsReceipt.objects.get(pk=receipt.pk)
    assert receipt.state == TbsReceipt.State.COMPLETED

    assert _form_fields(ma, admin_request, receipt) == set()
    assert not ma.has_delete_permission(admin_request, receipt)


def test_admin_save_does_not_overwrite_a_newer_state(entity, admin_request, tbs, cpo, stock):
    ma = ProductionBatchAdmin(ProductionBatch, admin.site)
    stock(tbs, 1000)
    batch = production_services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])
    stale = ProductionBatch.objects.get(pk=batch.pk)

    form = ma.get_form(admin_request, stale)(
        {"production_date": "2026-10-01", "operator_name": "Ani"}, instance=stale
    )
    assert form.is_valid(), form.errors
    production_services.change_state(entity, batch.pk, ProductionBatch.State.COMPLETED)

    with pytest.raises(PermissionDenied):
        ma.save_model(admin_request, form.save(commit=False), form, change=True)
    assert ProductionBatch.objects.get(pk=batch.pk).state == ProductionBatch.State.COMPLETED


def test_admin_save_of_draft_writes_only_changed_fields(entity, admin_request, tbs, cpo):
    ma = ProductionBatchAdmin(ProductionBatch, admin.site)
    batch = production_services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    form = ma.get_form(admin_request, batch)(
        {"production_date": "2026-10-01", "operator_name": "Ani"}, instance=batch
    )
    assert form.is_valid(), form.errors
    ma.save_model(admin_request, form.save(commit=False), form, change=True)

    fresh = ProductionBatch.objects.get(pk=batch.pk)
    assert fresh.production_date == datetime.date(2026, 10, 1)
    assert fresh.operator_name == "Ani"
    assert fresh.state == ProductionBatch.State.DRAFT


def test_admin_actions_report_errors(entity, admin_request, tbs, cpo, stock):
    ma = ProductionBatchAdmin(ProductionBatch, admin.site)
    batch = production_services.record_batch(entity, tbs, Decimal("1000"), [(cpo, Decimal("220"))])

    ma.complete_action(admin_request, batch)
    assert ProductionBatch.objects.get(pk=batch.pk).state == ProductionBatch.State.DRAFT
    assert any("Could not change state" in m for m in _messages(admin_request))

    stock(tbs, 1000)
    ma.complete_action(admin_request, batch)
    batch = ProductionBatch.objects.get(pk=batch.pk)
    assert batch.state == ProductionBatch.State.COMPLETED
    assert not ma.has_delete_permission(admin_request, batch)
    assert "production_date" not in _form_fields(ma, admin_request, batch)


def test_store_request_admin_buttons_follow_the_state(entity, admin_request, cpo):
    form = StoreRequestForm({"division": "Boiler", "requested_by": "Tono"}, entity=entity)
    assert form.is_valid(), form.errors
    lines = clean_lines([{"material": cpo.pk, "quantity": "2"}], StoreRequestLineForm, entity)
    sr = store_requests.record_request(entity, form, lines)

    ma = StoreRequestAdmin(StoreRequest, admin.site)
    inline = StoreRequestLineInline(StoreRequest, admin.site)
    assert ma.get_change_actions(admin_request, str(sr.pk), "") == ("submit_action",)
    assert inline.has_change_permission(admin_request, sr)

    ma.submit_action(admin_request, sr)
    sr = StoreRequest.objects.get(pk=sr.pk)
    assert ma.get_change_actions(admin_request, str(sr.pk), "") == ("approve_action", "reject_action")
    assert not inline.has_change_permission(admin_request, sr)
    assert not ma.has_delete_permission(admin_request, sr)

    ma.approve_action(admin_request, sr)
    sr = StoreRequest.objects.get(pk=sr.pk)
    assert sr.state == StoreRequest.State.APPROVED
    assert sr.approved_by == admin_request.user.get_username()
    assert ma.get_change_actions(admin_request, str(sr.pk), "") == ()
