import logging
from collections import OrderedDict

from django.core.exceptions import ValidationError
from django.db import transaction

from core.exceptions import IllegalStateTransition, NotFound
from core.models import NumberSeries
from core.transitions import run_transition
from inventory.models import ZERO, StockBalance
from masterdata.services import ensure_same_entity
from warehouse.models import StoreRequest

logger = logging.getLogger(__name__)

State = StoreRequest.State

# COMPLETED is reached only by issuing the goods (see goods_issues)
TRANSITIONS = {
    State.PENDING: "submit",
    State.APPROVED: "approve",
    State.REJECTED: "reject",
    State.NEED_PR: "need_purchase",
}


def get_request(entity, request_id, *, lock=False) -> StoreRequest:
    qs = StoreRequest.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=request_id, entity=entity)
    except (StoreRequest.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Store request {request_id} not found.")


def _write_lines(store_request, lines):
    for line in lines:
        ensure_same_entity(store_request.entity, line.material)
        line.request = store_request
        line.save()


@transaction.atomic
def record_request(entity, form, lines, *, operator_name="") -> StoreRequest:
    store_request = form.save(commit=False)
    store_request.entity = entity
    store_request.number = NumberSeries.allocate_monthly(entity, "SR", on_date=store_request.requested_on)
    store_request.operator_name = operator_name or ""
    store_request.save()
    _write_lines(store_request, lines)

    logger.info("Store request %s recorded for %s", store_request.number, store_request.division)
    return store_request


@transaction.atomic
def update_request(entity, request_id, form_class, data, lines=None) -> StoreRequest:
    store_request = get_request(entity, request_id, lock=True)
    if store_request.state != State.DRAFT:
        raise IllegalStateTransition(
            f"Store request {store_request.number} is {store_request.state}; only drafts can be edited."
        )

    form = form_class(data, instance=store_request, entity=entity)
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    store_request = form.save()
    if lines is not None:
        store_request.lines.all().delete()
        _write_lines(store_request, lines)
    return store_request


@transaction.atomic
def change_state(entity, request_id, target_state, *, approved_by="", by=None) -> StoreRequest:
    store_request = get_request(entity, request_id, lock=True)
    if target_state == State.APPROVED:
        store_request.approved_by = approved_by or ""
    return run_transition(store_request, TRANSITIONS, target_state, by=by, label="Store request")


@transaction.atomic
def delete_request(entity, request_id) -> str:
    store_request = get_request(entity, request_id, lock=True)
    if store_request.state != State.DRAFT:
        raise IllegalStateTransition(
            f"Store request {store_request.number} is {store_request.state}; only drafts can be deleted."
        )
    number = store_request.number
    store_request.delete()
    logger.info("Store request %s deleted", number)
    return number


def requested_totals(lines):
    """[(material, total quantity)] in first-seen order; repeated materials are summed."""
    totals = OrderedDict()
    for line in lines:
        material, quantity = totals.get(line.material_id, (line.material, ZERO))
        totals[line.material_id] = (material, quantity + line.quantity)
    return list(totals.values())


def stock_check(entity, lines):
    """Per material: requested quantity, stock on hand and whether it is enough."""
    totals = requested_totals(lines)
    on_hand = dict(
        StockBalance.objects
        .filter(entity=entity, material_id__in=[m.pk for m, _ in totals])
        .values_list("material_id", "quantity_on_hand")
    )
    rows = []
    for material, requested in totals:
        stock = on_hand.get(material.pk, ZERO)
        rows.append({
            "material": material,
            "requested": requested,
            "stock_on_hand": stock,
            "sufficient": stock >= requested,
        })
    return rows


def check_stock(entity, request_id):
    store_request = get_request(entity, request_id)
    rows = stock_check(entity, store_request.lines.select_related("material", "material__unit"))
    return {
        "store_request": store_request,
        "items": rows,
        "all_sufficient": all(r["sufficient"] for r in rows),
    }
