import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from core.exceptions import IllegalStateTransition, NotFound
from core.models import NumberSeries
from core.transitions import run_transition
from masterdata.services import ensure_same_entity, get_or_create_transporter
from shipping.models import ProductShipment

logger = logging.getLogger(__name__)

State = ProductShipment.State

TRANSITIONS = {
    State.COMPLETED: "complete",
    State.CANCELLED: "cancel",
}


def get_shipment(entity, shipment_id, *, lock=False) -> ProductShipment:
    qs = ProductShipment.objects.all()
    if not lock:
        qs = qs.select_related("buyer", "material", "transporter", "tank")
    else:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=shipment_id, entity=entity)
    except (ProductShipment.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Shipment {shipment_id} not found.")


def _resolve_transporter(entity, cleaned):
    if cleaned.get("transporter"):
        return cleaned["transporter"]
    return get_or_create_transporter(entity, cleaned["vehicle_plate"], cleaned.get("driver_name") or "")


@transaction.atomic
def record_shipment(entity, form, *, operator_name="", by=None) -> ProductShipment:
    """Save a validated ProductShipmentForm; DO and seal numbers come from their monthly series."""
    cleaned = form.cleaned_data
    shipment = form.save(commit=False)
    shipment.entity = entity
    ensure_same_entity(entity, shipment.buyer, shipment.material, shipment.tank)
    shipment.transporter = _resolve_transporter(entity, cleaned)
    shipment.number = NumberSeries.allocate_monthly(entity, "DO", on_date=shipment.shipped_on, min_width=5)
    shipment.seal_number = NumberSeries.allocate_monthly(entity, "SEG", on_date=shipment.shipped_on, min_width=5)
    shipment.operator_name = operator_name or ""
    shipment.save()

    logger.info("Shipment %s recorded: %s kg %s to %s", shipment.number, shipment.net_weight,
                shipment.material.code, shipment.buyer.code)

    if cleaned.get("state") == State.COMPLETED:
        run_transition(shipment, TRANSITIONS, State.COMPLETED, by=by, label="Shipment")
    return shipment


@transaction.atomic
def update_shipment(entity, shipment_id, form_class, data) -> ProductShipment:
    shipment = get_shipment(entity, shipment_id, lock=True)
    if shipment.state != State.DRAFT:
        raise IllegalStateTransition(f"Shipment {shipment.number} is {shipment.state}; only drafts can be edited.")

    form = form_class(data, instance=shipment, entity=entity)
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    shipment = form.save(commit=False)
    shipment.transporter = _resolve_transporter(entity, form.cleaned_data)
    shipment.save()
    return shipment


@transaction.atomic
def change_state(entity, shipment_id, target_state, by=None) -> ProductShipment:
    shipment = get_shipment(entity, shipment_id, lock=True)
    return run_transition(shipment, TRANSITIONS, target_state, by=by, label="Shipment")


@transaction.atomic
def delete_shipment(entity, shipment_id) -> str:
    shipment = get_shipment(entity, shipment_id, lock=True)
    if shipment.state != State.DRAFT:
        raise IllegalStateTransition(f"Shipment {shipment.number} is {shipment.state}; only drafts can be deleted.")
    number = shipment.number
    shipment.delete()
    logger.info("Shipment %s deleted", number)
    return number


def shipment_statistics(entity, material=None):
    """Completed shipments: count and net weight today, this month and per buyer."""
    today = timezone.localdate()
    completed = ProductShipment.objects.filter(entity=entity, state=State.COMPLETED)
    if material is not None:
        ensure_same_entity(entity, material)
        completed = completed.filter(material=material)

    def totals(qs):
        row = qs.aggregate(count=Count("id"), net=Sum("net_weight"))
        return {"count": row["count"], "net_weight": row["net"] or Decimal("0.000")}

    by_buyer = (completed
                .values("buyer_id", "buyer__code", "buyer__name")
                .annotate(shipment_count=Count("id"), total_net_weight=Sum("net_weight"))
                .order_by("-total_net_weight"))

    return {
        "total": totals(completed),
        "today": totals(completed.filter(shipped_on=today)),
        "this_month": totals(completed.filter(shipped_on__year=today.year, shipped_on__month=today.month)),
        "by_buyer": [
            {
                "buyer_id": row["buyer_id"],
                "buyer_code": row["buyer__code"],
                "buyer_name": row["buyer__name"],
                "shipment_count": row["shipment_count"],
                "total_net_weight": row["total_net_weight"],
            }
            for row in by_buyer
        ],
    }
