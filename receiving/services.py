import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from django_fsm import can_proceed

from core.exceptions import IllegalStateTransition, NotFound
from core.models import NumberSeries
from inventory.services.ledger import get_balance
from masterdata.services import ensure_same_entity, get_or_create_transporter
from receiving.models import TbsReceipt

logger = logging.getLogger(__name__)

State = TbsReceipt.State


def get_receipt(entity, receipt_id, *, lock=False) -> TbsReceipt:
    qs = TbsReceipt.objects.select_related("material", "supplier", "transporter")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=receipt_id, entity=entity)
    except (TbsReceipt.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"TBS receipt {receipt_id} not found.")


def _resolve_transporter(entity, cleaned):
    if cleaned.get("transporter"):
        return cleaned["transporter"]
    return get_or_create_transporter(entity, cleaned["vehicle_plate"], cleaned.get("driver_name") or "")


def _transition(receipt, target_state, by=None):
    method = {State.COMPLETED: receipt.complete, State.CANCELLED: receipt.cancel}.get(target_state)
    if method is None:
        raise IllegalStateTransition(f"Receipt {receipt.number} cannot go back to {target_state}.")
    if not can_proceed(method):
        raise IllegalStateTransition(f"Receipt {receipt.number} cannot go from {receipt.state} to {target_state}.")
    method(by=by)
    receipt.save()
    logger.info("TBS receipt %s -> %s", receipt.number, receipt.state)


@transaction.atomic
def record_receipt(entity, form, *, operator_name="", by=None) -> TbsReceipt:
    """Save a validated TbsReceiptForm; completes it right away when state=COMPLETED was posted."""
    cleaned = form.cleaned_data
    receipt = form.save(commit=False)
    receipt.entity = entity
    ensure_same_entity(entity, receipt.material, receipt.supplier)
    receipt.transporter = _resolve_transporter(entity, cleaned)
    receipt.number = NumberSeries.allocate_monthly(entity, "TBS", min_width=5)
    receipt.operator_name = operator_name or ""
    receipt.save()

    logger.info("TBS receipt %s recorded: %s kg from %s", receipt.number,
                receipt.net_weight_after_deduction, receipt.supplier.code)

    if cleaned.get("state") == State.COMPLETED:
        _transition(receipt, State.COMPLETED, by=by)
    return receipt


@transaction.atomic
def update_receipt(entity, receipt_id, form_class, data) -> TbsReceipt:
    receipt = get_receipt(entity, receipt_id, lock=True)
    if receipt.state != State.DRAFT:
        raise IllegalStateTransition(f"Receipt {receipt.number} is {receipt.state}; only drafts can be edited.")

    form = form_class(data, instance=receipt, entity=entity)
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    receipt = form.save(commit=False)
    receipt.transporter = _resolve_transporter(entity, form.cleaned_data)
    receipt.save()
    return receipt


@transaction.atomic
def change_state(entity, receipt_id, target_state, by=None) -> TbsReceipt:
    receipt = get_receipt(entity, receipt_id, lock=True)
    _transition(receipt, target_state, by=by)
    return receipt


@transaction.atomic
def delete_receipt(entity, receipt_id) -> str:
    receipt = get_receipt(entity, receipt_id, lock=True)
    if receipt.state != State.DRAFT:
        raise IllegalStateTransition(f"Receipt {receipt.number} is {receipt.state}; only drafts can be deleted.")
    number = receipt.number
    receipt.delete()
    logger.info("TBS receipt %s deleted", number)
    return number


def tbs_statistics(entity, material):
    """Received today / this month (completed tickets), stock on hand and totals per supplier."""
    ensure_same_entity(entity, material)
    today = timezone.localdate()
    completed = TbsReceipt.objects.filter(entity=entity, material=material, state=State.COMPLETED)

    def total(qs):
        return qs.aggregate(s=Sum("net_weight_after_deduction"))["s"] or Decimal("0.000")

    by_supplier = (completed
                   .values("supplier_id", "supplier__code", "supplier__name")
                   .annotate(total_weight=Sum("net_weight_after_deduction"),
                             total_payment=Sum("total_payment"),
                             receipt_count=Count("id"))
                   .order_by("-total_weight"))

    return {
        "received_today": total(completed.filter(received_on=today)),
        "received_this_month": total(completed.filter(received_on__year=today.year, received_on__month=today.month)),
        "current_stock": get_balance(entity, material),
        "by_supplier": [
            {
                "supplier_id": row["supplier_id"],
                "supplier_code": row["supplier__code"],
                "supplier_name": row["supplier__name"],
                "total_weight": row["total_weight"],
                "total_payment": row["total_payment"],
                "receipt_count": row["receipt_count"],
            }
            for row in by_supplier
        ],
    }
