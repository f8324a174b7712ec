import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from core.exceptions import IllegalStateTransition, NotFound
from core.models import NumberSeries
from core.transitions import run_transition
from masterdata.services import ensure_same_entity
from warehouse.models import GoodsReceipt

logger = logging.getLogger(__name__)

State = GoodsReceipt.State

TRANSITIONS = {
    State.COMPLETED: "complete",
    State.CANCELLED: "cancel",
}


def get_receipt(entity, receipt_id, *, lock=False) -> GoodsReceipt:
    qs = GoodsReceipt.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=receipt_id, entity=entity)
    except (GoodsReceipt.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Goods receipt {receipt_id} not found.")


def _write_lines(receipt, lines):
    for line in lines:
        ensure_same_entity(receipt.entity, line.material)
        line.receipt = receipt
        line.save()


@transaction.atomic
def record_receipt(entity, form, lines, *, operator_name="", by=None) -> GoodsReceipt:
    """Save a validated GoodsReceiptForm with its lines (see forms.clean_lines)."""
    receipt = form.save(commit=False)
    receipt.entity = entity
    receipt.number = NumberSeries.allocate_monthly(entity, "GR", on_date=receipt.received_on)
    receipt.operator_name = operator_name or ""
    receipt.save()
    _write_lines(receipt, lines)

    logger.info("Goods receipt %s recorded: %d lines from %s", receipt.number, len(lines), receipt.vendor_name)

    if form.cleaned_data.get("state") == State.COMPLETED:
        run_transition(receipt, TRANSITIONS, State.COMPLETED, by=by, label="Goods receipt")
    return receipt


@transaction.atomic
def update_receipt(entity, receipt_id, form_class, data, lines=None) -> GoodsReceipt:
    """Edit a draft; lines, when given, replace the old ones."""
    receipt = get_receipt(entity, receipt_id, lock=True)
    if receipt.state != State.DRAFT:
        raise IllegalStateTransition(f"Goods receipt {receipt.number} is {receipt.state}; only drafts can be edited.")

    form = form_class(data, instance=receipt, entity=entity)
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    receipt = form.save()
    if lines is not None:
        receipt.lines.all().delete()
        _write_lines(receipt, lines)
    return receipt


@transaction.atomic
def change_state(entity, receipt_id, target_state, by=None) -> GoodsReceipt:
    receipt = get_receipt(entity, receipt_id, lock=True)
    return run_transition(receipt, TRANSITIONS, target_state, by=by, label="Goods receipt")


@transaction.atomic
def delete_receipt(entity, receipt_id) -> str:
    receipt = get_receipt(entity, receipt_id, lock=True)
    if receipt.state != State.DRAFT:
        raise IllegalStateTransition(f"Goods receipt {receipt.number} is {receipt.state}; only drafts can be deleted.")
    number = receipt.number
    receipt.delete()
    logger.info("Goods receipt %s deleted", number)
    return number
