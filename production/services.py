"""Production batches: recording, state changes and reports.

All writes go through these functions; each one runs in a single transaction
so a batch's state and its ledger entries always commit (or fail) together.
"""

import logging
from collections import OrderedDict
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django_fsm import TransitionNotAllowed, can_proceed

from core.exceptions import IllegalStateTransition, NotFound
from core.models import NumberSeries
from inventory.models import StockBalance
from inventory.services.ledger import to_decimal
from masterdata.models import Material, MaterialCategory
from masterdata.services import ensure_same_entity
from production.models import ProductionBatch, ProductionYield, compute_yield

logger = logging.getLogger(__name__)

State = ProductionBatch.State

INPUT_CATEGORY_KEYWORD = "TBS"

# target state -> name of the transition method on ProductionBatch
TRANSITIONS = {
    State.DRAFT: "back_to_draft",
    State.IN_PROGRESS: "start",
    State.COMPLETED: "complete",
    State.CANCELLED: "cancel",
}


def get_batch(entity, batch_id, *, lock=False) -> ProductionBatch:
    qs = ProductionBatch.objects.select_related("entity", "input_material", "input_material__unit")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=batch_id, entity=entity)
    except (ProductionBatch.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Production batch {batch_id} not found.")


def _clean_outputs(entity, input_quantity: Decimal, outputs):
    """outputs: iterable of (material, quantity). Returns [(material, Decimal)]."""
    cleaned = []
    for material, quantity in outputs:
        quantity = to_decimal(quantity, field="output_quantity")
        ensure_same_entity(entity, material)
        if quantity <= 0:
            raise ValidationError({"outputs": f"Output quantity for {material.code} must be greater than zero."})
        if compute_yield(quantity, input_quantity) > 100:
            raise ValidationError({"outputs": f"Output {material.code} ({quantity}) exceeds the input quantity."})
        cleaned.append((material, quantity))

    if not cleaned:
        raise ValidationError({"outputs": "At least one output is required."})
    return cleaned


def _write_outputs(batch, outputs):
    for material, quantity in outputs:
        ProductionYield.objects.create(batch=batch, output_material=material, output_quantity=quantity)


def _run_transition(batch, target_state, by=None):
    try:
        method = getattr(batch, TRANSITIONS[target_state])
    except KeyError:
        raise ValidationError({"state": f"Unknown state {target_state!r}."})

    if not can_proceed(method):
        raise IllegalStateTransition(
            f"Batch {batch.number} cannot go from {batch.state} to {target_state}."
        )
    try:
        method(by=by)
    except TransitionNotAllowed as e:
        raise IllegalStateTransition(str(e))
    batch.save()

    logger.info("Production batch %s -> %s", batch.number, batch.state)


@transaction.atomic
def record_batch(entity, input_material, input_quantity, outputs, *, production_date=None,
                 operator_name="", state=State.DRAFT, by=None) -> ProductionBatch:
    """Create a batch with its outputs.

    Requesting state COMPLETED (or IN_PROGRESS) runs the transition right away,
    in the same transaction as the insert.
    """
    input_quantity = to_decimal(input_quantity, field="input_quantity")
    if input_quantity <= 0:
        raise ValidationError({"input_quantity": "Input quantity must be greater than zero."})
    ensure_same_entity(entity, input_material)
    outputs = _clean_outputs(entity, input_quantity, outputs)

    if state not in (State.DRAFT, State.IN_PROGRESS, State.COMPLETED):
        raise ValidationError({"state": f"A new batch cannot start as {state}."})

    batch = ProductionBatch(
        entity=entity,
        number=NumberSeries.allocate_monthly(entity, "PROD", min_width=4),
        input_material=input_material,
        input_quantity=input_quantity,
        operator_name=operator_name or "",
    )
    if production_date:
        batch.production_date = production_date
    batch.save()
    _write_outputs(batch, outputs)

    logger.info("Production batch %s recorded (%s %s)", batch.number, input_quantity, input_material.code)

    if state == State.IN_PROGRESS:
        _run_transition(batch, State.IN_PROGRESS, by=by)
    elif state == State.COMPLETED:
        _run_transition(batch, State.COMPLETED, by=by)

    return batch


@transaction.atomic
def change_state(entity, batch_id, target_state, by=None) -> ProductionBatch:
    batch = get_batch(entity, batch_id, lock=True)
    _run_transition(batch, target_state, by=by)
    return batch


@transaction.atomic
def update_batch(entity, batch_id, *, input_material=None, input_quantity=None, outputs=None,
                 production_date=None, operator_name=None) -> ProductionBatch:
    """Edit a batch that has not touched stock. Outputs, when given, replace the old ones."""
    batch = get_batch(entity, batch_id, lock=True)
    if batch.state == State.COMPLETED:
        raise IllegalStateTransition(f"Batch {batch.number} is completed and cannot be changed; cancel it first.")

    if input_material is not None:
        ensure_same_entity(entity, input_material)
        batch.input_material = input_material
    if input_quantity is not None:
        input_quantity = to_decimal(input_quantity, field="input_quantity")
        if input_quantity <= 0:
            raise ValidationError({"input_quantity": "Input quantity must be greater than zero."})
        batch.input_quantity = input_quantity
    if production_date is not None:
        batch.production_date = production_date
    if operator_name is not None:
        batch.operator_name = operator_name

    if outputs is None:
        outputs = [(o.output_material, o.output_quantity) for o in batch.outputs.select_related("output_material")]
    outputs = _clean_outputs(entity, batch.input_quantity, outputs)

    batch.save()
    batch.outputs.all().delete()
    _write_outputs(batch, outputs)
    return batch


@transaction.atomic
def delete_batch(entity, batch_id) -> str:
    batch = get_batch(entity, batch_id, lock=True)
    if batch.state == State.COMPLETED:
        raise IllegalStateTransition(f"Batch {batch.number} is completed and cannot be deleted; cancel it first.")
    number = batch.number
    batch.delete()
    logger.info("Production batch %s deleted", number)
    return number


def daily_report(entity, start, end):
    """Completed batches between start and end (inclusive), with totals
    per input material and per output material (average yield)."""
    batches = list(
        ProductionBatch.objects
        .filter(entity=entity, state=State.COMPLETED, production_date__gte=start, production_date__lte=end)
        .select_related("input_material", "input_material__unit")
        .prefetch_related("outputs__output_material")
        .order_by("-production_date", "-id")
    )

    by_input = OrderedDict()
    by_output = OrderedDict()
    for batch in batches:
        row = by_input.setdefault(batch.input_material_id, {
            "material_id": batch.input_material_id,
            "material_name": batch.input_material.name,
            "total_input": Decimal("0"),
            "batch_count": 0,
        })
        row["total_input"] += batch.input_quantity
        row["batch_count"] += 1

        for output in batch.outputs.all():
            out = by_output.setdefault(output.output_material_id, {
                "material_id": output.output_material_id,
                "material_name": output.output_material.name,
                "total_output": Decimal("0"),
                "yield_sum": Decimal("0"),
                "count": 0,
            })
            out["total_output"] += output.output_quantity
            out["yield_sum"] += output.yield_percentage
            out["count"] += 1

    for out in by_output.values():
        out["average_yield"] = (out.pop("yield_sum") / out["count"]).quantize(Decimal("0.01"))

    return {
        "start": start,
        "end": end,
        "total_input": sum((b.input_quantity for b in batches), Decimal("0")),
        "batch_count": len(batches),
        "by_input_material": list(by_input.values()),
        "by_output_material": list(by_output.values()),
        "batches": batches,
    }


def output_categories(entity):
    """Categories a batch can produce into: everything except the fruit (TBS) categories."""
    return (MaterialCategory.objects
            .filter(entity=entity)
            .exclude(name__icontains=INPUT_CATEGORY_KEYWORD)
            .order_by("tree_id", "lft"))


def output_materials(entity, category_id):
    return (Material.objects
            .filter(entity=entity, category_id=category_id, is_active=True)
            .select_related("category", "unit")
            .order_by("name"))


def input_stock(entity):
    """TBS materials (by category name) with their stock on hand."""
    materials = (Material.objects
                 .filter(entity=entity, category__name__icontains=INPUT_CATEGORY_KEYWORD)
                 .select_related("category", "unit")
                 .order_by("code"))
    balances = dict(
        StockBalance.objects
        .filter(entity=entity, material__in=materials)
        .values_list("material_id", "quantity_on_hand")
    )
    return [(m, balances.get(m.id, Decimal("0.000"))) for m in materials]
