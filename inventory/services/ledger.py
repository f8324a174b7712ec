"""Material stock ledger.

apply_movement() is the only writer of StockBalance. Every change of a balance
goes together with exactly one StockMovement row in the same transaction, so
the balance of a material always equals the signed sum of its movements.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.exceptions import InsufficientStock, TankStockExceedsMaterialStock
from inventory.models import ZERO, MovementType, StockBalance, StockMovement, Tank
from masterdata.models import Material
from masterdata.services import ensure_same_entity

logger = logging.getLogger(__name__)


@dataclass
class LedgerResult:
    balance: StockBalance
    movement: StockMovement


def to_decimal(value, field="quantity") -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: f"{value!r} is not a number."})
    # Decimal() accepts "NaN" and "Infinity"
    if not number.is_finite():
        raise ValidationError({field: f"{value!r} is not a finite number."})
    return number


def _resolve_type(signed_quantity: Decimal, movement_type) -> str:
    if movement_type is None:
        return MovementType.IN if signed_quantity > 0 else MovementType.OUT

    if movement_type == MovementType.TRANSFER:
        raise ValidationError("TRANSFER is a tank movement, not a material stock movement.")
    if movement_type == MovementType.IN and signed_quantity < 0:
        raise ValidationError("An IN movement needs a positive quantity.")
    if movement_type == MovementType.OUT and signed_quantity > 0:
        raise ValidationError("An OUT movement needs a negative quantity.")
    if movement_type not in MovementType.values:
        raise ValidationError(f"Unknown movement type {movement_type!r}.")
    return movement_type


def get_balance(entity, material) -> Decimal:
    qty = (StockBalance.objects
           .filter(entity=entity, material=material)
           .values_list("quantity_on_hand", flat=True)
           .first())
    return qty if qty is not None else ZERO


def tank_volume_total(entity, material) -> Decimal:
    total = Tank.objects.filter(entity=entity, material=material).aggregate(s=Sum("current_volume"))["s"]
    return total or ZERO


@transaction.atomic
def apply_movement(entity, material, signed_quantity, *, movement_type=None, reference="",
                   note="", operator_name="", transaction_at=None) -> LedgerResult:
    """Add signed_quantity to the material's balance and record the movement.

    The balance row is locked (select_for_update) for the whole transaction, so
    concurrent movements of the same material are serialized; movements of
    different materials do not wait on each other.

    Raises ValidationError (zero quantity, bad type/sign), NotFound (material of
    another entity), InsufficientStock, TankStockExceedsMaterialStock. Nothing is
    written when an error is raised.
    """
    signed_quantity = to_decimal(signed_quantity)
    if signed_quantity == 0:
        raise ValidationError({"quantity": "Quantity must not be zero."})

    ensure_same_entity(entity, material)
    movement_type = _resolve_type(signed_quantity, movement_type)

    balance = (StockBalance.objects
               .select_for_update()
               .filter(entity=entity, material=material)
               .first())
    before = balance.quantity_on_hand if balance else ZERO
    after = before + signed_quantity

    if after < 0:
        raise InsufficientStock(
            f"Insufficient stock for {material.code}: available {before}, requested {-signed_quantity}."
        )

    if signed_quantity < 0:
        in_tanks = tank_volume_total(entity, material)
        if after < in_tanks:
            raise TankStockExceedsMaterialStock(
                f"Stock of {material.code} would drop to {after} while the tanks still hold {in_tanks}."
            )

    if balance is None:
        balance = StockBalance(entity=entity, material=material)
    balance.quantity_on_hand = after
    balance.save()

    movement = StockMovement.objects.create(
        entity=entity,
        material=material,
        movement_type=movement_type,
        quantity=abs(signed_quantity),
        balance_before=before,
        balance_after=after,
        reference=reference or "",
        note=note or "",
        operator_name=operator_name or "",
        transaction_at=transaction_at or timezone.now(),
    )

    logger.info("Stock %s %s %s: %s -> %s (%s)",
                movement_type, material.code, signed_quantity, before, after, reference or "-")

    return LedgerResult(balance=balance, movement=movement)


def stock_summary(entity):
    """Per material: current stock plus IN/OUT/ADJUSTMENT totals."""
    balances = dict(
        StockBalance.objects.filter(entity=entity).values_list("material_id", "quantity_on_hand")
    )

    totals = {}
    rows = (StockMovement.objects
            .filter(entity=entity)
            .values("material_id", "movement_type")
            .annotate(total=Sum("quantity"), net=Sum(F("balance_after") - F("balance_before"))))
    for row in rows:
        totals[(row["material_id"], row["movement_type"])] = row

    def total(material_id, movement_type, key="total"):
        row = totals.get((material_id, movement_type))
        return row[key] if row else ZERO

    summary = []
    for m in Material.objects.filter(entity=entity).select_related("category", "unit").order_by("code"):
        summary.append({
            "material_id": m.id,
            "code": m.code,
            "name": m.name,
            "category": m.category.name,
            "unit": m.unit.symbol,
            "current_stock": balances.get(m.id, ZERO),
            "total_in": total(m.id, MovementType.IN),
            "total_out": total(m.id, MovementType.OUT),
            "net_adjustment": total(m.id, MovementType.ADJUSTMENT, key="net"),
        })
    return summary
