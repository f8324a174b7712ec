"""Tank volumes: single-tank movements, transfers between tanks, summaries.

Tank operations never touch StockBalance. They only make sure that the oil
sitting in the tanks of a material never adds up to more than the material's
stock on hand.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone

from core.exceptions import (
    DestinationCapacityExceeded,
    IllegalStateTransition,
    InsufficientSourceVolume,
    MaterialMismatch,
    NotFound,
    TankStockExceedsMaterialStock,
)
from inventory.models import ZERO, MovementType, StockBalance, Tank, TankMovement
from inventory.services.ledger import to_decimal

logger = logging.getLogger(__name__)


@dataclass
class TransferResult:
    source_movement: TankMovement
    destination_movement: TankMovement


def _tank_pk(value) -> int:
    try:
        return int(value)
    except (ValueError, TypeError):
        raise NotFound(f"Tank {value} not found.")


def get_tank(entity, tank_id, *, lock=False) -> Tank:
    qs = Tank.objects.select_related("material", "material__unit")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=_tank_pk(tank_id), entity=entity)
    except Tank.DoesNotExist:
        raise NotFound(f"Tank {tank_id} not found.")


def _check_material_stock(entity, tank: Tank, new_volume: Decimal):
    """Sum of all tank volumes of the material must stay <= its stock on hand.

    The balance row is locked so a concurrent ledger OUT of the same material
    waits until this tank movement is committed.
    """
    balance = (StockBalance.objects
               .select_for_update()
               .filter(entity=entity, material_id=tank.material_id)
               .first())
    available = balance.quantity_on_hand if balance else ZERO

    others = (Tank.objects
              .filter(entity=entity, material_id=tank.material_id)
              .exclude(pk=tank.pk)
              .aggregate(s=Sum("current_volume"))["s"]) or ZERO

    if others + new_volume > available:
        room = max(available - others - tank.current_volume, ZERO)
        raise TankStockExceedsMaterialStock(
            f"Total stock in tanks ({others + new_volume}) may not exceed the stock of "
            f"{tank.material.code} ({available}). Room left for this tank: {room}."
        )


@transaction.atomic
def record_tank_movement(entity, tank_id, movement_type, quantity, *, operator_name="",
                         reference="", note="", transaction_at=None) -> TankMovement:
    """IN / OUT take a positive quantity, ADJUSTMENT a signed one."""
    quantity = to_decimal(quantity)

    if movement_type == MovementType.TRANSFER:
        raise ValidationError("Use transfer() to move oil between tanks.")
    if movement_type not in MovementType.values:
        raise ValidationError(f"Unknown movement type {movement_type!r}.")
    if movement_type == MovementType.ADJUSTMENT:
        if quantity == 0:
            raise ValidationError({"quantity": "Quantity must not be zero."})
        signed = quantity
    else:
        if quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be greater than zero."})
        signed = quantity if movement_type == MovementType.IN else -quantity

    tank = get_tank(entity, tank_id, lock=True)
    before = tank.current_volume
    after = before + signed

    if after < 0:
        raise InsufficientSourceVolume(f"Tank {tank.name} holds {before}; cannot remove {-signed}.")
    if after > tank.capacity:
        raise DestinationCapacityExceeded(
            f"Tank {tank.name} capacity is {tank.capacity}; free capacity is {tank.free_capacity}."
        )
    if signed > 0:
        _check_material_stock(entity, tank, after)

    movement = TankMovement.objects.create(
        tank=tank,
        movement_type=movement_type,
        direction=TankMovement.Direction.IN if signed > 0 else TankMovement.Direction.OUT,
        quantity=abs(signed),
        balance_before=before,
        balance_after=after,
        reference=reference or "",
        note=note or "",
        operator_name=operator_name or "",
        transaction_at=transaction_at or timezone.now(),
    )

    tank.current_volume = after
    tank.save(update_fields=["current_volume"])

    logger.info("Tank %s %s %s: %s -> %s", tank.name, movement_type, signed, before, after)
    return movement


def add_to_tank(entity, tank_id, quantity, **kwargs) -> TankMovement:
    return record_tank_movement(entity, tank_id, MovementType.IN, quantity, **kwargs)


def remove_from_tank(entity, tank_id, quantity, **kwargs) -> TankMovement:
    return record_tank_movement(entity, tank_id, MovementType.OUT, quantity, **kwargs)


def adjust_tank(entity, tank_id, signed_quantity, **kwargs) -> TankMovement:
    return record_tank_movement(entity, tank_id, MovementType.ADJUSTMENT, signed_quantity, **kwargs)


@transaction.atomic
def transfer(entity, source_tank_id, destination_tank_id, quantity, operator, note="") -> TransferResult:
    """Move quantity from one tank to another tank of the same material.

    Both tanks are locked in primary key order, so two transfers between the
    same pair of tanks (in either direction) cannot deadlock. All checks run
    before the first write.
    """
    quantity = to_decimal(quantity)
    if quantity <= 0:
        raise ValidationError({"quantity": "Quantity must be greater than zero."})

    source_pk = _tank_pk(source_tank_id)
    destination_pk = _tank_pk(destination_tank_id)
    if source_pk == destination_pk:
        raise ValidationError("Source and destination tank must be different.")

    locked = {
        t.pk: t
        for t in (Tank.objects
                  .select_for_update()
                  .select_related("material")
                  .filter(entity=entity, pk__in=[source_pk, destination_pk])
                  .order_by("pk"))
    }
    source = locked.get(source_pk)
    destination = locked.get(destination_pk)
    if source is None:
        raise NotFound(f"Tank {source_tank_id} not found.")
    if destination is None:
        raise NotFound(f"Tank {destination_tank_id} not found.")

    if source.material_id != destination.material_id:
        raise MaterialMismatch(
            f"Tank {source.name} holds {source.material.code}, "
            f"tank {destination.name} holds {destination.material.code}."
        )
    if source.current_volume < quantity:
        raise InsufficientSourceVolume(
            f"Tank {source.name} holds {source.current_volume}; cannot transfer {quantity}."
        )
    if destination.current_volume + quantity > destination.capacity:
        raise DestinationCapacityExceeded(
            f"Tank {destination.name} free capacity is {destination.free_capacity}; cannot receive {quantity}."
        )

    now = timezone.now()
    common = {
        "movement_type": MovementType.TRANSFER,
        "quantity": quantity,
        "operator_name": operator or "",
        "transaction_at": now,
    }

    source_movement = TankMovement.objects.create(
        tank=source,
        direction=TankMovement.Direction.OUT,
        balance_before=source.current_volume,
        balance_after=source.current_volume - quantity,
        reference=f"TRANSFER-{destination.pk}",
        note=note or f"Transfer to {destination.name}",
        **common,
    )
    destination_movement = TankMovement.objects.create(
        tank=destination,
        direction=TankMovement.Direction.IN,
        balance_before=destination.current_volume,
        balance_after=destination.current_volume + quantity,
        reference=f"TRANSFER-{source.pk}",
        note=note or f"Transfer from {source.name}",
        **common,
    )

    source.current_volume = source_movement.balance_after
    source.save(update_fields=["current_volume"])
    destination.current_volume = destination_movement.balance_after
    destination.save(update_fields=["current_volume"])

    logger.info("Transfer %s %s: %s -> %s", quantity, source.material.code, source.name, destination.name)
    return TransferResult(source_movement=source_movement, destination_movement=destination_movement)


@transaction.atomic
def update_tank(entity, tank_id, *, name, capacity) -> Tank:
    """Rename a tank or change its capacity.

    The row is locked and re-read, so a movement committed since the caller
    loaded the tank is neither overwritten nor missed by the capacity check.
    """
    capacity = to_decimal(capacity, field="capacity")
    tank = get_tank(entity, tank_id, lock=True)
    if capacity <= 0:
        raise ValidationError({"capacity": "Capacity must be greater than zero."})
    if capacity < tank.current_volume:
        raise ValidationError(
            {"capacity": f"Capacity may not be lower than the current volume ({tank.current_volume})."}
        )

    tank.name = name
    tank.capacity = capacity
    tank.save(update_fields=["name", "capacity"])
    logger.info("Tank %s updated: capacity %s", tank.name, tank.capacity)
    return tank


@transaction.atomic
def delete_tank(entity, tank_id):
    """Only a tank that never held a movement can be deleted; its history stays."""
    tank = get_tank(entity, tank_id, lock=True)
    if tank.current_volume > 0:
        raise IllegalStateTransition(
            f"Tank {tank.name} still holds {tank.current_volume}; empty it before deleting."
        )
    if tank.movements.exists():
        raise IllegalStateTransition(
            f"Tank {tank.name} has movement history and cannot be deleted."
        )
    name = tank.name
    tank.delete()
    logger.info("Tank %s deleted", name)
    return name


def tank_history(entity):
    """Base queryset for the history endpoint; filtering is done by TankMovementFilter."""
    return (TankMovement.objects
            .filter(tank__entity=entity)
            .select_related("tank", "tank__material"))


def tank_summary(entity):
    """Per material: tank count, capacity, volume and the material's stock."""
    tanks_by_material = {}
    for tank in Tank.objects.filter(entity=entity).select_related("material", "material__unit", "material__category"):
        tanks_by_material.setdefault(tank.material_id, []).append(tank)

    rows = (Tank.objects
            .filter(entity=entity)
            .values("material_id")
            .annotate(tank_count=Count("id"),
                      total_capacity=Sum("capacity"),
                      total_volume=Sum("current_volume"))
            .order_by("material_id"))

    balances = dict(
        StockBalance.objects
        .filter(entity=entity, material_id__in=tanks_by_material.keys())
        .values_list("material_id", "quantity_on_hand")
    )

    summary = []
    for row in rows:
        tanks = tanks_by_material[row["material_id"]]
        material = tanks[0].material
        summary.append({
            "material": material,
            "tank_count": row["tank_count"],
            "total_capacity": row["total_capacity"],
            "total_volume": row["total_volume"],
            "material_stock": balances.get(row["material_id"], ZERO),
            "tanks": tanks,
        })
    return summary
