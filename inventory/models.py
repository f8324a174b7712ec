from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from simple_history.models import HistoricalRecords

QTY_DIGITS = 18
QTY_PLACES = 3
ZERO = Decimal("0.000")


class MovementType(models.TextChoices):
    IN = "IN", "In"
    OUT = "OUT", "Out"
    ADJUSTMENT = "ADJUSTMENT", "Adjustment"
    TRANSFER = "TRANSFER", "Transfer"


class StockBalance(models.Model):
    """Quantity on hand per (entity, material).

    Written only by inventory.services.ledger.apply_movement.
    """
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="stock_balances")
    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="stock_balances")

    quantity_on_hand = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, default=ZERO)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["entity", "material"], name="uq_stock_balance_entity_material"),
            models.CheckConstraint(condition=Q(quantity_on_hand__gte=0), name="stock_balance_non_negative"),
        ]

    def __str__(self):
        return f"{self.material}: {self.quantity_on_hand}"


class MovementRecord(models.Model):
    """Append-only ledger row. Corrections are new rows, never edits.

    quantity is always positive; the direction is balance_after - balance_before.
    """
    movement_type = models.CharField(max_length=20, choices=MovementType.choices)

    quantity = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    balance_before = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    balance_after = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)

    reference = models.CharField(max_length=255, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    transaction_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True

    @property
    def signed_quantity(self) -> Decimal:
        return self.balance_after - self.balance_before


class StockMovement(MovementRecord):
    """Audit trail for material stock."""
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="stock_movements")
    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="stock_movements")

    class Meta:
        ordering = ("-transaction_at", "-id")
        indexes = [models.Index(fields=["entity", "material", "transaction_at"])]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="stock_movement_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.movement_type} {self.quantity} {self.material}"


class Tank(models.Model):
    """Storage tank for one material (CPO, kernel oil ...) for its whole life.

    current_volume is a cache of the tank's own TankMovement history.
    """
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="tanks")
    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="tanks")

    name = models.CharField(max_length=100)
    capacity = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    current_volume = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, default=ZERO)

    created_at = models.DateTimeField(auto_now_add=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["entity", "name"], name="uq_tank_entity_name"),
            models.CheckConstraint(condition=Q(capacity__gt=0), name="tank_capacity_positive"),
            models.CheckConstraint(condition=Q(current_volume__gte=0), name="tank_volume_non_negative"),
            models.CheckConstraint(condition=Q(current_volume__lte=F("capacity")), name="tank_volume_within_capacity"),
        ]

    def __str__(self):
        return self.name

    @property
    def free_capacity(self) -> Decimal:
        return self.capacity - self.current_volume

    @property
    def fill_percent(self) -> Decimal:
        if not self.capacity:
            return Decimal("0.00")
        return (self.current_volume / self.capacity * 100).quantize(Decimal("0.01"))


class TankMovement(MovementRecord):
    """Audit trail for one tank. A transfer writes two rows (OUT on the source, IN on the destination)."""

    class Direction(models.TextChoices):
        IN = "IN", "In"
        OUT = "OUT", "Out"

    tank = models.ForeignKey(Tank, on_delete=models.PROTECT, related_name="movements")
    direction = models.CharField(max_length=3, choices=Direction.choices)

    class Meta:
        ordering = ("-transaction_at", "-id")
        indexes = [models.Index(fields=["tank", "transaction_at"])]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="tank_movement_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.movement_type}/{self.direction} {self.quantity} {self.tank}"
