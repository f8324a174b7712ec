from decimal import ROUND_HALF_UP, Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from inventory.models import QTY_DIGITS, QTY_PLACES
from inventory.services.ledger import apply_movement


def compute_yield(output_quantity, input_quantity) -> Decimal:
    """output / input * 100, rounded half-up to 2 decimals (22.0 -> Decimal("22.00"))."""
    if not input_quantity:
        return Decimal("0.00")
    pct = Decimal(output_quantity) / Decimal(input_quantity) * 100
    return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ProductionBatch(models.Model):
    """One processing run: an input material (TBS) turned into outputs (CPO, kernel ...).

    Stock is only affected when the batch enters or leaves COMPLETED:

        DRAFT <-> IN_PROGRESS
        DRAFT | IN_PROGRESS | CANCELLED -> COMPLETED    input OUT, outputs IN
        DRAFT | IN_PROGRESS | COMPLETED -> CANCELLED    mirror entries when leaving COMPLETED

    Transitions must run inside the caller's transaction (see production.services)
    so the state change and the ledger entries commit together.
    """

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        IN_PROGRESS = "IN_PROGRESS", "In progress"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="production_batches")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    production_date = models.DateField(default=timezone.localdate)

    input_material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="+")
    input_quantity = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)

    operator_name = models.CharField(max_length=255, blank=True, default="")

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-production_date", "-id")
        indexes = [models.Index(fields=["entity", "state", "production_date"])]
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_production_batch_number"),
            models.CheckConstraint(condition=Q(input_quantity__gt=0), name="production_input_positive"),
        ]

    def __str__(self):
        return self.number

    def _post_stock(self, sign: int):
        """sign=+1 applies the batch (input OUT, outputs IN); -1 reverses it."""
        apply_movement(
            self.entity,
            self.input_material,
            -sign * self.input_quantity,
            reference=self.number,
            note=f"Production input {self.number}" if sign > 0 else f"Reversal of production input {self.number}",
            operator_name=self.operator_name,
        )
        for output in self.outputs.select_related("output_material"):
            apply_movement(
                self.entity,
                output.output_material,
                sign * output.output_quantity,
                reference=self.number,
                note=f"Production output {self.number}" if sign > 0 else f"Reversal of production output {self.number}",
                operator_name=self.operator_name,
            )

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.IN_PROGRESS)
    def start(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=State.IN_PROGRESS, target=State.DRAFT)
    def back_to_draft(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.IN_PROGRESS, State.CANCELLED], target=State.COMPLETED)
    def complete(self, by=None):
        """Consume the input and book the outputs.

        InsufficientStock is raised by the input OUT before anything is written.
        """
        self._post_stock(+1)
        self.completed_at = timezone.now()
        self.cancelled_at = None

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.IN_PROGRESS, State.COMPLETED], target=State.CANCELLED)
    def cancel(self, by=None):
        if self.state == self.State.COMPLETED:
            self._post_stock(-1)
        self.cancelled_at = timezone.now()


class ProductionYield(models.Model):
    batch = models.ForeignKey(ProductionBatch, on_delete=models.CASCADE, related_name="outputs")
    output_material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="+")
    output_quantity = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    yield_percentage = models.DecimalField(max_digits=7, decimal_places=2, editable=False)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(output_quantity__gt=0), name="production_output_positive"),
        ]

    def __str__(self):
        return f"{self.output_material} {self.output_quantity} ({self.yield_percentage}%)"

    def save(self, *args, **kwargs):
        self.yield_percentage = compute_yield(self.output_quantity, self.batch.input_quantity)
        super().save(*args, **kwargs)
