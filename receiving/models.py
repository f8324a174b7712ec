from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from inventory.models import QTY_DIGITS, QTY_PLACES
from inventory.services.ledger import apply_movement

KG = Decimal("0.001")
CENT = Decimal("0.01")


class TbsReceipt(models.Model):
    """Weighbridge ticket for fresh fruit bunches (TBS) delivered by a supplier.

    Weights in kg:
        net_weight                  = gross_weight - tare_weight
        deduction_kg                = net_weight * deduction_percent / 100
        net_weight_after_deduction  = net_weight - deduction_kg
        total_payment               = net_weight_after_deduction * price_per_kg

    Completing the ticket books net_weight_after_deduction into stock of the
    material; cancelling a completed ticket books it out again.
    """

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    class FruitGrade(models.TextChoices):
        BB = "TBS-BB", "Buah besar"
        BS = "TBS-BS", "Buah sedang"
        BK = "TBS-BK", "Buah kecil"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="tbs_receipts")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    received_on = models.DateField(default=timezone.localdate)

    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="tbs_receipts")
    supplier = models.ForeignKey("masterdata.Supplier", on_delete=models.PROTECT, related_name="tbs_receipts")
    transporter = models.ForeignKey("masterdata.Transporter", on_delete=models.PROTECT, related_name="tbs_receipts")

    weigher_name = models.CharField(max_length=255, blank=True, default="")
    garden_location = models.CharField(max_length=255, blank=True, default="")
    fruit_grade = models.CharField(max_length=10, choices=FruitGrade.choices, default=FruitGrade.BS)

    gross_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    tare_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    net_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, editable=False)
    deduction_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    deduction_kg = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, editable=False)
    net_weight_after_deduction = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, editable=False)

    price_per_kg = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_payment = models.DecimalField(max_digits=18, decimal_places=2, editable=False)

    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-received_on", "-id")
        indexes = [models.Index(fields=["entity", "material", "state", "received_on"])]
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_tbs_receipt_number"),
            models.CheckConstraint(condition=Q(gross_weight__gte=F("tare_weight")), name="tbs_gross_not_below_tare"),
            models.CheckConstraint(
                condition=Q(deduction_percent__gte=0) & Q(deduction_percent__lte=100),
                name="tbs_deduction_percent_range",
            ),
        ]

    def __str__(self):
        return self.number

    def recalculate(self):
        self.net_weight = self.gross_weight - self.tare_weight
        self.deduction_kg = (self.net_weight * self.deduction_percent / 100).quantize(KG, rounding=ROUND_HALF_UP)
        self.net_weight_after_deduction = self.net_weight - self.deduction_kg
        self.total_payment = (self.net_weight_after_deduction * self.price_per_kg).quantize(CENT, rounding=ROUND_HALF_UP)

    def clean(self):
        super().clean()
        gross, tare, pct = self.gross_weight, self.tare_weight, self.deduction_percent
        if gross is None or tare is None or pct is None or gross < tare:
            return
        net = gross - tare
        if net - (net * pct / 100).quantize(KG, rounding=ROUND_HALF_UP) <= 0:
            raise ValidationError("Net weight after deduction must be greater than zero.")

    def save(self, *args, **kwargs):
        self.recalculate()
        super().save(*args, **kwargs)

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.COMPLETED)
    def complete(self, by=None):
        self.recalculate()
        apply_movement(
            self.entity,
            self.material,
            self.net_weight_after_deduction,
            reference=self.number,
            note=f"TBS from {self.supplier.name}",
            operator_name=self.operator_name,
        )
        self.completed_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.COMPLETED], target=State.CANCELLED)
    def cancel(self, by=None):
        if self.state == self.State.COMPLETED:
            apply_movement(
                self.entity,
                self.material,
                -self.net_weight_after_deduction,
                reference=self.number,
                note=f"Cancellation of TBS receipt {self.number}",
                operator_name=self.operator_name,
            )
        self.cancelled_at = timezone.now()
