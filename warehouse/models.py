"""Warehouse documents for spare parts and consumables.

    GoodsReceipt   DRAFT -> COMPLETED        every line booked IN
                   DRAFT | COMPLETED -> CANCELLED   lines booked OUT again when completed
    StoreRequest   DRAFT -> PENDING -> APPROVED | REJECTED,  APPROVED -> COMPLETED | NEED_PR
    GoodsIssue     DRAFT -> ISSUED -> COMPLETED,  DRAFT -> CANCELLED
                   issuing books every line OUT

Ledger entries carry the document number as reference.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from inventory.models import QTY_DIGITS, QTY_PLACES
from inventory.services.ledger import apply_movement

CENT = Decimal("0.01")


class DocumentLine(models.Model):
    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="+")
    quantity = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    note = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        abstract = True
        ordering = ("id",)


class GoodsReceipt(models.Model):
    """Goods delivered by a vendor (delivery note + invoice), checked in at the warehouse."""

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="goods_receipts")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    received_on = models.DateField(default=timezone.localdate)

    vendor_name = models.CharField(max_length=255)
    purchase_order_no = models.CharField(max_length=100, blank=True, default="")
    delivery_note_no = models.CharField(max_length=100, blank=True, default="")
    invoice_no = models.CharField(max_length=100, blank=True, default="")
    received_by = models.CharField(max_length=255)
    checked_by = models.CharField(max_length=255, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-received_on", "-id")
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_goods_receipt_number"),
        ]

    def __str__(self):
        return self.number

    @property
    def total_value(self) -> Decimal:
        return sum((line.line_total for line in self.lines.all()), Decimal("0.00"))

    def _post_stock(self, sign: int):
        # balance rows are locked in material order
        for line in self.lines.select_related("material").order_by("material_id", "id"):
            apply_movement(
                self.entity,
                line.material,
                sign * line.quantity,
                reference=self.number,
                note=f"Goods receipt from {self.vendor_name}" if sign > 0 else f"Cancellation of {self.number}",
                operator_name=self.operator_name,
            )

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.COMPLETED)
    def complete(self, by=None):
        if not self.checked_by:
            raise ValidationError({"checked_by": "The receipt must be checked before it is completed."})
        self._post_stock(+1)
        self.completed_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.COMPLETED], target=State.CANCELLED)
    def cancel(self, by=None):
        if self.state == self.State.COMPLETED:
            self._post_stock(-1)
        self.cancelled_at = timezone.now()


class GoodsReceiptLine(DocumentLine):
    receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name="lines")
    unit_price = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    storage_location = models.CharField(max_length=100, blank=True, default="")

    class Meta(DocumentLine.Meta):
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="goods_receipt_line_qty_positive"),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name="goods_receipt_line_price_not_negative"),
        ]

    @property
    def line_total(self) -> Decimal:
        return (self.quantity * self.unit_price).quantize(CENT, rounding=ROUND_HALF_UP)


class StoreRequest(models.Model):
    """A division asks the warehouse for materials. No stock moves until it is issued."""

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PENDING = "PENDING", "Pending approval"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"
        COMPLETED = "COMPLETED", "Completed"
        NEED_PR = "NEED_PR", "Needs purchase request"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="store_requests")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    requested_on = models.DateField(default=timezone.localdate)
    division = models.CharField(max_length=100)
    requested_by = models.CharField(max_length=255)
    approved_by = models.CharField(max_length=255, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-requested_on", "-id")
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_store_request_number"),
        ]

    def __str__(self):
        return self.number

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.PENDING)
    def submit(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=State.PENDING, target=State.APPROVED)
    def approve(self, by=None):
        self.approved_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=State.PENDING, target=State.REJECTED)
    def reject(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=State.APPROVED, target=State.NEED_PR)
    def need_purchase(self, by=None):
        pass

    @fsm_log_by
    @transition(field=state, source=State.APPROVED, target=State.COMPLETED)
    def complete(self, by=None):
        pass


class StoreRequestLine(DocumentLine):
    request = models.ForeignKey(StoreRequest, on_delete=models.CASCADE, related_name="lines")

    class Meta(DocumentLine.Meta):
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="store_request_line_qty_positive"),
        ]


class GoodsIssue(models.Model):
    """Materials handed out to a division, usually against an approved store request."""

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        ISSUED = "ISSUED", "Issued"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="goods_issues")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    issued_on = models.DateField(default=timezone.localdate)
    store_request = models.OneToOneField(StoreRequest, on_delete=models.PROTECT, null=True, blank=True,
                                         related_name="goods_issue")

    division = models.CharField(max_length=100)
    requested_by = models.CharField(max_length=255)
    issued_by = models.CharField(max_length=255, blank=True, default="")
    received_by = models.CharField(max_length=255, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    issued_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-issued_on", "-id")
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_goods_issue_number"),
        ]

    def __str__(self):
        return self.number

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.ISSUED)
    def issue(self, by=None):
        # balance rows are locked in material order
        for line in self.lines.select_related("material").order_by("material_id", "id"):
            apply_movement(
                self.entity,
                line.material,
                -line.quantity,
                reference=self.number,
                note=f"Issued to {self.division}",
                operator_name=self.operator_name,
            )
        if self.store_request_id:
            self.store_request.complete(by=by)
            self.store_request.save()
        self.issued_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=State.ISSUED, target=State.COMPLETED)
    def complete(self, by=None):
        if not self.received_by:
            raise ValidationError({"received_by": "Enter who received the goods in the division."})
        self.completed_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.CANCELLED)
    def cancel(self, by=None):
        self.cancelled_at = timezone.now()


class GoodsIssueLine(DocumentLine):
    issue = models.ForeignKey(GoodsIssue, on_delete=models.CASCADE, related_name="lines")

    class Meta(DocumentLine.Meta):
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="goods_issue_line_qty_positive"),
        ]
