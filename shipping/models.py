from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition
from django_fsm_log.decorators import fsm_log_by
from simple_history.models import HistoricalRecords

from inventory.models import QTY_DIGITS, QTY_PLACES
from inventory.services.ledger import apply_movement
from inventory.services.tanks import add_to_tank, get_tank, remove_from_tank

PCT = {"max_digits": 5, "decimal_places": 2, "default": Decimal("0.00")}


class ProductShipment(models.Model):
    """Delivery order (DO) of CPO or kernel to a buyer, weighed on the weighbridge.

    net_weight = gross_weight - tare_weight. Completing the shipment books the
    net weight out of stock (and out of `tank` when one is given); cancelling
    a completed shipment books it back in.
    """

    class State(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    class WeighMethod(models.TextChoices):
        MANUAL = "MANUAL", "Manual"
        WEIGHBRIDGE = "WEIGHBRIDGE", "Weighbridge system"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="product_shipments")
    state = FSMField(default=State.DRAFT, choices=State.choices, protected=True)

    number = models.CharField(max_length=40)
    seal_number = models.CharField(max_length=40)
    shipped_on = models.DateField(default=timezone.localdate)

    buyer = models.ForeignKey("masterdata.Buyer", on_delete=models.PROTECT, related_name="shipments")
    contract_no = models.CharField(max_length=100, blank=True, default="")
    material = models.ForeignKey("masterdata.Material", on_delete=models.PROTECT, related_name="shipments")
    tank = models.ForeignKey("inventory.Tank", on_delete=models.PROTECT, null=True, blank=True,
                             related_name="shipments")
    transporter = models.ForeignKey("masterdata.Transporter", on_delete=models.PROTECT, related_name="shipments")
    weigher_name = models.CharField(max_length=255, blank=True, default="")

    tare_method = models.CharField(max_length=12, choices=WeighMethod.choices, default=WeighMethod.WEIGHBRIDGE)
    tare_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    tare_weighed_at = models.DateTimeField(null=True, blank=True)
    gross_method = models.CharField(max_length=12, choices=WeighMethod.choices, default=WeighMethod.WEIGHBRIDGE)
    gross_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES)
    gross_weighed_at = models.DateTimeField(null=True, blank=True)
    net_weight = models.DecimalField(max_digits=QTY_DIGITS, decimal_places=QTY_PLACES, editable=False)

    ffa = models.DecimalField("FFA %", **PCT)
    moisture = models.DecimalField("moisture %", **PCT)
    dirt = models.DecimalField("dirt %", **PCT)

    note = models.CharField(max_length=255, blank=True, default="")
    operator_name = models.CharField(max_length=255, blank=True, default="")

    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history = HistoricalRecords()

    class Meta:
        ordering = ("-shipped_on", "-id")
        indexes = [models.Index(fields=["entity", "material", "state", "shipped_on"])]
        constraints = [
            models.UniqueConstraint(fields=["entity", "number"], name="uq_product_shipment_number"),
            models.CheckConstraint(condition=Q(gross_weight__gt=F("tare_weight")), name="shipment_gross_above_tare"),
            models.CheckConstraint(condition=Q(tare_weight__gte=0), name="shipment_tare_not_negative"),
        ]

    def __str__(self):
        return self.number

    def save(self, *args, **kwargs):
        self.net_weight = self.gross_weight - self.tare_weight
        super().save(*args, **kwargs)

    @fsm_log_by
    @transition(field=state, source=State.DRAFT, target=State.COMPLETED)
    def complete(self, by=None):
        self.net_weight = self.gross_weight - self.tare_weight
        # tank first: the ledger refuses to drop stock below what the tanks hold
        if self.tank_id:
            remove_from_tank(self.entity, self.tank_id, self.net_weight, reference=self.number,
                             note=f"Shipment to {self.buyer.name}", operator_name=self.operator_name)
        apply_movement(
            self.entity,
            self.material,
            -self.net_weight,
            reference=self.number,
            note=f"Shipment to {self.buyer.name}",
            operator_name=self.operator_name,
        )
        self.completed_at = timezone.now()

    @fsm_log_by
    @transition(field=state, source=[State.DRAFT, State.COMPLETED], target=State.CANCELLED)
    def cancel(self, by=None):
        if self.state == self.State.COMPLETED:
            if self.tank_id:
                # tank row before balance row, same order as a tank IN
                get_tank(self.entity, self.tank_id, lock=True)
            apply_movement(
                self.entity,
                self.material,
                self.net_weight,
                reference=self.number,
                note=f"Cancellation of shipment {self.number}",
                operator_name=self.operator_name,
            )
            if self.tank_id:
                add_to_tank(self.entity, self.tank_id, self.net_weight, reference=self.number,
                            note=f"Cancellation of shipment {self.number}", operator_name=self.operator_name)
        self.cancelled_at = timezone.now()
