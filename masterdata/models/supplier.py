from django.db import models

class Supplier(models.Model):
    """TBS supplier (ramp/peron, cooperative or farmer group)."""

    class SupplierType(models.TextChoices):
        RAMP_PERON = "RAMP_PERON", "Ramp / peron"
        KUD = "KUD", "KUD (cooperative)"
        KELOMPOK_TANI = "KELOMPOK_TANI", "Farmer group"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="suppliers")

    supplier_type = models.CharField(max_length=20, choices=SupplierType.choices, default=SupplierType.RAMP_PERON)

    code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    owner_name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    bank_name = models.CharField(max_length=100, blank=True, default="")
    bank_account_no = models.CharField(max_length=50, blank=True, default="")
    bank_account_name = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("entity", "code")
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"


class Transporter(models.Model):
    """Truck + driver delivering TBS. Looked up by plate at the weighbridge."""
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="transporters")

    vehicle_plate = models.CharField(max_length=20)
    driver_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=50, blank=True, default="")

    class Meta:
        unique_together = ("entity", "vehicle_plate")
        ordering = ["vehicle_plate"]

    def __str__(self):
        return f"{self.vehicle_plate} ({self.driver_name})"
