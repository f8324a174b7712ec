from django.db import models


class Buyer(models.Model):
    """Customer buying CPO / kernel from the mill."""

    class TaxStatus(models.TextChoices):
        PKP = "PKP", "PKP (VAT registered)"
        NON_PKP = "NON_PKP", "Non-PKP"

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="buyers")

    code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")
    npwp = models.CharField("NPWP", max_length=30, blank=True, default="")
    tax_status = models.CharField(max_length=10, choices=TaxStatus.choices, default=TaxStatus.NON_PKP)

    bank_name = models.CharField(max_length=100, blank=True, default="")
    bank_account_no = models.CharField(max_length=50, blank=True, default="")
    bank_account_name = models.CharField(max_length=255, blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("entity", "code")
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"
