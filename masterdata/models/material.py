from django.db import models
from mptt.models import MPTTModel, TreeForeignKey

class MaterialCategory(MPTTModel):
    """Material category (tree via django-mptt), e.g. Produk > CPO."""
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="material_categories")

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True, default="")

    parent = TreeForeignKey("self", null=True, blank=True, on_delete=models.PROTECT, related_name="children")

    class MPTTMeta:
        order_insertion_by = ["name"]

    class Meta:
        unique_together = ("entity", "name")
        verbose_name_plural = "material categories"

    def __str__(self):
        return self.name


class Unit(models.Model):
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="units")

    name = models.CharField(max_length=50)
    symbol = models.CharField(max_length=10)

    class Meta:
        unique_together = ("entity", "symbol")
        ordering = ["name"]

    def __str__(self):
        return self.symbol


class Material(models.Model):
    """Anything the mill counts: TBS, CPO, kernel, spare parts."""
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="materials")
    category = models.ForeignKey(MaterialCategory, on_delete=models.PROTECT, related_name="materials")
    unit = models.ForeignKey(Unit, on_delete=models.PROTECT, related_name="materials")

    code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = ("entity", "code")
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"
