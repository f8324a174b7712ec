from django.db import models, transaction
from django.utils import timezone


class NumberSeries(models.Model):
    """Document numbers per entity (SUP-0001, PROD-202610-0001, TBS-202610-00001).

    allocate() locks the series row with select_for_update, so two operators
    saving at the same time never receive the same number. Inside an outer
    atomic block a rolled back document also gives its number back.
    """

    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="number_series")

    code = models.CharField(max_length=50)
    prefix = models.CharField(max_length=50, blank=True, default="")
    next_number = models.IntegerField(default=1)
    min_width = models.IntegerField(default=1)

    class Meta:
        unique_together = ("entity", "code")
        ordering = ["code"]
        verbose_name_plural = "number series"

    def __str__(self):
        return f"{self.entity} {self.code}"

    @transaction.atomic
    def allocate(self) -> str:
        series = type(self).objects.select_for_update().get(pk=self.pk)

        current = series.next_number
        series.next_number = current + 1
        series.save(update_fields=["next_number"])

        return f"{series.prefix}{str(current).zfill(series.min_width)}"

    @classmethod
    def allocate_for(cls, entity, code: str, *, prefix: str = "", min_width: int = 1) -> str:
        """Allocate from the series `code`, creating the series on first use."""
        series, _ = cls.objects.get_or_create(
            entity=entity,
            code=code,
            defaults={"prefix": prefix, "min_width": min_width},
        )
        return series.allocate()

    @classmethod
    def allocate_monthly(cls, entity, kind: str, *, on_date=None, min_width: int = 4) -> str:
        """Numbers like PROD-202610-0001: one series per kind and month."""
        on_date = on_date or timezone.localdate()
        period = f"{kind}-{on_date:%Y%m}"
        return cls.allocate_for(entity, period, prefix=f"{period}-", min_width=min_width)
