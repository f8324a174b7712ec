import django_filters
from django.core.exceptions import ValidationError

from inventory.models import MovementType, StockMovement, TankMovement


class StockMovementFilter(django_filters.FilterSet):
    material = django_filters.NumberFilter(field_name="material_id")
    type = django_filters.ChoiceFilter(field_name="movement_type", choices=MovementType.choices)
    start = django_filters.DateFilter(field_name="transaction_at", lookup_expr="date__gte")
    end = django_filters.DateFilter(field_name="transaction_at", lookup_expr="date__lte")
    reference = django_filters.CharFilter(lookup_expr="icontains")

    class Meta:
        model = StockMovement
        fields = []


class TankMovementFilter(django_filters.FilterSet):
    tank = django_filters.NumberFilter(field_name="tank_id")
    type = django_filters.ChoiceFilter(field_name="movement_type", choices=MovementType.choices)
    start = django_filters.DateFilter(field_name="transaction_at", lookup_expr="date__gte")
    end = django_filters.DateFilter(field_name="transaction_at", lookup_expr="date__lte")

    class Meta:
        model = TankMovement
        fields = []


def filter_queryset(filterset_class, request, queryset):
    """Apply a FilterSet to ?query params; bad params are a ValidationError (400)."""
    filterset = filterset_class(request.GET, queryset=queryset)
    if not filterset.is_valid():
        raise ValidationError(filterset.errors.as_data())
    return filterset.qs
