import django_filters

from shipping.models import ProductShipment


class ProductShipmentFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=ProductShipment.State.choices)
    buyer = django_filters.NumberFilter(field_name="buyer_id")
    material = django_filters.NumberFilter(field_name="material_id")
    start = django_filters.DateFilter(field_name="shipped_on", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="shipped_on", lookup_expr="lte")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = ProductShipment
        fields = []
