import django_filters

from production.models import ProductionBatch


class ProductionBatchFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=ProductionBatch.State.choices)
    start = django_filters.DateFilter(field_name="production_date", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="production_date", lookup_expr="lte")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")
    input_material = django_filters.NumberFilter(field_name="input_material_id")

    class Meta:
        model = ProductionBatch
        fields = []
