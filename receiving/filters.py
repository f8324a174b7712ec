import django_filters

from receiving.models import TbsReceipt


class TbsReceiptFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=TbsReceipt.State.choices)
    supplier = django_filters.NumberFilter(field_name="supplier_id")
    material = django_filters.NumberFilter(field_name="material_id")
    start = django_filters.DateFilter(field_name="received_on", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="received_on", lookup_expr="lte")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = TbsReceipt
        fields = []
