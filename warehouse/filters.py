import django_filters

from warehouse.models import GoodsIssue, GoodsReceipt, StoreRequest


class GoodsReceiptFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=GoodsReceipt.State.choices)
    start = django_filters.DateFilter(field_name="received_on", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="received_on", lookup_expr="lte")
    vendor = django_filters.CharFilter(field_name="vendor_name", lookup_expr="icontains")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = GoodsReceipt
        fields = []


class StoreRequestFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=StoreRequest.State.choices)
    division = django_filters.CharFilter(lookup_expr="iexact")
    start = django_filters.DateFilter(field_name="requested_on", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="requested_on", lookup_expr="lte")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = StoreRequest
        fields = []


class GoodsIssueFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(choices=GoodsIssue.State.choices)
    division = django_filters.CharFilter(lookup_expr="iexact")
    start = django_filters.DateFilter(field_name="issued_on", lookup_expr="gte")
    end = django_filters.DateFilter(field_name="issued_on", lookup_expr="lte")
    q = django_filters.CharFilter(field_name="number", lookup_expr="icontains")

    class Meta:
        model = GoodsIssue
        fields = []
