from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from warehouse.filters import GoodsReceiptFilter
from warehouse.forms import GoodsReceiptForm, GoodsReceiptLineForm, GoodsReceiptStateForm, clean_lines
from warehouse.models import GoodsReceipt
from warehouse.serializers import goods_receipt_json
from warehouse.services import goods_receipts as services


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def receipt_list(request, entity):
    if request.method == "POST":
        payload = read_json(request)
        form = GoodsReceiptForm(payload, entity=entity)
        validate(form)
        lines = clean_lines(payload.get("lines", []), GoodsReceiptLineForm, entity)
        receipt = services.record_receipt(entity, form, lines, operator_name=operator_name(request), by=request.user)
        return json_response(goods_receipt_json(receipt), status=201)

    qs = GoodsReceipt.objects.filter(entity=entity).prefetch_related("lines")
    qs = filter_queryset(GoodsReceiptFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [goods_receipt_json(r) for r in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def receipt_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_receipt(entity, pk)
        return json_response({"message": f"Goods receipt {number} deleted."})

    if request.method == "PATCH":
        data = validate(GoodsReceiptStateForm(read_json(request)))
        receipt = services.change_state(entity, pk, data["state"], by=request.user)
    elif request.method == "PUT":
        payload = read_json(request)
        lines = clean_lines(payload["lines"], GoodsReceiptLineForm, entity) if "lines" in payload else None
        receipt = services.update_receipt(entity, pk, GoodsReceiptForm, payload, lines)
    else:
        receipt = services.get_receipt(entity, pk)

    return json_response(goods_receipt_json(receipt))
