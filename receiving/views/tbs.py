from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from masterdata.services import get_material
from receiving import services
from receiving.filters import TbsReceiptFilter
from receiving.forms import ReceiptStateForm, TbsReceiptForm
from receiving.models import TbsReceipt
from receiving.serializers import receipt_json


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def receipt_list(request, entity):
    if request.method == "POST":
        form = TbsReceiptForm(read_json(request), entity=entity)
        validate(form)
        receipt = services.record_receipt(entity, form, operator_name=operator_name(request), by=request.user)
        return json_response(receipt_json(receipt), status=201)

    qs = TbsReceipt.objects.filter(entity=entity).select_related("material", "supplier", "transporter")
    qs = filter_queryset(TbsReceiptFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [receipt_json(r) for r in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def receipt_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_receipt(entity, pk)
        return json_response({"message": f"TBS receipt {number} deleted."})

    if request.method == "PATCH":
        data = validate(ReceiptStateForm(read_json(request)))
        receipt = services.change_state(entity, pk, data["state"], by=request.user)
    elif request.method == "PUT":
        receipt = services.update_receipt(entity, pk, TbsReceiptForm, read_json(request))
    else:
        receipt = services.get_receipt(entity, pk)

    return json_response(receipt_json(receipt))


@login_required
@require_http_methods(["GET"])
@api_view
def statistics(request, entity):
    material = get_material(entity, request.GET.get("material"))
    return json_response(services.tbs_statistics(entity, material))
