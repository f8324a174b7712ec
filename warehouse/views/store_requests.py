from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from warehouse.filters import StoreRequestFilter
from warehouse.forms import StoreRequestForm, StoreRequestLineForm, StoreRequestStateForm, clean_lines
from warehouse.models import StoreRequest
from warehouse.serializers import stock_check_json, store_request_json
from warehouse.services import store_requests as services


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def request_list(request, entity):
    if request.method == "POST":
        payload = read_json(request)
        form = StoreRequestForm(payload, entity=entity)
        validate(form)
        lines = clean_lines(payload.get("lines", []), StoreRequestLineForm, entity)
        store_request = services.record_request(entity, form, lines, operator_name=operator_name(request))
        return json_response(store_request_json(store_request), status=201)

    qs = StoreRequest.objects.filter(entity=entity)
    qs = filter_queryset(StoreRequestFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [store_request_json(sr) for sr in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def request_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_request(entity, pk)
        return json_response({"message": f"Store request {number} deleted."})

    if request.method == "PATCH":
        data = validate(StoreRequestStateForm(read_json(request)))
        store_request = services.change_state(entity, pk, data["state"], approved_by=operator_name(request),
                                              by=request.user)
    elif request.method == "PUT":
        payload = read_json(request)
        lines = clean_lines(payload["lines"], StoreRequestLineForm, entity) if "lines" in payload else None
        store_request = services.update_request(entity, pk, StoreRequestForm, payload, lines)
    else:
        store_request = services.get_request(entity, pk)

    return json_response(store_request_json(store_request))


@login_required
@require_http_methods(["GET"])
@api_view
def check_stock(request, entity, pk):
    return json_response(stock_check_json(services.check_stock(entity, pk)))
