from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from masterdata.serializers import category_json, material_json
from production import services
from production.filters import ProductionBatchFilter
from production.forms import (
    DateRangeForm,
    ProductionBatchForm,
    ProductionBatchUpdateForm,
    StateChangeForm,
    clean_outputs,
)
from production.models import ProductionBatch
from production.serializers import batch_json, daily_report_json, input_stock_json


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def batch_list(request, entity):
    if request.method == "POST":
        payload = read_json(request)
        data = validate(ProductionBatchForm(payload, entity=entity))
        outputs = clean_outputs(payload.get("outputs", []), entity)
        batch = services.record_batch(
            entity,
            data["input_material"],
            data["input_quantity"],
            outputs,
            production_date=data["production_date"],
            operator_name=operator_name(request),
            state=data["state"] or ProductionBatch.State.DRAFT,
            by=request.user,
        )
        return json_response(batch_json(batch), status=201)

    qs = (ProductionBatch.objects
          .filter(entity=entity)
          .select_related("input_material")
          .prefetch_related("outputs__output_material"))
    qs = filter_queryset(ProductionBatchFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [batch_json(b) for b in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def batch_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_batch(entity, pk)
        return json_response({"message": f"Production batch {number} deleted."})

    if request.method == "PATCH":
        data = validate(StateChangeForm(read_json(request)))
        batch = services.change_state(entity, pk, data["state"], by=request.user)
    elif request.method == "PUT":
        payload = read_json(request)
        data = validate(ProductionBatchUpdateForm(payload, entity=entity))
        outputs = clean_outputs(payload["outputs"], entity) if "outputs" in payload else None
        batch = services.update_batch(
            entity,
            pk,
            input_material=data["input_material"],
            input_quantity=data["input_quantity"],
            production_date=data["production_date"],
            outputs=outputs,
        )
    else:
        batch = services.get_batch(entity, pk)

    return json_response(batch_json(batch))


@login_required
@require_http_methods(["GET"])
@api_view
def daily_report(request, entity):
    data = validate(DateRangeForm(request.GET))
    report = services.daily_report(entity, data["start"], data["end"])
    return json_response(daily_report_json(report))


@login_required
@require_http_methods(["GET"])
@api_view
def output_categories(request, entity):
    return json_response({"results": [category_json(c) for c in services.output_categories(entity)]})


@login_required
@require_http_methods(["GET"])
@api_view
def output_materials(request, entity):
    try:
        category_id = int(request.GET["category"])
    except (KeyError, ValueError):
        raise ValidationError({"category": "A numeric category id is required."})
    materials = services.output_materials(entity, category_id)
    return json_response({"results": [material_json(m) for m in materials]})


@login_required
@require_http_methods(["GET"])
@api_view
def input_stock(request, entity):
    return json_response({"results": input_stock_json(services.input_stock(entity))})
