from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import StockMovementFilter, filter_queryset
from inventory.forms import StockMovementForm
from inventory.models import StockMovement
from inventory.serializers import stock_movement_json
from inventory.services.ledger import apply_movement, stock_summary


@login_required
@require_http_methods(["GET"])
@api_view
def stock_overview(request, entity):
    return json_response({"results": stock_summary(entity)})


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def movement_list(request, entity):
    if request.method == "POST":
        data = validate(StockMovementForm(read_json(request), entity=entity))
        result = apply_movement(
            entity,
            data["material"],
            data["quantity"],
            movement_type=data["movement_type"] or None,
            reference=data["reference"],
            note=data["note"],
            operator_name=operator_name(request),
            transaction_at=data["transaction_at"],
        )
        return json_response(stock_movement_json(result.movement), status=201)

    qs = StockMovement.objects.filter(entity=entity).select_related("material")
    qs = filter_queryset(StockMovementFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=20)
    return json_response({"results": [stock_movement_json(mv) for mv in items], "pagination": pagination})
