from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import TankMovementFilter, filter_queryset
from inventory.forms import TankForm, TankMovementForm, TankTransferForm, TankUpdateForm
from inventory.models import MovementType, Tank
from inventory.serializers import tank_json, tank_movement_json
from inventory.services import tanks as tank_service
from masterdata.serializers import material_json


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def tank_list(request, entity):
    if request.method == "POST":
        form = TankForm(read_json(request), entity=entity)
        validate(form)
        tank = form.save()
        return json_response(tank_json(tank), status=201)

    qs = Tank.objects.filter(entity=entity).select_related("material", "material__unit")
    material_id = request.GET.get("material")
    if material_id:
        qs = qs.filter(material_id=material_id)
    return json_response({"results": [tank_json(t) for t in qs]})


@login_required
@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def tank_detail(request, entity, pk):
    if request.method == "DELETE":
        name = tank_service.delete_tank(entity, pk)
        return json_response({"message": f"Tank {name} deleted."})

    tank = tank_service.get_tank(entity, pk)
    if request.method == "PUT":
        # the form checks name uniqueness, the service re-checks capacity on the locked row
        data = validate(TankUpdateForm(read_json(request), instance=tank, entity=entity))
        tank = tank_service.update_tank(entity, pk, name=data["name"], capacity=data["capacity"])

    data = tank_json(tank)
    data["recent_movements"] = [tank_movement_json(mv) for mv in tank.movements.select_related("tank")[:10]]
    return json_response(data)


def _tank_movement(request, entity, pk, movement_type):
    data = validate(TankMovementForm(read_json(request)))
    movement = tank_service.record_tank_movement(
        entity,
        pk,
        movement_type,
        data["quantity"],
        operator_name=operator_name(request),
        reference=data["reference"],
        note=data["note"],
        transaction_at=data["transaction_at"],
    )
    return json_response(tank_movement_json(movement), status=201)


@login_required
@require_http_methods(["POST"])
@api_view
def tank_in(request, entity, pk):
    return _tank_movement(request, entity, pk, MovementType.IN)


@login_required
@require_http_methods(["POST"])
@api_view
def tank_out(request, entity, pk):
    return _tank_movement(request, entity, pk, MovementType.OUT)


@login_required
@require_http_methods(["POST"])
@api_view
def tank_adjust(request, entity, pk):
    return _tank_movement(request, entity, pk, MovementType.ADJUSTMENT)


@login_required
@require_http_methods(["POST"])
@api_view
def tank_transfer(request, entity):
    data = validate(TankTransferForm(read_json(request)))
    result = tank_service.transfer(
        entity,
        data["source_tank"],
        data["destination_tank"],
        data["quantity"],
        operator_name(request),
        note=data["note"],
    )
    return json_response({
        "source": tank_movement_json(result.source_movement),
        "destination": tank_movement_json(result.destination_movement),
    }, status=201)


@login_required
@require_http_methods(["GET"])
@api_view
def tank_history(request, entity):
    qs = filter_queryset(TankMovementFilter, request, tank_service.tank_history(entity))
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [tank_movement_json(mv) for mv in items], "pagination": pagination})


@login_required
@require_http_methods(["GET"])
@api_view
def tank_summary(request, entity):
    rows = []
    for row in tank_service.tank_summary(entity):
        rows.append({
            "material": material_json(row["material"]),
            "tank_count": row["tank_count"],
            "total_capacity": row["total_capacity"],
            "total_volume": row["total_volume"],
            "material_stock": row["material_stock"],
            "tanks": [tank_json(t) for t in row["tanks"]],
        })
    return json_response({"results": rows})
