from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from masterdata.services import get_material
from shipping import services
from shipping.filters import ProductShipmentFilter
from shipping.forms import ProductShipmentForm, ShipmentStateForm
from shipping.models import ProductShipment
from shipping.serializers import shipment_json


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def shipment_list(request, entity):
    if request.method == "POST":
        form = ProductShipmentForm(read_json(request), entity=entity)
        validate(form)
        shipment = services.record_shipment(entity, form, operator_name=operator_name(request), by=request.user)
        return json_response(shipment_json(shipment), status=201)

    qs = (ProductShipment.objects
          .filter(entity=entity)
          .select_related("buyer", "material", "transporter", "tank"))
    qs = filter_queryset(ProductShipmentFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [shipment_json(s) for s in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def shipment_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_shipment(entity, pk)
        return json_response({"message": f"Shipment {number} deleted."})

    if request.method == "PATCH":
        data = validate(ShipmentStateForm(read_json(request)))
        shipment = services.change_state(entity, pk, data["state"], by=request.user)
    elif request.method == "PUT":
        shipment = services.update_shipment(entity, pk, ProductShipmentForm, read_json(request))
    else:
        shipment = services.get_shipment(entity, pk)

    return json_response(shipment_json(shipment))


@login_required
@require_http_methods(["GET"])
@api_view
def statistics(request, entity):
    material_id = request.GET.get("material")
    material = get_material(entity, material_id) if material_id else None
    return json_response(services.shipment_statistics(entity, material))
