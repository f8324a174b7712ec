from django.contrib.auth.decorators import login_required
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, paginate, read_json, validate
from masterdata.forms.supplier_forms import BuyerForm, SupplierForm, TransporterForm
from masterdata.models import Buyer, Supplier, Transporter
from masterdata.serializers import buyer_json, supplier_json, transporter_json
from masterdata.services import save_buyer, save_supplier


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def supplier_list(request, entity):
    if request.method == "POST":
        form = SupplierForm(read_json(request), entity=entity)
        validate(form)
        return json_response(supplier_json(save_supplier(form)), status=201)

    qs = Supplier.objects.filter(entity=entity)
    supplier_type = request.GET.get("type")
    if supplier_type:
        qs = qs.filter(supplier_type=supplier_type)
    return json_response({"results": [supplier_json(s) for s in qs]})


@login_required
@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def supplier_detail(request, entity, pk):
    supplier = get_object_or_404(Supplier, pk=pk, entity=entity)

    if request.method == "PUT":
        form = SupplierForm(read_json(request), instance=supplier, entity=entity)
        validate(form)
        supplier = save_supplier(form)
    elif request.method == "DELETE":
        supplier.delete()
        return json_response({"message": f"Supplier {supplier.code} deleted."})

    return json_response(supplier_json(supplier))


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def transporter_list(request, entity):
    if request.method == "POST":
        form = TransporterForm(read_json(request), entity=entity)
        validate(form)
        return json_response(transporter_json(form.save()), status=201)

    qs = Transporter.objects.filter(entity=entity)
    return json_response({"results": [transporter_json(t) for t in qs]})


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def buyer_list(request, entity):
    if request.method == "POST":
        form = BuyerForm(read_json(request), entity=entity)
        validate(form)
        return json_response(buyer_json(save_buyer(form)), status=201)

    qs = Buyer.objects.filter(entity=entity)
    search = request.GET.get("q")
    if search:
        qs = qs.filter(name__icontains=search)
    if request.GET.get("active") == "1":
        qs = qs.filter(is_active=True)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [buyer_json(b) for b in items], "pagination": pagination})


@login_required
@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def buyer_detail(request, entity, pk):
    buyer = get_object_or_404(Buyer, pk=pk, entity=entity)

    if request.method == "PUT":
        form = BuyerForm(read_json(request), instance=buyer, entity=entity)
        validate(form)
        buyer = save_buyer(form)
    elif request.method == "DELETE":
        buyer.delete()
        return json_response({"message": f"Buyer {buyer.code} deleted."})

    return json_response(buyer_json(buyer))
