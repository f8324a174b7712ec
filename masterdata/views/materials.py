from django.contrib.auth.decorators import login_required
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, read_json, validate
from inventory.services.ledger import get_balance
from masterdata.forms.material_forms import MaterialCategoryForm, MaterialForm, UnitForm
from masterdata.models import Material, MaterialCategory, Unit
from masterdata.serializers import category_json, material_json, unit_json


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def category_list(request, entity):
    if request.method == "POST":
        form = MaterialCategoryForm(read_json(request), entity=entity)
        validate(form)
        return json_response(category_json(form.save()), status=201)

    qs = MaterialCategory.objects.filter(entity=entity).order_by("tree_id", "lft")
    return json_response({"results": [category_json(c) for c in qs]})


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def unit_list(request, entity):
    if request.method == "POST":
        form = UnitForm(read_json(request), entity=entity)
        validate(form)
        return json_response(unit_json(form.save()), status=201)

    qs = Unit.objects.filter(entity=entity)
    return json_response({"results": [unit_json(u) for u in qs]})


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def material_list(request, entity):
    if request.method == "POST":
        form = MaterialForm(read_json(request), entity=entity)
        validate(form)
        material = form.save()
        return json_response(material_json(material), status=201)

    qs = Material.objects.filter(entity=entity).select_related("category", "unit")

    category_id = request.GET.get("category")
    if category_id:
        qs = qs.filter(category_id=category_id)

    search = (request.GET.get("q") or "").strip()
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(code__icontains=search))

    return json_response({"results": [material_json(m) for m in qs]})


@login_required
@require_http_methods(["GET", "PUT", "DELETE"])
@api_view
def material_detail(request, entity, pk):
    material = get_object_or_404(Material.objects.select_related("category", "unit"), pk=pk, entity=entity)

    if request.method == "PUT":
        form = MaterialForm(read_json(request), instance=material, entity=entity)
        validate(form)
        material = form.save()
    elif request.method == "DELETE":
        material.delete()
        return json_response({"message": f"Material {material.code} deleted."})

    data = material_json(material)
    data["stock"] = get_balance(entity, material)
    return json_response(data)
