from django.contrib.auth.decorators import login_required
from django.views.decorators.http import require_http_methods

from core.api import api_view, json_response, operator_name, paginate, read_json, validate
from inventory.filters import filter_queryset
from warehouse.filters import GoodsIssueFilter
from warehouse.forms import FromStoreRequestForm, GoodsIssueForm, GoodsIssueLineForm, GoodsIssueStateForm, clean_lines
from warehouse.models import GoodsIssue
from warehouse.serializers import goods_issue_json
from warehouse.services import goods_issues as services


@login_required
@require_http_methods(["GET", "POST"])
@api_view
def issue_list(request, entity):
    if request.method == "POST":
        payload = read_json(request)
        form = GoodsIssueForm(payload, entity=entity)
        validate(form)
        lines = clean_lines(payload.get("lines", []), GoodsIssueLineForm, entity)
        issue = services.record_issue(entity, form, lines, operator_name=operator_name(request), by=request.user)
        return json_response(goods_issue_json(issue), status=201)

    qs = GoodsIssue.objects.filter(entity=entity).select_related("store_request")
    qs = filter_queryset(GoodsIssueFilter, request, qs)
    items, pagination = paginate(request, qs, default_limit=10)
    return json_response({"results": [goods_issue_json(gi) for gi in items], "pagination": pagination})


@login_required
@require_http_methods(["POST"])
@api_view
def issue_from_store_request(request, entity):
    data = validate(FromStoreRequestForm(read_json(request)))
    issue = services.issue_from_store_request(
        entity,
        data["store_request"],
        issued_by=data["issued_by"] or operator_name(request),
        operator_name=operator_name(request),
        by=request.user,
    )
    return json_response(goods_issue_json(issue), status=201)


@login_required
@require_http_methods(["GET", "PUT", "PATCH", "DELETE"])
@api_view
def issue_detail(request, entity, pk):
    if request.method == "DELETE":
        number = services.delete_issue(entity, pk)
        return json_response({"message": f"Goods issue {number} deleted."})

    if request.method == "PATCH":
        data = validate(GoodsIssueStateForm(read_json(request)))
        issue = services.change_state(entity, pk, data["state"], received_by=data["received_by"], by=request.user)
    elif request.method == "PUT":
        payload = read_json(request)
        lines = clean_lines(payload["lines"], GoodsIssueLineForm, entity) if "lines" in payload else None
        issue = services.update_issue(entity, pk, GoodsIssueForm, payload, lines)
    else:
        issue = services.get_issue(entity, pk)

    return json_response(goods_issue_json(issue))
