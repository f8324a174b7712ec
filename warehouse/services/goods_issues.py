"""Goods issues: materials leaving the warehouse for a division.

Stock is checked when the issue is recorded (so a clerk learns early that
there is not enough) and again by the ledger when it is actually issued.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from core.exceptions import IllegalStateTransition, InsufficientStock, NotFound
from core.models import NumberSeries
from core.transitions import run_transition
from masterdata.services import ensure_same_entity
from warehouse.models import GoodsIssue, GoodsIssueLine, StoreRequest
from warehouse.services.store_requests import get_request, stock_check

logger = logging.getLogger(__name__)

State = GoodsIssue.State

TRANSITIONS = {
    State.ISSUED: "issue",
    State.COMPLETED: "complete",
    State.CANCELLED: "cancel",
}


def get_issue(entity, issue_id, *, lock=False) -> GoodsIssue:
    qs = GoodsIssue.objects.all()
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=issue_id, entity=entity)
    except (GoodsIssue.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Goods issue {issue_id} not found.")


def ensure_stock(entity, lines):
    short = [r for r in stock_check(entity, lines) if not r["sufficient"]]
    if short:
        raise InsufficientStock("; ".join(
            f"Insufficient stock for {r['material'].code}: on hand {r['stock_on_hand']}, requested {r['requested']}"
            for r in short
        ))


def _create(entity, issue, lines, operator_name):
    for line in lines:
        ensure_same_entity(entity, line.material)
    ensure_stock(entity, lines)

    issue.entity = entity
    issue.number = NumberSeries.allocate_monthly(entity, "GI", on_date=issue.issued_on)
    issue.operator_name = operator_name or ""
    issue.save()
    for line in lines:
        line.issue = issue
        line.save()

    logger.info("Goods issue %s recorded for %s", issue.number, issue.division)
    return issue


@transaction.atomic
def record_issue(entity, form, lines, *, operator_name="", by=None) -> GoodsIssue:
    issue = _create(entity, form.save(commit=False), lines, operator_name)
    if form.cleaned_data.get("state") == State.ISSUED:
        run_transition(issue, TRANSITIONS, State.ISSUED, by=by, label="Goods issue")
    return issue


@transaction.atomic
def issue_from_store_request(entity, request_id, *, issued_by="", operator_name="", by=None) -> GoodsIssue:
    """Create and issue the goods of an approved store request in one go.

    The store request becomes COMPLETED; a request can be issued only once.
    """
    store_request = get_request(entity, request_id, lock=True)
    if store_request.state != StoreRequest.State.APPROVED:
        raise IllegalStateTransition(
            f"Store request {store_request.number} is {store_request.state}; it must be approved first."
        )
    if GoodsIssue.objects.filter(store_request=store_request).exists():
        raise IllegalStateTransition(f"Store request {store_request.number} has already been issued.")

    issue = GoodsIssue(
        store_request=store_request,
        division=store_request.division,
        requested_by=store_request.requested_by,
        issued_by=issued_by or "",
        note=store_request.note,
    )
    lines = [
        GoodsIssueLine(material=line.material, quantity=line.quantity, note=line.note)
        for line in store_request.lines.select_related("material")
    ]
    issue = _create(entity, issue, lines, operator_name)
    return run_transition(issue, TRANSITIONS, State.ISSUED, by=by, label="Goods issue")


@transaction.atomic
def change_state(entity, issue_id, target_state, *, received_by="", by=None) -> GoodsIssue:
    issue = get_issue(entity, issue_id, lock=True)
    if target_state == State.COMPLETED and received_by:
        issue.received_by = received_by
    if issue.store_request_id and target_state == State.ISSUED:
        # the transition completes the request
        issue.store_request = get_request(entity, issue.store_request_id, lock=True)
    return run_transition(issue, TRANSITIONS, target_state, by=by, label="Goods issue")


@transaction.atomic
def update_issue(entity, issue_id, form_class, data, lines=None) -> GoodsIssue:
    issue = get_issue(entity, issue_id, lock=True)
    if issue.state != State.DRAFT:
        raise IllegalStateTransition(f"Goods issue {issue.number} is {issue.state}; only drafts can be edited.")

    form = form_class(data, instance=issue, entity=entity)
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    issue = form.save()
    if lines is not None:
        for line in lines:
            ensure_same_entity(entity, line.material)
        ensure_stock(entity, lines)
        issue.lines.all().delete()
        for line in lines:
            line.issue = issue
            line.save()
    return issue


@transaction.atomic
def delete_issue(entity, issue_id) -> str:
    issue = get_issue(entity, issue_id, lock=True)
    if issue.state != State.DRAFT:
        raise IllegalStateTransition(f"Goods issue {issue.number} is {issue.state}; only drafts can be deleted.")
    number = issue.number
    issue.delete()
    logger.info("Goods issue %s deleted", number)
    return number
