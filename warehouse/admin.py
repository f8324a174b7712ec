from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import DocumentStateAdminMixin, EntityScopedAdminMixin
from core.exceptions import BusinessError
from warehouse.models import (
    GoodsIssue,
    GoodsIssueLine,
    GoodsReceipt,
    GoodsReceiptLine,
    StoreRequest,
    StoreRequestLine,
)
from warehouse.services import goods_issues, goods_receipts, store_requests


class DraftLineInline(admin.TabularInline):
    """Lines can be touched only while the document is a draft."""

    extra = 0

    def _locked(self, obj):
        return obj is not None and obj.state != "DRAFT"

    def has_add_permission(self, request, obj=None):
        return not self._locked(obj) and super().has_add_permission(request, obj)

    def has_change_permission(self, request, obj=None):
        return not self._locked(obj) and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return not self._locked(obj) and super().has_delete_permission(request, obj)


class GoodsReceiptLineInline(DraftLineInline):
    model = GoodsReceiptLine
    fields = ("material", "quantity", "unit_price", "storage_location", "note")


class StoreRequestLineInline(DraftLineInline):
    model = StoreRequestLine
    fields = ("material", "quantity", "note")


class GoodsIssueLineInline(DraftLineInline):
    model = GoodsIssueLine
    fields = ("material", "quantity", "note")


class WarehouseDocumentAdmin(DjangoObjectActions, DocumentStateAdminMixin, EntityScopedAdminMixin,
                             GuardedModelAdmin, SimpleHistoryAdmin):
    """Documents are created through the API (numbers come from the series)."""

    service = None
    # state -> actions offered on the change page
    actions_by_state = {}

    def has_add_permission(self, request):
        return False

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        return self.actions_by_state.get(obj.state, ())

    def _change_state(self, request, obj, target, done_msg, **kwargs):
        try:
            self.service.change_state(obj.entity, obj.pk, target, by=request.user, **kwargs)
            self.message_user(request, done_msg, level=messages.SUCCESS)
        except (BusinessError, ValidationError) as e:
            self.message_user(request, f"Could not change state: {e}", level=messages.ERROR)


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(WarehouseDocumentAdmin):
    service = goods_receipts
    locked_states = (GoodsReceipt.State.COMPLETED, GoodsReceipt.State.CANCELLED)
    inlines = [GoodsReceiptLineInline]
    list_display = ("number", "received_on", "vendor_name", "delivery_note_no", "state")
    list_filter = ("entity", "state", "received_on")
    search_fields = ("number", "vendor_name", "delivery_note_no", "invoice_no")
    date_hierarchy = "received_on"
    readonly_fields = ("number", "state", "completed_at", "cancelled_at")

    change_actions = ("complete_action", "cancel_action")
    actions_by_state = {
        GoodsReceipt.State.DRAFT: ("complete_action", "cancel_action"),
        GoodsReceipt.State.COMPLETED: ("cancel_action",),
    }

    @action(label="Complete", description="Book every line into stock")
    def complete_action(self, request, obj):
        self._change_state(request, obj, GoodsReceipt.State.COMPLETED, "Goods receipt completed, stock updated.")

    @action(label="Cancel", description="Cancel the receipt (books the lines out again when completed)")
    def cancel_action(self, request, obj):
        self._change_state(request, obj, GoodsReceipt.State.CANCELLED, "Goods receipt cancelled.")


@admin.register(StoreRequest)
class StoreRequestAdmin(WarehouseDocumentAdmin):
    service = store_requests
    locked_states = tuple(s for s in StoreRequest.State.values if s != StoreRequest.State.DRAFT)
    inlines = [StoreRequestLineInline]
    list_display = ("number", "requested_on", "division", "requested_by", "state")
    list_filter = ("entity", "state", "division")
    search_fields = ("number", "division", "requested_by")
    date_hierarchy = "requested_on"
    readonly_fields = ("number", "state", "approved_by", "approved_at")

    change_actions = ("submit_action", "approve_action", "reject_action")
    actions_by_state = {
        StoreRequest.State.DRAFT: ("submit_action",),
        StoreRequest.State.PENDING: ("approve_action", "reject_action"),
    }

    @action(label="Submit", description="Send the request for approval")
    def submit_action(self, request, obj):
        self._change_state(request, obj, StoreRequest.State.PENDING, "Store request submitted.")

    @action(label="Approve")
    def approve_action(self, request, obj):
        self._change_state(request, obj, StoreRequest.State.APPROVED, "Store request approved.",
                           approved_by=request.user.get_full_name() or request.user.get_username())

    @action(label="Reject")
    def reject_action(self, request, obj):
        self._change_state(request, obj, StoreRequest.State.REJECTED, "Store request rejected.")


@admin.register(GoodsIssue)
class GoodsIssueAdmin(WarehouseDocumentAdmin):
    service = goods_issues
    locked_states = (GoodsIssue.State.ISSUED, GoodsIssue.State.COMPLETED, GoodsIssue.State.CANCELLED)
    inlines = [GoodsIssueLineInline]
    list_display = ("number", "issued_on", "division", "store_request", "state")
    list_filter = ("entity", "state", "division")
    search_fields = ("number", "division", "requested_by")
    date_hierarchy = "issued_on"
    readonly_fields = ("number", "state", "store_request", "issued_at", "completed_at", "cancelled_at")

    change_actions = ("issue_action", "cancel_action")
    actions_by_state = {
        GoodsIssue.State.DRAFT: ("issue_action", "cancel_action"),
    }

    @action(label="Issue", description="Book every line out of stock")
    def issue_action(self, request, obj):
        self._change_state(request, obj, GoodsIssue.State.ISSUED, "Goods issued, stock updated.")

    @action(label="Cancel")
    def cancel_action(self, request, obj):
        self._change_state(request, obj, GoodsIssue.State.CANCELLED, "Goods issue cancelled.")
