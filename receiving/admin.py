from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import DocumentStateAdminMixin, EntityScopedAdminMixin
from core.exceptions import BusinessError
from receiving import services
from receiving.models import TbsReceipt


@admin.register(TbsReceipt)
class TbsReceiptAdmin(DjangoObjectActions, DocumentStateAdminMixin, EntityScopedAdminMixin,
                      GuardedModelAdmin, SimpleHistoryAdmin):
    locked_states = (TbsReceipt.State.COMPLETED, TbsReceipt.State.CANCELLED)
    derived_fields = ("net_weight", "deduction_kg", "net_weight_after_deduction", "total_payment")

    list_display = ("number", "received_on", "supplier", "material", "net_weight_after_deduction",
                    "total_payment", "state")
    list_filter = ("entity", "state", "fruit_grade", "received_on")
    search_fields = ("number", "supplier__name", "transporter__vehicle_plate")
    date_hierarchy = "received_on"
    readonly_fields = ("number", "state", "net_weight", "deduction_kg", "net_weight_after_deduction",
                       "total_payment", "completed_at", "cancelled_at")

    change_actions = ("complete_action", "cancel_action")

    def has_add_permission(self, request):
        return False

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        if obj.state == TbsReceipt.State.DRAFT:
            return ("complete_action", "cancel_action")
        if obj.state == TbsReceipt.State.COMPLETED:
            return ("cancel_action",)
        return ()

    def _change_state(self, request, obj, target, done_msg):
        try:
            services.change_state(obj.entity, obj.pk, target, by=request.user)
            self.message_user(request, done_msg, level=messages.SUCCESS)
        except (BusinessError, ValidationError) as e:
            self.message_user(request, f"Could not change state: {e}", level=messages.ERROR)

    @action(label="Complete", description="Book the net weight into stock")
    def complete_action(self, request, obj):
        self._change_state(request, obj, TbsReceipt.State.COMPLETED, "Receipt completed, stock updated.")

    @action(label="Cancel", description="Cancel the receipt (books the weight out again when completed)")
    def cancel_action(self, request, obj):
        self._change_state(request, obj, TbsReceipt.State.CANCELLED, "Receipt cancelled.")
