from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import DocumentStateAdminMixin, EntityScopedAdminMixin
from core.exceptions import BusinessError
from shipping import services
from shipping.models import ProductShipment


@admin.register(ProductShipment)
class ProductShipmentAdmin(DjangoObjectActions, DocumentStateAdminMixin, EntityScopedAdminMixin,
                           GuardedModelAdmin, SimpleHistoryAdmin):
    locked_states = (ProductShipment.State.COMPLETED, ProductShipment.State.CANCELLED)
    derived_fields = ("net_weight",)

    list_display = ("number", "shipped_on", "buyer", "material", "net_weight", "seal_number", "state")
    list_filter = ("entity", "state", "material", "shipped_on")
    search_fields = ("number", "seal_number", "contract_no", "buyer__name", "transporter__vehicle_plate")
    date_hierarchy = "shipped_on"
    readonly_fields = ("number", "seal_number", "state", "net_weight", "completed_at", "cancelled_at")

    change_actions = ("complete_action", "cancel_action")

    def has_add_permission(self, request):
        return False

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        if obj.state == ProductShipment.State.DRAFT:
            return ("complete_action", "cancel_action")
        if obj.state == ProductShipment.State.COMPLETED:
            return ("cancel_action",)
        return ()

    def _change_state(self, request, obj, target, done_msg):
        try:
            services.change_state(obj.entity, obj.pk, target, by=request.user)
            self.message_user(request, done_msg, level=messages.SUCCESS)
        except (BusinessError, ValidationError) as e:
            self.message_user(request, f"Could not change state: {e}", level=messages.ERROR)

    @action(label="Complete", description="Book the net weight out of stock")
    def complete_action(self, request, obj):
        self._change_state(request, obj, ProductShipment.State.COMPLETED, "Shipment completed, stock updated.")

    @action(label="Cancel", description="Cancel the shipment (books the weight back when completed)")
    def cancel_action(self, request, obj):
        self._change_state(request, obj, ProductShipment.State.CANCELLED, "Shipment cancelled.")
