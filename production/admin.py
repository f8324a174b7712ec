from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django_object_actions import DjangoObjectActions, action
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import DocumentStateAdminMixin, EntityScopedAdminMixin
from core.exceptions import BusinessError
from production import services
from production.models import ProductionBatch, ProductionYield


class ProductionYieldInline(admin.TabularInline):
    model = ProductionYield
    extra = 0
    fields = ("output_material", "output_quantity", "yield_percentage")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ProductionBatch)
class ProductionBatchAdmin(DjangoObjectActions, DocumentStateAdminMixin, EntityScopedAdminMixin,
                           GuardedModelAdmin, SimpleHistoryAdmin):
    """Batches are created through the API; the admin only moves them along."""

    locked_states = (ProductionBatch.State.COMPLETED,)

    inlines = [ProductionYieldInline]
    list_display = ("number", "entity", "production_date", "input_material", "input_quantity", "state", "operator_name")
    list_filter = ("entity", "state", "production_date")
    search_fields = ("number",)
    date_hierarchy = "production_date"
    readonly_fields = ("number", "state", "input_material", "input_quantity", "completed_at", "cancelled_at")

    change_actions = ("start_action", "complete_action", "cancel_action")

    def has_add_permission(self, request):
        return False

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        S = ProductionBatch.State
        return {
            S.DRAFT: ("start_action", "complete_action", "cancel_action"),
            S.IN_PROGRESS: ("complete_action", "cancel_action"),
            S.COMPLETED: ("cancel_action",),
            S.CANCELLED: ("complete_action",),
        }.get(obj.state, ())

    def _change_state(self, request, obj, target, done_msg):
        try:
            services.change_state(obj.entity, obj.pk, target, by=request.user)
            self.message_user(request, done_msg, level=messages.SUCCESS)
        except (BusinessError, ValidationError) as e:
            self.message_user(request, f"Could not change state: {e}", level=messages.ERROR)

    @action(label="Start", description="Mark the batch as in progress")
    def start_action(self, request, obj):
        self._change_state(request, obj, ProductionBatch.State.IN_PROGRESS, "Batch started.")

    @action(label="Complete", description="Consume input stock and book the outputs")
    def complete_action(self, request, obj):
        self._change_state(request, obj, ProductionBatch.State.COMPLETED, "Batch completed, stock updated.")

    @action(label="Cancel", description="Cancel the batch (reverses stock when it was completed)")
    def cancel_action(self, request, obj):
        self._change_state(request, obj, ProductionBatch.State.CANCELLED, "Batch cancelled.")
