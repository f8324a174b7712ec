from django.contrib import admin
from guardian.admin import GuardedModelAdmin
from simple_history.admin import SimpleHistoryAdmin

from core.admin_utils import EntityScopedAdminMixin
from core.permissions import grant_object_perms
from inventory.forms import TankAdminForm
from inventory.models import StockBalance, StockMovement, Tank, TankMovement
from inventory.services.tanks import update_tank


class ReadOnlyLedgerMixin:
    """Balances and movements are written by the services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockBalance)
class StockBalanceAdmin(ReadOnlyLedgerMixin, EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "material", "quantity_on_hand", "updated_at")
    list_filter = ("entity",)
    search_fields = ("material__code", "material__name")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyLedgerMixin, EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("transaction_at", "entity", "material", "movement_type", "quantity",
                    "balance_before", "balance_after", "reference", "operator_name")
    list_filter = ("entity", "movement_type", "material")
    search_fields = ("reference", "note", "material__code")
    date_hierarchy = "transaction_at"


class TankMovementInline(ReadOnlyLedgerMixin, admin.TabularInline):
    model = TankMovement
    extra = 0
    fields = ("transaction_at", "movement_type", "direction", "quantity",
              "balance_before", "balance_after", "reference", "operator_name")
    readonly_fields = fields
    ordering = ("-transaction_at", "-id")


@admin.register(Tank)
class TankAdmin(EntityScopedAdminMixin, GuardedModelAdmin, SimpleHistoryAdmin):
    list_display = ("name", "entity", "material", "capacity", "current_volume", "fill_percent")
    list_filter = ("entity", "material")
    search_fields = ("name",)
    inlines = [TankMovementInline]
    form = TankAdminForm

    def get_readonly_fields(self, request, obj=None):
        ro = list(super().get_readonly_fields(request, obj))
        ro.append("current_volume")
        if obj is not None:
            ro.append("material")
        return ro

    def save_model(self, request, obj, form, change):
        if not change:
            return super().save_model(request, obj, form, change)
        # the volume may have moved since the form was loaded
        update_tank(obj.entity, obj.pk, name=obj.name, capacity=obj.capacity)
        grant_object_perms(obj, request.user)
