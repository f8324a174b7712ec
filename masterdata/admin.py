from django.contrib import admin
from guardian.admin import GuardedModelAdmin
from mptt.admin import MPTTModelAdmin

from core.admin_utils import EntityScopedAdminMixin
from masterdata.models import Buyer, Material, MaterialCategory, Supplier, Transporter, Unit

@admin.register(MaterialCategory)
class MaterialCategoryAdmin(EntityScopedAdminMixin, GuardedModelAdmin, MPTTModelAdmin):
    list_display = ("name", "entity", "description")
    list_filter = ("entity",)
    search_fields = ("name",)

@admin.register(Unit)
class UnitAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "symbol", "name")
    list_filter = ("entity",)
    search_fields = ("symbol", "name")

@admin.register(Material)
class MaterialAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "code", "name", "category", "unit", "is_active")
    list_filter = ("entity", "category", "is_active")
    search_fields = ("code", "name")

@admin.register(Supplier)
class SupplierAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "code", "name", "supplier_type", "owner_name", "phone", "is_active")
    list_filter = ("entity", "supplier_type", "is_active")
    search_fields = ("code", "name", "owner_name")

@admin.register(Transporter)
class TransporterAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "vehicle_plate", "driver_name", "phone")
    list_filter = ("entity",)
    search_fields = ("vehicle_plate", "driver_name")

@admin.register(Buyer)
class BuyerAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "code", "name", "contact_person", "tax_status", "is_active")
    list_filter = ("entity", "tax_status", "is_active")
    search_fields = ("code", "name", "contact_person", "npwp")
