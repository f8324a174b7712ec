from django.contrib import admin
from guardian.admin import GuardedModelAdmin

from core.admin_utils import EntityScopedAdminMixin
from core.models import Entity, NumberSeries, UserProfile

@admin.register(Entity)
class EntityAdmin(GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")

@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "entity", "is_entity_admin")
    list_filter = ("entity", "is_entity_admin")
    search_fields = ("user__username", "user__first_name", "user__last_name")

@admin.register(NumberSeries)
class NumberSeriesAdmin(EntityScopedAdminMixin, GuardedModelAdmin, admin.ModelAdmin):
    list_display = ("entity", "code", "prefix", "next_number", "min_width")
    list_filter = ("entity",)
    search_fields = ("code",)
