"""Admin mixins shared by all PKS apps."""

from django.core.exceptions import PermissionDenied

from core.models import Entity
from core.permissions import grant_object_perms


class EntityScopedAdminMixin:
    """Keep admin users inside their own entity.

    After save, guardian object permissions are granted to the editor and the
    entity admins (signals don't know request.user, so this happens here).
    The entity of an existing row is never editable.
    """

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if getattr(obj, "entity_id", None) is not None:
            grant_object_perms(obj, request.user)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        profile = getattr(request.user, "profile", None)
        if not profile:
            return qs.none()
        if hasattr(qs.model, "entity_id"):
            return qs.filter(entity=profile.entity)
        return qs

    def get_readonly_fields(self, request, obj=None):
        ro = list(super().get_readonly_fields(request, obj))
        if obj is not None and hasattr(obj, "entity_id") and "entity" not in ro:
            ro.append("entity")
        return ro

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        profile = getattr(request.user, "profile", None)
        if profile:
            initial.setdefault("entity", profile.entity_id)
        return initial

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)

        # new rows of non-superusers land in their own entity
        if obj is None and "entity" in form.base_fields and not request.user.is_superuser:
            profile = getattr(request.user, "profile", None)
            if profile:
                field = form.base_fields["entity"]
                field.initial = profile.entity_id
                field.queryset = Entity.objects.filter(pk=profile.entity_id)

        return form


class DocumentStateAdminMixin:
    """Admin for documents with a `state` FSM field.

    In one of `locked_states` the document has touched stock: every field is
    read-only and it cannot be deleted. Saving an unlocked document re-reads
    its state under a row lock and writes only the fields the form changed,
    so a state change committed meanwhile is never overwritten.
    """

    locked_states = ()
    derived_fields = ()

    def is_locked(self, obj):
        return obj is not None and obj.state in self.locked_states

    def get_readonly_fields(self, request, obj=None):
        ro = list(super().get_readonly_fields(request, obj))
        if self.is_locked(obj):
            ro += [f.name for f in self.model._meta.concrete_fields
                   if f.editable and not f.primary_key and f.name not in ro]
        return ro

    def has_delete_permission(self, request, obj=None):
        if self.is_locked(obj):
            return False
        return super().has_delete_permission(request, obj)

    def save_model(self, request, obj, form, change):
        if not change:
            return super().save_model(request, obj, form, change)

        current = self.model.objects.select_for_update().get(pk=obj.pk)
        if self.is_locked(current):
            raise PermissionDenied(f"{current} is {current.state} and can no longer be edited.")

        names = {f.name for f in self.model._meta.concrete_fields}
        fields = [name for name in form.changed_data if name in names]
        if fields:
            fields += [name for name in (*self.derived_fields, "updated_at") if name in names]
            obj.save(update_fields=fields)
