"""Object permissions (django-guardian) for entity-owned rows.

Whoever creates a row through the admin, and every entity admin of the row's
entity, gets object permissions on it. Ledger rows (balances and movements)
are only ever viewed, so they get "view" alone.
"""

from guardian.shortcuts import assign_perm

from core.models import UserProfile

EDITABLE_PERMS = ("view", "change", "delete")
VIEW_ONLY_PERMS = ("view",)

VIEW_ONLY_MODELS = {
    "inventory.stockbalance",
    "inventory.stockmovement",
    "inventory.tankmovement",
}


def perms_for(obj):
    return VIEW_ONLY_PERMS if obj._meta.label_lower in VIEW_ONLY_MODELS else EDITABLE_PERMS


def grant_object_perms(obj, user=None):
    """Give `user` and the entity admins of obj.entity the perms for obj.

    Returns the users that received permissions.
    """
    users = []
    if user is not None and user.is_authenticated:
        users.append(user)

    admins = UserProfile.objects.filter(entity_id=obj.entity_id, is_entity_admin=True).select_related("user")
    users.extend(p.user for p in admins if p.user not in users)

    for u in users:
        for p in perms_for(obj):
            assign_perm(f"{obj._meta.app_label}.{p}_{obj._meta.model_name}", u, obj)
    return users
