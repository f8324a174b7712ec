from django.db import models
from django.conf import settings

class Entity(models.Model):
    """Company (tenant).

    Key principle:
    - Every business object belongs to an Entity (multi-tenant / multi-company).
    - No object may reference an object of another Entity.
    """

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "entities"

    def __str__(self):
        return self.name


class UserProfile(models.Model):
    """Connect a user to an Entity."""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    entity = models.ForeignKey("core.Entity", on_delete=models.CASCADE, related_name="users")

    is_entity_admin = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.user} @ {self.entity}"

    @property
    def display_name(self) -> str:
        """Name stamped on movements and documents as operator."""
        return self.user.get_full_name() or self.user.get_username()
