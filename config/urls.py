from django.contrib import admin
from django.urls import include, path

admin.autodiscover()

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/pks/", include("masterdata.urls")),
    path("api/pks/", include("inventory.urls")),
    path("api/pks/", include("production.urls")),
    path("api/pks/", include("receiving.urls")),
    path("api/pks/", include("warehouse.urls")),
    path("api/pks/", include("shipping.urls")),
]
