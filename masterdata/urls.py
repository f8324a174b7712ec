from django.urls import path

from masterdata.views.materials import category_list, material_detail, material_list, unit_list
from masterdata.views.suppliers import (
    buyer_detail,
    buyer_list,
    supplier_detail,
    supplier_list,
    transporter_list,
)

app_name = "masterdata"

urlpatterns = [
    path("categories/", category_list, name="category-list"),
    path("units/", unit_list, name="unit-list"),
    path("materials/", material_list, name="material-list"),
    path("materials/<int:pk>/", material_detail, name="material-detail"),

    path("suppliers/", supplier_list, name="supplier-list"),
    path("suppliers/<int:pk>/", supplier_detail, name="supplier-detail"),
    path("transporters/", transporter_list, name="transporter-list"),

    path("buyers/", buyer_list, name="buyer-list"),
    path("buyers/<int:pk>/", buyer_detail, name="buyer-detail"),
]
