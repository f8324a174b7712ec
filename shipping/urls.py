from django.urls import path

from shipping.views.shipments import shipment_detail, shipment_list, statistics

app_name = "shipping"

urlpatterns = [
    path("shipping/shipments/", shipment_list, name="shipment-list"),
    path("shipping/shipments/statistics/", statistics, name="shipment-statistics"),
    path("shipping/shipments/<int:pk>/", shipment_detail, name="shipment-detail"),
]
