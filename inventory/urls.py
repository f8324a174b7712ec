from django.urls import path

from inventory.views.stock import movement_list, stock_overview
from inventory.views.tanks import (
    tank_adjust,
    tank_detail,
    tank_history,
    tank_in,
    tank_list,
    tank_out,
    tank_summary,
    tank_transfer,
)

app_name = "inventory"

urlpatterns = [
    path("stock/", stock_overview, name="stock-overview"),
    path("stock/movements/", movement_list, name="movement-list"),

    path("tanks/", tank_list, name="tank-list"),
    path("tanks/transfer/", tank_transfer, name="tank-transfer"),
    path("tanks/history/", tank_history, name="tank-history"),
    path("tanks/summary/", tank_summary, name="tank-summary"),
    path("tanks/<int:pk>/", tank_detail, name="tank-detail"),
    path("tanks/<int:pk>/in/", tank_in, name="tank-in"),
    path("tanks/<int:pk>/out/", tank_out, name="tank-out"),
    path("tanks/<int:pk>/adjust/", tank_adjust, name="tank-adjust"),
]
