from django.urls import path

from production.views.batches import (
    batch_detail,
    batch_list,
    daily_report,
    input_stock,
    output_categories,
    output_materials,
)

app_name = "production"

urlpatterns = [
    path("production/batches/", batch_list, name="batch-list"),
    path("production/batches/<int:pk>/", batch_detail, name="batch-detail"),
    path("production/daily-report/", daily_report, name="daily-report"),
    path("production/output-categories/", output_categories, name="output-categories"),
    path("production/output-materials/", output_materials, name="output-materials"),
    path("production/input-stock/", input_stock, name="input-stock"),
]
