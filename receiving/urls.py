from django.urls import path

from receiving.views.tbs import receipt_detail, receipt_list, statistics

app_name = "receiving"

urlpatterns = [
    path("receiving/tbs/", receipt_list, name="tbs-list"),
    path("receiving/tbs/statistics/", statistics, name="tbs-statistics"),
    path("receiving/tbs/<int:pk>/", receipt_detail, name="tbs-detail"),
]
