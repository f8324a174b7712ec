from django.urls import path

from warehouse.views.goods_issues import issue_detail, issue_from_store_request, issue_list
from warehouse.views.goods_receipts import receipt_detail, receipt_list
from warehouse.views.store_requests import check_stock, request_detail, request_list

app_name = "warehouse"

urlpatterns = [
    path("warehouse/goods-receipts/", receipt_list, name="receipt-list"),
    path("warehouse/goods-receipts/<int:pk>/", receipt_detail, name="receipt-detail"),

    path("warehouse/store-requests/", request_list, name="request-list"),
    path("warehouse/store-requests/<int:pk>/", request_detail, name="request-detail"),
    path("warehouse/store-requests/<int:pk>/check-stock/", check_stock, name="request-check-stock"),

    path("warehouse/goods-issues/", issue_list, name="issue-list"),
    path("warehouse/goods-issues/from-store-request/", issue_from_store_request, name="issue-from-request"),
    path("warehouse/goods-issues/<int:pk>/", issue_detail, name="issue-detail"),
]
