"""
URL configuration for operator back office endpoints.
"""

from django.urls import path

from api.v1.admin import views

app_name = "admin-api"

urlpatterns = [
    path("license/change-device", views.ChangeDeviceView.as_view(), name="change-device"),
    path("orders", views.ListOrdersView.as_view(), name="list-orders"),
    path(
        "orders/<uuid:order_id>/complete",
        views.CompleteManualOrderView.as_view(),
        name="complete-order",
    ),
    path(
        "orders/<uuid:order_id>/resend-email",
        views.ResendPurchaseEmailView.as_view(),
        name="resend-email",
    ),
    path("invoices", views.ListInvoicesView.as_view(), name="list-invoices"),
]
