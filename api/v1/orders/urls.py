"""
URL configuration for purchase API endpoints.
"""

from django.urls import path

from api.v1.orders import views

app_name = "orders"

urlpatterns = [
    path("orders/manual", views.CreateManualOrderView.as_view(), name="create-manual-order"),
    path("webhook/payment", views.PaymentWebhookView.as_view(), name="payment-webhook"),
]
