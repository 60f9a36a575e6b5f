"""
URL configuration for runtime license endpoints.
"""

from django.urls import path

from api.v1.license import views

app_name = "license"

urlpatterns = [
    path("activate", views.ActivateLicenseView.as_view(), name="activate"),
    path("validate", views.ValidateLicenseView.as_view(), name="validate"),
    path("info", views.LicenseInfoView.as_view(), name="info"),
    path("recover", views.RecoverLicenseView.as_view(), name="recover"),
]
