"""
URL configuration for core_backend project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.1/topics/http/urls/
"""

from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path("api/health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("api/orders/", include("orders.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/promo-codes/", include("discounts.urls")),
    path("api/delivery/", include("delivery.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("api/admin/orders/", include("notifications.stream_urls")),
]
