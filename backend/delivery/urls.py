from django.urls import path

from .views import ShipdayWebhookView

app_name = "delivery"

urlpatterns = [
    path("shipday/webhook/", ShipdayWebhookView.as_view(), name="shipday-webhook"),
]
