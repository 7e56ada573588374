from django.urls import path

from .views import ConfirmPaymentIntentView, CreatePaymentIntentView, StripeWebhookView

app_name = "payments"

urlpatterns = [
    path("create-intent/", CreatePaymentIntentView.as_view(), name="create-intent"),
    path("confirm-intent/", ConfirmPaymentIntentView.as_view(), name="confirm-intent"),
    path("webhook/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
