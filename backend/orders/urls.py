from django.urls import include, path
from rest_framework import routers

from .views import CheckoutQuoteView, CheckoutView, GuestCheckoutView, OrderViewSet

app_name = "orders"

router = routers.SimpleRouter()
router.register(r"", OrderViewSet, basename="order")

urlpatterns = [
    # Explicit paths first so they are not captured by the detail route.
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("guest-checkout/", GuestCheckoutView.as_view(), name="guest-checkout"),
    path("quote/", CheckoutQuoteView.as_view(), name="quote"),
    path("", include(router.urls)),
]
