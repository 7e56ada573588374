"""
Orders views package - modular view layer with mixins.
"""

from .checkout_views import CheckoutQuoteView, CheckoutView, GuestCheckoutView
from .order_viewset import OrderViewSet

__all__ = [
    "CheckoutView",
    "GuestCheckoutView",
    "CheckoutQuoteView",
    "OrderViewSet",
]
