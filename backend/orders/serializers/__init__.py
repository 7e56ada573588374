"""
Orders serializers package - modular serializer layer.
"""

# Checkout serializers
from .checkout_serializers import (
    CartItemSerializer,
    CheckoutSerializer,
    CustomizationSerializer,
    GuestCheckoutSerializer,
    GuestInfoSerializer,
    RestaurantGroupSerializer,
)

# Order serializers
from .order_serializers import CheckoutResultSerializer, OrderSerializer

# Status serializers
from .status_serializers import CancelOrderSerializer, UpdateOrderStatusSerializer

__all__ = [
    # Checkout
    "CartItemSerializer",
    "CheckoutSerializer",
    "CustomizationSerializer",
    "GuestCheckoutSerializer",
    "GuestInfoSerializer",
    "RestaurantGroupSerializer",
    # Orders
    "CheckoutResultSerializer",
    "OrderSerializer",
    # Status
    "CancelOrderSerializer",
    "UpdateOrderStatusSerializer",
]
