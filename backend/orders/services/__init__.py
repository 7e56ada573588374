"""
Orders services package.

- CheckoutService: prices a cart and persists it (PricingEngine + OrderSplitter)
- OrderSplitter: one order per restaurant with allocated shared charges
- FulfillmentStateMachine: per-order delivery status lifecycle
- TaxService: checkout tax quote with static-rate fallback
- OrderEventPublisher: order.created / order.updated events and admin notifications
"""

from .checkout_service import CheckoutQuote, CheckoutRequest, CheckoutService
from .event_service import OrderEventPublisher
from .fulfillment_service import FulfillmentStateMachine, TransitionResult, TransitionSource
from .split_service import OrderDraft, OrderSplitter, SplitResult
from .tax_service import TaxQuote, TaxService

__all__ = [
    # Checkout
    "CheckoutService",
    "CheckoutRequest",
    "CheckoutQuote",
    # Splitting
    "OrderSplitter",
    "OrderDraft",
    "SplitResult",
    # Fulfillment
    "FulfillmentStateMachine",
    "TransitionResult",
    "TransitionSource",
    # Tax
    "TaxService",
    "TaxQuote",
    # Events
    "OrderEventPublisher",
]
