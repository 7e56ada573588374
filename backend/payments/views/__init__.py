"""
Payments views package.
"""

from .intents import ConfirmPaymentIntentView, CreatePaymentIntentView
from .webhooks import StripeWebhookView

__all__ = [
    "CreatePaymentIntentView",
    "ConfirmPaymentIntentView",
    "StripeWebhookView",
]
