import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe
from django.conf import settings

from .exceptions import PaymentDeclined, PaymentError, PaymentTransientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessorIntent:
    """The fields of a processor payment intent the orchestrator relies on."""

    id: str
    status: str
    client_secret: Optional[str]
    amount: int
    currency: str
    failure_message: Optional[str] = None

    SUCCEEDED = "succeeded"
    CANCELED = "canceled"

    @property
    def succeeded(self) -> bool:
        return self.status == self.SUCCEEDED

    @property
    def failed(self) -> bool:
        # Stripe moves a declined intent back to requires_payment_method
        # and records the decline in last_payment_error.
        if self.status == self.CANCELED:
            return True
        return self.status == "requires_payment_method" and bool(self.failure_message)

    @classmethod
    def from_stripe(cls, intent) -> "ProcessorIntent":
        last_error = getattr(intent, "last_payment_error", None)
        return cls(
            id=intent.id,
            status=intent.status,
            client_secret=getattr(intent, "client_secret", None),
            amount=getattr(intent, "amount", 0),
            currency=getattr(intent, "currency", settings.PAYMENT_CURRENCY),
            failure_message=getattr(last_error, "message", None) if last_error else None,
        )


@contextmanager
def translate_stripe_errors(operation: str):
    """
    Re-raises stripe errors as payment exceptions:
    - CardError -> PaymentDeclined (terminal for the intent)
    - connection, rate limit and 5xx API errors -> PaymentTransientError
    - anything else from stripe -> PaymentError
    """
    try:
        yield
    except stripe.CardError as e:
        error = getattr(e, "error", None)
        intent = getattr(error, "payment_intent", None) if error else None
        logger.warning(f"Stripe declined {operation}: code={e.code}")
        raise PaymentDeclined(
            e.user_message or PaymentDeclined.default_message,
            details={"decline_code": getattr(error, "decline_code", None) or e.code},
            processor_intent_id=getattr(intent, "id", None),
        ) from e
    except (stripe.APIConnectionError, stripe.RateLimitError) as e:
        logger.warning(f"Stripe unavailable during {operation}: {e}")
        raise PaymentTransientError() from e
    except stripe.APIError as e:
        logger.error(f"Stripe API error during {operation}: {e}")
        raise PaymentTransientError() from e
    except stripe.StripeError as e:
        logger.error(f"Stripe error during {operation}: {type(e).__name__}: {e}")
        raise PaymentError() from e


class StripeGateway:
    """
    Thin wrapper around the Stripe PaymentIntent API for card-not-present
    checkout payments.
    """

    def _configure(self):
        stripe.api_key = settings.STRIPE_SECRET_KEY

    def create_intent(
        self,
        *,
        amount_minor: int,
        currency: str,
        idempotency_key: str,
        metadata: Dict[str, Any],
        payment_method_id: Optional[str] = None,
        receipt_email: Optional[str] = None,
    ) -> ProcessorIntent:
        self._configure()
        params = {
            "amount": amount_minor,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
        }
        if receipt_email:
            params["receipt_email"] = receipt_email
        if payment_method_id:
            # Saved card: confirm immediately, the customer is present
            params.update(payment_method=payment_method_id, confirm=True, off_session=False)

        with translate_stripe_errors("create_intent"):
            intent = stripe.PaymentIntent.create(idempotency_key=idempotency_key, **params)
        return ProcessorIntent.from_stripe(intent)

    def confirm_intent(self, intent_id: str, payment_method_id: str) -> ProcessorIntent:
        self._configure()
        with translate_stripe_errors("confirm_intent"):
            intent = stripe.PaymentIntent.confirm(intent_id, payment_method=payment_method_id)
        return ProcessorIntent.from_stripe(intent)

    def retrieve_intent(self, intent_id: str) -> ProcessorIntent:
        self._configure()
        with translate_stripe_errors("retrieve_intent"):
            intent = stripe.PaymentIntent.retrieve(intent_id)
        return ProcessorIntent.from_stripe(intent)

    @staticmethod
    def construct_event(payload: bytes, signature: Optional[str]):
        """
        Verifies a webhook signature. Raises ValueError for an unparsable
        payload and stripe.SignatureVerificationError for a bad signature.
        """
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
