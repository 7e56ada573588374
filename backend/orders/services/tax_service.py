import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import stripe
from django.conf import settings

from payments.money import from_minor, to_minor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxQuote:
    amount: Optional[Decimal]
    rate: Decimal
    source: str


class TaxService:
    """
    Tax for a whole checkout.

    Stripe Tax is asked first when enabled. Any processor problem falls back
    to the zone's static rate so checkout is never blocked on tax service
    availability. A quote never raises.
    """

    FALLBACK = "fallback"
    STRIPE = "stripe_tax"

    def quote(self, discounted_subtotal: Decimal, address, fallback_rate: Optional[Decimal] = None) -> TaxQuote:
        rate = Decimal(fallback_rate if fallback_rate is not None else settings.DEFAULT_TAX_RATE)

        if settings.STRIPE_TAX_ENABLED and settings.STRIPE_SECRET_KEY and discounted_subtotal > 0:
            amount = self._stripe_tax_amount(discounted_subtotal, address or {})
            if amount is not None:
                return TaxQuote(amount=amount, rate=rate, source=self.STRIPE)

        return TaxQuote(amount=discounted_subtotal * rate, rate=rate, source=self.FALLBACK)

    def _stripe_tax_amount(self, discounted_subtotal: Decimal, address) -> Optional[Decimal]:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        try:
            calculation = stripe.tax.Calculation.create(
                currency=settings.PAYMENT_CURRENCY,
                line_items=[
                    {
                        "amount": to_minor(discounted_subtotal),
                        "reference": "checkout_subtotal",
                        "tax_behavior": "exclusive",
                    }
                ],
                customer_details={
                    "address": {
                        "line1": address.get("street") or address.get("line1") or "",
                        "city": address.get("city") or "",
                        "state": address.get("state") or "",
                        "postal_code": address.get("zip_code") or address.get("postal_code") or "",
                        "country": address.get("country") or "US",
                    },
                    "address_source": "shipping",
                },
            )
            return from_minor(calculation.tax_amount_exclusive)
        except stripe.StripeError as e:
            logger.warning(f"Stripe Tax unavailable, using fallback rate: {e}")
            return None
