import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.db.models import F

from core_backend.exceptions import ValidationError
from .models import PromoCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoResult:
    code: str
    discount_type: str
    value: Decimal

    def as_dict(self):
        return {"code": self.code, "type": self.discount_type, "value": str(self.value)}


class PromoCodeService:
    @staticmethod
    def validate(code: str, subtotal: Optional[Decimal] = None) -> PromoResult:
        """
        Checks that a promo code can be applied to a checkout.

        Args:
            code: The code as typed by the customer (case-insensitive)
            subtotal: Pre-discount checkout subtotal, used for the minimum
                order check when given

        Raises:
            ValidationError: With a message the customer can act on.
        """
        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationError("Promo code required")

        promo = PromoCode.objects.filter(code=normalized).first()
        if promo is None or not promo.is_active:
            raise ValidationError("Invalid promo code")
        if not promo.is_currently_active():
            raise ValidationError("This promo code has expired or is not active yet")
        if promo.is_exhausted:
            raise ValidationError("This promo code has reached its usage limit")
        if (
            subtotal is not None
            and promo.minimum_order_amount
            and Decimal(subtotal) < promo.minimum_order_amount
        ):
            raise ValidationError(
                f"This promo code requires a minimum order of ${promo.minimum_order_amount}"
            )

        return PromoResult(
            code=promo.code,
            discount_type=promo.discount_type,
            value=promo.discount_value,
        )

    @staticmethod
    def redeem(code: str) -> None:
        """Counts one redemption. Safe under concurrent settlements."""
        updated = PromoCode.objects.filter(code=(code or "").strip().upper()).update(
            usage_count=F("usage_count") + 1
        )
        if updated:
            logger.info(f"Promo code {code} redeemed")
        else:
            logger.warning(f"Tried to redeem unknown promo code {code}")
