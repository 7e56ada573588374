import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from core_backend.exceptions import ValidationError
from .models import DeliveryZone, Restaurant

logger = logging.getLogger(__name__)

ZIP_KEYS = ("zip_code", "zipCode", "postal_code", "zip")
UNSERVED_AREA_MESSAGE = "Sorry, we don't deliver to this area yet."


@dataclass(frozen=True)
class ZoneQuote:
    zip_code: str
    delivery_fee: Decimal
    tax_rate: Decimal
    zone: Optional[DeliveryZone] = None


class DeliveryZoneService:
    """
    Read-only lookup of the delivery fee and tax rate for an address.
    """

    @staticmethod
    def extract_zip(address) -> Optional[str]:
        if not isinstance(address, dict):
            return None
        for key in ZIP_KEYS:
            value = address.get(key)
            if value:
                return re.sub(r"\s+", "", str(value))[:5]
        return None

    @staticmethod
    def resolve(address) -> ZoneQuote:
        """
        Resolves the delivery zone for an address.

        Raises:
            ValidationError: If the address has no usable zip code or the
                zip code is not served.
        """
        if not address:
            raise ValidationError("Delivery address is required")

        zip_code = DeliveryZoneService.extract_zip(address)
        if not zip_code:
            raise ValidationError("Zip code is required in delivery address")
        if not re.fullmatch(r"\d{5}", zip_code):
            raise ValidationError("Invalid zip code format")

        zone = DeliveryZone.objects.filter(zip_code=zip_code, is_available=True).first()
        if zone is None:
            logger.warning(f"Checkout attempted for unserved zip code {zip_code}")
            raise ValidationError(UNSERVED_AREA_MESSAGE, details={"zip_code": zip_code})

        delivery_fee = zone.delivery_fee if zone.delivery_fee is not None else settings.DEFAULT_DELIVERY_FEE
        tax_rate = zone.tax_rate if zone.tax_rate is not None else settings.DEFAULT_TAX_RATE

        return ZoneQuote(
            zip_code=zip_code,
            delivery_fee=Decimal(delivery_fee),
            tax_rate=Decimal(tax_rate),
            zone=zone,
        )


class RestaurantService:
    @staticmethod
    def get_active_restaurants(restaurant_ids: Iterable[str]) -> Dict[str, Restaurant]:
        """
        Loads the restaurants a cart refers to, keyed by their id as a string.

        Raises:
            ValidationError: If any id is unknown or the restaurant is inactive.
        """
        wanted = {str(restaurant_id) for restaurant_id in restaurant_ids}
        try:
            found = {
                str(restaurant.id): restaurant
                for restaurant in Restaurant.objects.filter(id__in=wanted, is_active=True)
            }
        except (ValueError, DjangoValidationError):
            raise ValidationError("Invalid restaurant id in cart")

        missing = sorted(wanted - set(found))
        if missing:
            raise ValidationError(
                "Some restaurants in your cart are unavailable",
                details={"restaurant_ids": missing},
            )
        return found
