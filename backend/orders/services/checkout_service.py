import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings

from core_backend.exceptions import ValidationError
from discounts.services import PromoCodeService
from orders.calculators import CartLine, PriceBreakdown, PricingEngine, TipSpec
from restaurants.services import DeliveryZoneService, RestaurantService, ZoneQuote
from .split_service import OrderSplitter, SplitResult
from .tax_service import TaxService

logger = logging.getLogger(__name__)


@dataclass
class CheckoutRequest:
    lines: List[CartLine]
    delivery_address: Dict[str, Any]
    delivery_instructions: str = ""
    promo_code: Optional[str] = None
    tip: Optional[TipSpec] = None
    client_total: Optional[Decimal] = None
    guest_info: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CheckoutQuote:
    breakdown: PriceBreakdown
    zone: ZoneQuote
    restaurants: Dict[str, Any]


class CheckoutService:
    """
    Prices a cart and persists it as one order per restaurant.

    Every lookup and remote call (zone, promo, tax) happens before the
    database transaction opens. Client-supplied totals are advisory only.
    """

    def __init__(self, splitter: Optional[OrderSplitter] = None, tax_service: Optional[TaxService] = None):
        self.splitter = splitter or OrderSplitter()
        self.tax_service = tax_service or TaxService()

    @staticmethod
    def parse_lines(restaurant_groups=None, items=None) -> List[CartLine]:
        """
        Accepts either restaurant_groups ([{restaurant_id, items: [...]}]) or
        a flat items list whose lines carry their own restaurant_id.
        """
        lines = []
        for group in restaurant_groups or []:
            restaurant_id = group.get("restaurant_id") or group.get("restaurantId")
            if not restaurant_id:
                raise ValidationError("Every restaurant group needs a restaurant_id")
            for item in group.get("items") or []:
                lines.append(CartLine.from_payload(item, restaurant_id=restaurant_id))
        for item in items or []:
            lines.append(CartLine.from_payload(item))

        if not lines:
            raise ValidationError("Cart is empty")
        return lines

    def quote(self, request: CheckoutRequest) -> CheckoutQuote:
        groups = PricingEngine.group_lines(request.lines)
        restaurants = RestaurantService.get_active_restaurants(g.restaurant_id for g in groups)
        zone = DeliveryZoneService.resolve(request.delivery_address)

        subtotal = sum((group.subtotal for group in groups), Decimal("0"))
        promo = None
        if request.promo_code:
            promo = PromoCodeService.validate(request.promo_code, subtotal)

        discount = PricingEngine.compute_discount(subtotal, promo)
        tax_quote = self.tax_service.quote(subtotal - discount, request.delivery_address, zone.tax_rate)

        breakdown = PricingEngine.price(
            request.lines,
            delivery_fee=zone.delivery_fee,
            tax_rate=tax_quote.rate,
            tax_amount=tax_quote.amount,
            tax_source=tax_quote.source,
            promo=promo,
            tip=request.tip,
            currency=settings.PAYMENT_CURRENCY,
        )
        return CheckoutQuote(breakdown=breakdown, zone=zone, restaurants=restaurants)

    def submit(self, request: CheckoutRequest, customer=None) -> SplitResult:
        quote = self.quote(request)

        result = self.splitter.create_orders(
            quote.breakdown,
            restaurants=quote.restaurants,
            delivery_address=request.delivery_address,
            delivery_instructions=request.delivery_instructions,
            customer=customer,
            guest_info=request.guest_info,
        )

        if request.client_total is not None and request.client_total != result.combined_total:
            logger.info(
                f"Checkout {result.checkout_id}: client total {request.client_total} "
                f"differs from server total {result.combined_total}; using server total"
            )
        return result
