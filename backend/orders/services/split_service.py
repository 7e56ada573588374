import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db import transaction
from django.db.models import Sum

from core_backend.exceptions import ValidationError
from orders.calculators import CartLine, PriceBreakdown
from orders.models import Order
from payments.money import allocate_minor, from_minor, split_evenly, to_minor, validate_minor_sum
from .event_service import OrderEventPublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderDraft:
    """One restaurant's share of a checkout, in minor units."""

    restaurant_id: str
    lines: Tuple[CartLine, ...]
    subtotal: int
    discount: int
    delivery_fee: int
    tax: int
    tip: int

    @property
    def total(self) -> int:
        return self.subtotal - self.discount + self.delivery_fee + self.tax + self.tip


@dataclass
class SplitResult:
    checkout_id: uuid.UUID
    orders: List[Order]
    combined_total: Decimal

    @property
    def order_ids(self):
        return [order.id for order in self.orders]


class OrderSplitter:
    """
    Turns a priced cart into one persisted order per restaurant.

    Allocation of the checkout-level charges:
    - discount: proportional to each restaurant's subtotal
    - delivery fee: equal split, leftover cents to the first restaurants
    - tax: the single checkout tax amount, proportional to each restaurant's
      discounted subtotal
    - tip: computed once on the combined discounted subtotal, then
      attributed proportionally to each restaurant's discounted subtotal

    All shares are integer cents, so the orders add up to the checkout total
    exactly.
    """

    def __init__(self, events: Optional[OrderEventPublisher] = None):
        self.events = events or OrderEventPublisher()

    @staticmethod
    def allocate(breakdown: PriceBreakdown) -> List[OrderDraft]:
        minor = breakdown.to_minor_units()
        groups = breakdown.groups

        if len(groups) == 1:
            # Nothing to share out: the order carries every checkout-level amount
            return [
                OrderDraft(
                    restaurant_id=groups[0].restaurant_id,
                    lines=groups[0].lines,
                    subtotal=minor.subtotal,
                    discount=minor.discount,
                    delivery_fee=minor.delivery_fee,
                    tax=minor.tax,
                    tip=minor.tip,
                )
            ]

        subtotals = [to_minor(group.subtotal, breakdown.currency) for group in groups]
        discounts = allocate_minor(subtotals, minor.discount)
        delivery_fees = split_evenly(minor.delivery_fee, len(groups))
        discounted = [subtotal - discount for subtotal, discount in zip(subtotals, discounts)]
        taxes = allocate_minor(discounted, minor.tax)
        tips = allocate_minor(discounted, minor.tip)

        drafts = [
            OrderDraft(
                restaurant_id=group.restaurant_id,
                lines=group.lines,
                subtotal=subtotals[index],
                discount=discounts[index],
                delivery_fee=delivery_fees[index],
                tax=taxes[index],
                tip=tips[index],
            )
            for index, group in enumerate(groups)
        ]

        validate_minor_sum([draft.total for draft in drafts], minor.total, context="for checkout split")
        return drafts

    @transaction.atomic
    def create_orders(
        self,
        breakdown: PriceBreakdown,
        *,
        restaurants: Dict[str, Any],
        delivery_address: Dict[str, Any],
        delivery_instructions: str = "",
        customer=None,
        guest_info: Optional[Dict[str, Any]] = None,
    ) -> SplitResult:
        """
        Persists one order per restaurant group and returns them with the
        combined total, re-read from the stored orders.

        Raises:
            ValidationError: If a guest checkout has no contact details or a
                group refers to a restaurant that was not loaded.
        """
        if customer is None and not (guest_info and guest_info.get("email")):
            raise ValidationError("Guest checkout requires a contact email")

        drafts = self.allocate(breakdown)
        checkout_id = uuid.uuid4()
        currency = breakdown.currency
        promo = breakdown.promo.as_dict() if breakdown.promo else None

        orders = []
        for draft in drafts:
            restaurant = restaurants.get(draft.restaurant_id)
            if restaurant is None:
                raise ValidationError(f"Unknown restaurant {draft.restaurant_id}")

            items = [line.as_item() for line in draft.lines]
            order = Order.objects.create(
                checkout_id=checkout_id,
                customer=customer,
                guest_info=guest_info if customer is None else None,
                restaurant=restaurant,
                items=items,
                restaurant_groups=[
                    {
                        "restaurantId": str(restaurant.id),
                        "restaurantName": restaurant.name,
                        "items": items,
                        "subtotal": str(from_minor(draft.subtotal, currency)),
                    }
                ],
                subtotal=from_minor(draft.subtotal, currency),
                discount_amount=from_minor(draft.discount, currency),
                delivery_fee=from_minor(draft.delivery_fee, currency),
                tax=from_minor(draft.tax, currency),
                tip=from_minor(draft.tip, currency),
                total=from_minor(draft.total, currency),
                currency=currency,
                tax_rate=breakdown.tax_rate,
                tax_source=breakdown.tax_source,
                applied_promo=promo,
                delivery_address=delivery_address,
                delivery_instructions=delivery_instructions or "",
            )
            orders.append(order)
            self.events.order_created(order)

        combined_total = Order.objects.filter(checkout_id=checkout_id).aggregate(
            total=Sum("total")
        )["total"] or Decimal("0.00")

        logger.info(
            f"Checkout {checkout_id}: created {len(orders)} order(s) "
            f"{[o.order_number for o in orders]} totalling {combined_total}"
        )
        return SplitResult(checkout_id=checkout_id, orders=orders, combined_total=combined_total)
