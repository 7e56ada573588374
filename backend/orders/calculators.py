"""
Checkout price calculation.

PricingEngine is pure: it takes parsed cart lines and the already-resolved
inputs (delivery fee, tax rate or quoted tax amount, promo result, tip) and
returns a PriceBreakdown. Nothing here touches the database or a remote
service, so the same code prices the checkout preview and the persisted
orders.

Values inside a PriceBreakdown are exact; rounding to cents happens once, in
PriceBreakdown.to_minor_units(), which is what gets persisted and charged.
"""

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core_backend.exceptions import ValidationError
from discounts.services import PromoResult
from discounts.strategies import DiscountStrategyFactory
from payments.money import from_minor, quantize, to_minor

ZERO = Decimal("0")


def to_decimal(value, field_name: str) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Invalid amount for {field_name}: {value!r}")
    if not result.is_finite():
        raise ValidationError(f"Invalid amount for {field_name}: {value!r}")
    return result


@dataclass(frozen=True)
class Customization:
    name: str
    price: Decimal = ZERO


@dataclass(frozen=True)
class CartLine:
    restaurant_id: str
    name: str
    unit_price: Decimal
    quantity: int
    menu_item_id: Optional[str] = None
    customizations: Tuple[Customization, ...] = ()

    @property
    def unit_total(self) -> Decimal:
        return self.unit_price + sum((c.price for c in self.customizations), ZERO)

    @property
    def line_total(self) -> Decimal:
        return self.unit_total * self.quantity

    def as_item(self) -> Dict[str, Any]:
        """Snapshot stored in Order.items."""
        return {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "price": str(quantize(self.unit_price)),
            "quantity": self.quantity,
            "customizations": [
                {"name": c.name, "price": str(quantize(c.price))} for c in self.customizations
            ],
            "lineTotal": str(quantize(self.line_total)),
        }

    @classmethod
    def from_payload(cls, data: Dict[str, Any], restaurant_id=None) -> "CartLine":
        """
        Builds a line from checkout input, accepting camelCase and snake_case keys.
        """
        restaurant = restaurant_id or data.get("restaurant_id") or data.get("restaurantId")
        if not restaurant:
            raise ValidationError(
                "Every cart item must belong to a restaurant",
                details={"item": data.get("name") or data.get("id")},
            )

        name = data.get("name") or ""
        unit_price = to_decimal(data.get("price"), "price")
        if unit_price < 0:
            raise ValidationError(f"Price for {name or 'item'} must not be negative")

        try:
            quantity = int(data.get("quantity", 1))
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid quantity for {name or 'item'}")
        if quantity < 1:
            raise ValidationError(f"Quantity for {name or 'item'} must be at least 1")

        customizations = []
        for option in data.get("customizations") or data.get("selectedOptions") or []:
            price = to_decimal(option.get("price", 0), "customization price")
            customizations.append(Customization(name=option.get("name", ""), price=price))

        line = cls(
            restaurant_id=str(restaurant),
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            menu_item_id=data.get("menu_item_id") or data.get("menuItemId") or data.get("id"),
            customizations=tuple(customizations),
        )
        # Options may lower the price, never below zero
        if line.unit_total < 0:
            raise ValidationError(
                f"Price for {name or 'item'} with its options must not be negative",
                details={"item": name or line.menu_item_id},
            )
        return line


@dataclass(frozen=True)
class TipSpec:
    """A tip as a percentage of the discounted subtotal, or a custom amount that overrides it."""

    percent: Decimal = ZERO
    custom_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class RestaurantGroup:
    restaurant_id: str
    lines: Tuple[CartLine, ...]

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)


@dataclass(frozen=True)
class MinorBreakdown:
    """A PriceBreakdown rounded to integer minor units; total is the sum of the rounded parts."""

    subtotal: int
    discount: int
    delivery_fee: int
    tax: int
    tip: int

    @property
    def discounted_subtotal(self) -> int:
        return self.subtotal - self.discount

    @property
    def total(self) -> int:
        return self.subtotal - self.discount + self.delivery_fee + self.tax + self.tip


@dataclass(frozen=True)
class PriceBreakdown:
    groups: Tuple[RestaurantGroup, ...]
    subtotal: Decimal
    discount_amount: Decimal
    delivery_fee: Decimal
    tax: Decimal
    tip: Decimal
    tax_rate: Decimal
    promo: Optional[PromoResult] = None
    tax_source: str = "rate"
    currency: str = "usd"

    @property
    def discounted_subtotal(self) -> Decimal:
        return self.subtotal - self.discount_amount

    @property
    def total(self) -> Decimal:
        return self.discounted_subtotal + self.delivery_fee + self.tax + self.tip

    def to_minor_units(self) -> MinorBreakdown:
        subtotal = sum(to_minor(group.subtotal, self.currency) for group in self.groups)
        discount = min(to_minor(self.discount_amount, self.currency), subtotal)
        return MinorBreakdown(
            subtotal=subtotal,
            discount=discount,
            delivery_fee=to_minor(self.delivery_fee, self.currency),
            tax=to_minor(self.tax, self.currency),
            tip=to_minor(self.tip, self.currency),
        )

    def as_dict(self) -> Dict[str, Any]:
        """Display shape; per-restaurant groups carry their subtotal only."""
        minor = self.to_minor_units()
        return {
            "subtotal": _display(minor.subtotal),
            "discountAmount": _display(minor.discount),
            "deliveryFee": _display(minor.delivery_fee),
            "tax": _display(minor.tax),
            "taxSource": self.tax_source,
            "tip": _display(minor.tip),
            "total": _display(minor.total),
            "appliedPromo": self.promo.as_dict() if self.promo else None,
            "restaurantGroups": [
                {
                    "restaurantId": group.restaurant_id,
                    "items": [line.as_item() for line in group.lines],
                    "subtotal": str(quantize(group.subtotal)),
                }
                for group in self.groups
            ],
        }


def _display(minor: int) -> str:
    return str(from_minor(minor))


class PricingEngine:
    """
    Computes the price breakdown of a checkout.

    Discount: percentage of the subtotal or a fixed amount, clamped to
    [0, subtotal]. Tax: the quoted amount when one is supplied, otherwise
    discounted subtotal times the rate. Tip: a positive custom tip wins over
    the percentage of the discounted subtotal.
    """

    @staticmethod
    def group_lines(lines: Iterable[CartLine]) -> Tuple[RestaurantGroup, ...]:
        """Groups lines by restaurant, keeping the order restaurants first appear in."""
        grouped: "OrderedDict[str, List[CartLine]]" = OrderedDict()
        for line in lines:
            if not line.restaurant_id:
                raise ValidationError("Every cart item must belong to a restaurant")
            grouped.setdefault(line.restaurant_id, []).append(line)

        if not grouped:
            raise ValidationError("Cart is empty")

        return tuple(
            RestaurantGroup(restaurant_id=restaurant_id, lines=tuple(group_lines))
            for restaurant_id, group_lines in grouped.items()
        )

    @staticmethod
    def compute_discount(subtotal: Decimal, promo: Optional[PromoResult]) -> Decimal:
        if promo is None or subtotal <= 0:
            return ZERO
        strategy = DiscountStrategyFactory.get_strategy(promo.discount_type)
        discount = strategy.compute(subtotal, promo.value)
        return min(max(discount, ZERO), subtotal)

    @staticmethod
    def compute_tip(discounted_subtotal: Decimal, tip: Optional[TipSpec]) -> Decimal:
        if tip is None:
            return ZERO
        if tip.custom_amount is not None and tip.custom_amount > 0:
            return tip.custom_amount
        if tip.percent and tip.percent > 0:
            return discounted_subtotal * tip.percent / Decimal("100")
        return ZERO

    @staticmethod
    def round_money(amount: Decimal) -> Decimal:
        return quantize(amount)

    @classmethod
    def price(
        cls,
        lines: Iterable[CartLine],
        *,
        delivery_fee: Decimal,
        tax_rate: Decimal,
        tax_amount: Optional[Decimal] = None,
        promo: Optional[PromoResult] = None,
        tip: Optional[TipSpec] = None,
        tax_source: Optional[str] = None,
        currency: str = "usd",
    ) -> PriceBreakdown:
        groups = cls.group_lines(list(lines))
        subtotal = sum((group.subtotal for group in groups), ZERO)
        if subtotal < 0:
            raise ValidationError("Order subtotal must not be negative")

        if delivery_fee < 0:
            raise ValidationError("Delivery fee must not be negative")
        if tax_rate < 0:
            raise ValidationError("Tax rate must not be negative")

        discount = cls.compute_discount(subtotal, promo)
        discounted_subtotal = subtotal - discount

        if tax_amount is not None and tax_amount >= 0:
            tax = tax_amount
            tax_source = tax_source or "quote"
        else:
            tax = discounted_subtotal * tax_rate
            tax_source = "rate"

        return PriceBreakdown(
            groups=groups,
            subtotal=subtotal,
            discount_amount=discount,
            delivery_fee=delivery_fee,
            tax=tax,
            tip=cls.compute_tip(discounted_subtotal, tip),
            tax_rate=tax_rate,
            promo=promo,
            tax_source=tax_source,
            currency=currency,
        )
