"""
Order splitting tests: one order per restaurant, shares that add up to the
checkout total to the cent.
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

from core_backend.exceptions import ValidationError
from discounts.services import PromoResult
from orders.calculators import CartLine, PricingEngine, TipSpec
from orders.models import Order
from orders.services import OrderSplitter


def price_cart(restaurants_and_prices, promo=None, tip_percent="18", delivery_fee="6.00", tax_rate="0.0825"):
    lines = [
        CartLine(restaurant_id=str(restaurant_id), name="Item", unit_price=Decimal(price), quantity=1)
        for restaurant_id, price in restaurants_and_prices
    ]
    return PricingEngine.price(
        lines,
        delivery_fee=Decimal(delivery_fee),
        tax_rate=Decimal(tax_rate),
        promo=promo,
        tip=TipSpec(percent=Decimal(tip_percent)),
    )


# ============================================================================
# Allocation (pure)
# ============================================================================


class TestAllocation:
    def test_two_restaurant_split(self):
        """
        A $15 / B $20, $6 delivery, 8.25% tax, 18% tip:
        A gets 15 + 3 + 1.24 + 2.70, B gets 20 + 3 + 1.65 + 3.60.
        """
        drafts = OrderSplitter.allocate(price_cart([("A", "15.00"), ("B", "20.00")]))

        a, b = drafts
        assert (a.subtotal, a.delivery_fee, a.tax, a.tip) == (1500, 300, 124, 270)
        assert (b.subtotal, b.delivery_fee, b.tax, b.tip) == (2000, 300, 165, 360)
        assert a.total == 2194
        assert b.total == 2825

    def test_single_restaurant_carries_everything(self):
        breakdown = price_cart([("A", "15.00")])
        (draft,) = OrderSplitter.allocate(breakdown)
        minor = breakdown.to_minor_units()

        assert draft.delivery_fee == minor.delivery_fee == 600
        assert draft.tax == minor.tax
        assert draft.tip == minor.tip
        assert draft.total == minor.total

    def test_discount_allocated_proportionally(self):
        promo = PromoResult(code="FIVEOFF", discount_type="fixed", value=Decimal("5.00"))
        drafts = OrderSplitter.allocate(price_cart([("A", "15.00"), ("B", "20.00")], promo=promo))

        assert [d.discount for d in drafts] == [214, 286]
        assert sum(d.discount for d in drafts) == 500

    def test_odd_delivery_fee_leftover_to_first_restaurant(self):
        drafts = OrderSplitter.allocate(
            price_cart([("A", "10.00"), ("B", "10.00"), ("C", "10.00")], delivery_fee="5.00")
        )
        assert [d.delivery_fee for d in drafts] == [167, 167, 166]

    @pytest.mark.parametrize(
        "prices",
        [
            [("A", "0.01"), ("B", "0.01"), ("C", "99.97")],
            [("A", "3.33"), ("B", "3.33"), ("C", "3.34")],
            [("A", "12.49"), ("B", "7.51")],
        ],
    )
    def test_drafts_add_up_to_checkout_total(self, prices):
        promo = PromoResult(code="SAVE10", discount_type="percentage", value=Decimal("10"))
        breakdown = price_cart(prices, promo=promo, tip_percent="15", delivery_fee="4.99", tax_rate="0.08875")
        drafts = OrderSplitter.allocate(breakdown)
        minor = breakdown.to_minor_units()

        assert sum(d.total for d in drafts) == minor.total
        assert sum(d.tax for d in drafts) == minor.tax
        assert sum(d.tip for d in drafts) == minor.tip
        assert sum(d.discount for d in drafts) == minor.discount
        for draft in drafts:
            assert draft.discount <= draft.subtotal

    def test_single_and_multi_path_agree_on_total(self):
        """Pricing the same cart as one restaurant or two must charge the same."""
        single = price_cart([("A", "15.00"), ("A", "20.00")])
        multi = price_cart([("A", "15.00"), ("B", "20.00")])

        single_total = sum(d.total for d in OrderSplitter.allocate(single))
        multi_total = sum(d.total for d in OrderSplitter.allocate(multi))
        assert single_total == multi_total == 5019


# ============================================================================
# Persistence
# ============================================================================


@pytest.mark.django_db
class TestCreateOrders:
    def test_creates_one_order_per_restaurant(self, restaurant_a, restaurant_b, customer_user, delivery_address):
        events = MagicMock()
        breakdown = price_cart([(restaurant_a.id, "15.00"), (restaurant_b.id, "20.00")])

        result = OrderSplitter(events=events).create_orders(
            breakdown,
            restaurants={str(restaurant_a.id): restaurant_a, str(restaurant_b.id): restaurant_b},
            delivery_address=delivery_address,
            customer=customer_user,
        )

        assert len(result.orders) == 2
        assert result.combined_total == Decimal("50.19")
        assert events.order_created.call_count == 2

        orders = Order.objects.filter(checkout_id=result.checkout_id).order_by("total")
        assert [o.restaurant for o in orders] == [restaurant_a, restaurant_b]
        for order in orders:
            assert order.customer == customer_user
            assert order.status == Order.OrderStatus.PENDING
            assert order.version == 1
            assert order.totals_reconcile()
            assert order.restaurant_groups[0]["restaurantName"] == order.restaurant.name

        a = orders[0]
        assert a.subtotal == Decimal("15.00")
        assert a.delivery_fee == Decimal("3.00")
        assert a.tax == Decimal("1.24")
        assert a.tip == Decimal("2.70")
        assert a.total == Decimal("21.94")

    def test_order_numbers_are_unique(self, restaurant_a, restaurant_b, customer_user, delivery_address):
        breakdown = price_cart([(restaurant_a.id, "15.00"), (restaurant_b.id, "20.00")])
        result = OrderSplitter(events=MagicMock()).create_orders(
            breakdown,
            restaurants={str(restaurant_a.id): restaurant_a, str(restaurant_b.id): restaurant_b},
            delivery_address=delivery_address,
            customer=customer_user,
        )
        numbers = [o.order_number for o in result.orders]
        assert len(set(numbers)) == 2
        assert all(n.startswith("MKD-") for n in numbers)

    def test_promo_snapshot_stored(self, restaurant_a, customer_user, delivery_address):
        promo = PromoResult(code="SAVE10", discount_type="percentage", value=Decimal("10.00"))
        result = OrderSplitter(events=MagicMock()).create_orders(
            price_cart([(restaurant_a.id, "20.00")], promo=promo),
            restaurants={str(restaurant_a.id): restaurant_a},
            delivery_address=delivery_address,
            customer=customer_user,
        )
        order = result.orders[0]
        assert order.applied_promo == {"code": "SAVE10", "type": "percentage", "value": "10.00"}
        assert order.discount_amount == Decimal("2.00")

    def test_guest_order_stores_contact_details(self, restaurant_a, delivery_address):
        guest = {"name": "Pat Guest", "email": "pat@example.com", "phone": "555-222-3333"}
        result = OrderSplitter(events=MagicMock()).create_orders(
            price_cart([(restaurant_a.id, "15.00")]),
            restaurants={str(restaurant_a.id): restaurant_a},
            delivery_address=delivery_address,
            guest_info=guest,
        )
        order = result.orders[0]
        assert order.is_guest_order
        assert order.guest_info == guest
        assert order.contact_email == "pat@example.com"

    def test_guest_without_email_rejected(self, restaurant_a, delivery_address):
        with pytest.raises(ValidationError, match="contact email"):
            OrderSplitter(events=MagicMock()).create_orders(
                price_cart([(restaurant_a.id, "15.00")]),
                restaurants={str(restaurant_a.id): restaurant_a},
                delivery_address=delivery_address,
                guest_info={"name": "No Email"},
            )
        assert Order.objects.count() == 0

    def test_unknown_restaurant_rolls_back(self, restaurant_a, customer_user, delivery_address):
        breakdown = price_cart([(restaurant_a.id, "15.00"), ("missing", "20.00")])
        with pytest.raises(ValidationError, match="Unknown restaurant"):
            OrderSplitter(events=MagicMock()).create_orders(
                breakdown,
                restaurants={str(restaurant_a.id): restaurant_a},
                delivery_address=delivery_address,
                customer=customer_user,
            )
        assert Order.objects.count() == 0
