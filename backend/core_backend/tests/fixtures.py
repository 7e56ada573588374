"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, restaurants, delivery zones, promo codes and orders.
"""
import pytest
from decimal import Decimal
from django.utils import timezone
from datetime import timedelta

from channels.layers import InMemoryChannelLayer

from users.models import User
from restaurants.models import Restaurant, DeliveryZone
from discounts.models import PromoCode
from orders.models import Order
from payments.models import SavedPaymentMethod
from notifications.events import EventBroadcaster


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def customer_user(db):
    """Create a customer"""
    return User.objects.create_user(
        email='jane@example.com',
        password='password123',
        first_name='Jane',
        last_name='Doe',
        phone_number='(555) 123-4567',
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def other_customer(db):
    """Create a second customer who owns none of the test orders"""
    return User.objects.create_user(
        email='someone@example.com',
        password='password123',
        role=User.Role.CUSTOMER,
    )


@pytest.fixture
def owner_user(db):
    """Create the owner of restaurant A"""
    return User.objects.create_user(
        email='owner@pizza.com',
        password='password123',
        role=User.Role.RESTAURANT_OWNER,
    )


@pytest.fixture
def other_owner(db):
    """Create a restaurant owner who does not own restaurant A"""
    return User.objects.create_user(
        email='owner@burger.com',
        password='password123',
        role=User.Role.RESTAURANT_OWNER,
    )


@pytest.fixture
def staff_user(db):
    """Create a staff member"""
    return User.objects.create_user(
        email='staff@example.com',
        password='password123',
        role=User.Role.STAFF,
    )


@pytest.fixture
def admin_user(db):
    """Create an admin"""
    return User.objects.create_user(
        email='admin@example.com',
        password='password123',
        role=User.Role.ADMIN,
    )


# ============================================================================
# RESTAURANT FIXTURES
# ============================================================================

@pytest.fixture
def restaurant_a(owner_user):
    """Create restaurant A (Pizza Place), owned by owner_user"""
    return Restaurant.objects.create(
        name='Pizza Place',
        owner=owner_user,
        address='1 Main St, New York, NY 10001',
        phone='5550001111',
    )


@pytest.fixture
def restaurant_b(other_owner):
    """Create restaurant B (Burger Joint)"""
    return Restaurant.objects.create(
        name='Burger Joint',
        owner=other_owner,
        address='2 Main St, New York, NY 10001',
    )


@pytest.fixture
def inactive_restaurant(db):
    """Create an inactive restaurant"""
    return Restaurant.objects.create(name='Closed Kitchen', is_active=False)


@pytest.fixture
def delivery_zone(db):
    """Served zip 10001: $6.00 delivery, 8.25% tax"""
    return DeliveryZone.objects.create(
        zip_code='10001',
        city='New York',
        state='NY',
        delivery_fee=Decimal('6.00'),
        tax_rate=Decimal('0.0825'),
    )


@pytest.fixture
def delivery_address():
    return {
        'street': '350 5th Ave',
        'city': 'New York',
        'state': 'NY',
        'zip_code': '10001',
    }


# ============================================================================
# PROMO CODE FIXTURES
# ============================================================================

@pytest.fixture
def percent_promo(db):
    """10% off"""
    return PromoCode.objects.create(
        code='SAVE10',
        discount_type=PromoCode.DiscountType.PERCENTAGE,
        discount_value=Decimal('10.00'),
    )


@pytest.fixture
def fixed_promo(db):
    """$5 off with a $20 minimum"""
    return PromoCode.objects.create(
        code='FIVEOFF',
        discount_type=PromoCode.DiscountType.FIXED,
        discount_value=Decimal('5.00'),
        minimum_order_amount=Decimal('20.00'),
    )


@pytest.fixture
def expired_promo(db):
    return PromoCode.objects.create(
        code='OLDNEWS',
        discount_type=PromoCode.DiscountType.PERCENTAGE,
        discount_value=Decimal('50.00'),
        expires_at=timezone.now() - timedelta(days=1),
    )


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def make_order(restaurant_a, delivery_address):
    """
    Factory for persisted orders whose totals reconcile.

    Usage:
        order = make_order(customer=customer_user, status=Order.OrderStatus.CONFIRMED)
    """
    def _make(**overrides):
        subtotal = overrides.pop('subtotal', Decimal('15.00'))
        discount = overrides.pop('discount_amount', Decimal('0.00'))
        delivery_fee = overrides.pop('delivery_fee', Decimal('3.00'))
        tax = overrides.pop('tax', Decimal('1.24'))
        tip = overrides.pop('tip', Decimal('2.70'))

        fields = {
            'restaurant': restaurant_a,
            'items': [{'name': 'Margherita', 'price': '15.00', 'quantity': 1}],
            'delivery_address': delivery_address,
            'subtotal': subtotal,
            'discount_amount': discount,
            'delivery_fee': delivery_fee,
            'tax': tax,
            'tip': tip,
            'total': subtotal - discount + delivery_fee + tax + tip,
        }
        if 'customer' not in overrides:
            fields['guest_info'] = {'name': 'Guest Person', 'email': 'guest@example.com', 'phone': '555-000-1234'}
        fields.update(overrides)
        return Order.objects.create(**fields)

    return _make


@pytest.fixture
def customer_order(make_order, customer_user):
    """A pending order placed by customer_user at restaurant A"""
    return make_order(customer=customer_user)


@pytest.fixture
def saved_cards(customer_user):
    """Test-mode cards saved by customer_user"""
    return [
        SavedPaymentMethod.objects.create(
            user=customer_user,
            stripe_payment_method_id=pm_id,
            card_brand="visa",
            card_last_four=last_four,
        )
        for pm_id, last_four in [
            ("pm_card_visa", "4242"),
            ("pm_card_declined", "0002"),
            ("pm_card_chargeDeclined", "0341"),
        ]
    ]


# ============================================================================
# EVENT FIXTURES
# ============================================================================

@pytest.fixture
def broadcaster():
    """A broadcaster on its own in-memory channel layer"""
    return EventBroadcaster(channel_layer=InMemoryChannelLayer())
