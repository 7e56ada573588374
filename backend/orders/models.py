import secrets
import time
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """MKD-<base36 millisecond timestamp>-<4 random hex>, upper-cased."""
    timestamp = _base36(int(time.time() * 1000))
    return f"MKD-{timestamp}-{secrets.token_hex(2)}".upper()


class Order(models.Model):
    """
    One restaurant's slice of a checkout and the unit of fulfillment tracking.

    Money invariant, to the cent:
        total == subtotal - discount_amount + delivery_fee + tax + tip
    """

    class OrderStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONFIRMED = "confirmed", _("Confirmed")
        PREPARING = "preparing", _("Preparing")
        OUT_FOR_DELIVERY = "out_for_delivery", _("Out for Delivery")
        DELIVERED = "delivered", _("Delivered")
        CANCELLED = "cancelled", _("Cancelled")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, default=generate_order_number)
    checkout_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text=_("Shared by every order created from the same checkout submission."),
    )

    # --- Relationships ---
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        help_text=_("Empty for guest checkouts."),
    )
    restaurant = models.ForeignKey(
        "restaurants.Restaurant",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
        help_text=_("Empty only for legacy multi-restaurant container orders."),
    )
    guest_info = models.JSONField(
        null=True,
        blank=True,
        help_text=_("Contact details stored inline for guest orders: name, email, phone."),
    )

    # --- Line items ---
    items = models.JSONField(default=list)
    restaurant_groups = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Restaurant grouping snapshot: restaurantId, restaurantName, items, subtotal."),
    )

    # --- Status ---
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
    )
    version = models.PositiveIntegerField(
        default=1,
        help_text=_("Incremented on every committed status transition."),
    )

    # --- Financial fields ---
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    tip = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="usd")
    tax_rate = models.DecimalField(max_digits=6, decimal_places=4, null=True, blank=True)
    tax_source = models.CharField(max_length=20, blank=True, default="")
    applied_promo = models.JSONField(null=True, blank=True)

    # --- Delivery ---
    delivery_address = models.JSONField(default=dict)
    delivery_instructions = models.TextField(blank=True, default="")
    estimated_delivery_time = models.DateTimeField(null=True, blank=True)
    actual_delivery_time = models.DateTimeField(null=True, blank=True)
    shipday_order_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    # --- Payment ---
    payment_settled = models.BooleanField(default=False)
    payment_settled_at = models.DateTimeField(null=True, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)

    confirmation_sent = models.BooleanField(
        default=False,
        help_text=_("Whether an order confirmation email has been sent for this order"),
    )

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "order_number"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=["restaurant", "status"], name="order_rest_status_idx"),
            models.Index(fields=["customer", "-created_at"], name="order_cust_created_idx"),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in (self.OrderStatus.DELIVERED, self.OrderStatus.CANCELLED)

    @property
    def is_guest_order(self):
        return self.customer_id is None

    @property
    def contact_email(self):
        if self.customer_id:
            return self.customer.email
        return (self.guest_info or {}).get("email")

    @property
    def contact_name(self):
        if self.customer_id:
            return self.customer.get_full_name()
        return (self.guest_info or {}).get("name") or "Guest"

    @property
    def contact_phone(self):
        if self.customer_id:
            return self.customer.phone_number or ""
        return (self.guest_info or {}).get("phone") or ""

    def expected_total(self) -> Decimal:
        return self.subtotal - self.discount_amount + self.delivery_fee + self.tax + self.tip

    def totals_reconcile(self) -> bool:
        return self.total == self.expected_total()
