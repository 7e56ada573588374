import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class PaymentIntent(models.Model):
    """
    Local record of one processor payment intent covering every order of a
    checkout attempt.

    The amount always equals the sum of the linked orders' totals in minor
    units. A succeeded intent is never modified again.
    """

    class IntentStatus(models.TextChoices):
        REQUIRES_CONFIRMATION = "requires_confirmation", _("Requires Confirmation")
        SUCCEEDED = "succeeded", _("Succeeded")
        FAILED = "failed", _("Failed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stripe_payment_intent_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Processor-issued intent id. Empty if the processor rejected the attempt outright."),
    )
    order_set_key = models.CharField(
        max_length=64,
        db_index=True,
        help_text=_("sha256 of the sorted order ids this intent covers."),
    )
    attempt = models.PositiveIntegerField(
        default=1,
        help_text=_("Checkout attempt number for this order set; part of the processor idempotency key."),
    )
    orders = models.ManyToManyField("orders.Order", related_name="payment_intents")
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_intents",
    )
    checkout_id = models.UUIDField(null=True, blank=True, db_index=True)

    amount_minor = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(
        max_length=32,
        choices=IntentStatus.choices,
        default=IntentStatus.REQUIRES_CONFIRMATION,
        db_index=True,
    )
    client_secret = models.CharField(max_length=255, blank=True, default="")
    processor_status = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text=_("Last status reported by the processor, e.g. requires_payment_method."),
    )
    failure_reason = models.TextField(blank=True, default="")

    succeeded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Payment Intent")
        verbose_name_plural = _("Payment Intents")
        constraints = [
            models.UniqueConstraint(
                fields=["order_set_key", "attempt"], name="unique_intent_attempt_per_order_set"
            ),
        ]

    def __str__(self):
        return f"PaymentIntent {self.stripe_payment_intent_id or self.id} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in (self.IntentStatus.SUCCEEDED, self.IntentStatus.FAILED)

    @property
    def idempotency_key(self):
        return f"checkout-{self.order_set_key}-{self.attempt}"


class SavedPaymentMethod(models.Model):
    """
    A card a customer saved with the processor. Only these may be charged
    directly at checkout, and only by their owner.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="saved_payment_methods",
    )
    stripe_payment_method_id = models.CharField(max_length=255, unique=True)
    card_brand = models.CharField(max_length=32, blank=True, default="")
    card_last_four = models.CharField(max_length=4, blank=True, default="")
    card_exp_month = models.PositiveSmallIntegerField(null=True, blank=True)
    card_exp_year = models.PositiveSmallIntegerField(null=True, blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-is_default", "-created_at"]
        verbose_name = _("Saved Payment Method")
        verbose_name_plural = _("Saved Payment Methods")

    def __str__(self):
        return f"{self.card_brand or 'Card'} ending {self.card_last_four or '????'}"
