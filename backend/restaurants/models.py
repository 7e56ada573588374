import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Restaurant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="restaurants",
        help_text=_("The restaurant owner who may manage this restaurant's orders."),
    )
    address = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class DeliveryZone(models.Model):
    """
    A served postal code with its delivery fee and, optionally, a local tax rate.
    """

    zip_code = models.CharField(max_length=5, unique=True)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=50)
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Flat delivery fee for the whole checkout. Falls back to DEFAULT_DELIVERY_FEE."),
    )
    tax_rate = models.DecimalField(
        max_digits=6,
        decimal_places=4,
        null=True,
        blank=True,
        help_text=_("Sales tax rate as a fraction, e.g. 0.0825. Falls back to DEFAULT_TAX_RATE."),
    )
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["zip_code"]

    def __str__(self):
        return f"{self.zip_code} ({self.city}, {self.state})"
