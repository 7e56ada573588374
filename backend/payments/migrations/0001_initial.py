import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentIntent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "stripe_payment_intent_id",
                    models.CharField(
                        blank=True,
                        help_text="Processor-issued intent id. Empty if the processor rejected the attempt outright.",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "order_set_key",
                    models.CharField(
                        db_index=True, help_text="sha256 of the sorted order ids this intent covers.", max_length=64
                    ),
                ),
                (
                    "attempt",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Checkout attempt number for this order set; part of the processor idempotency key.",
                    ),
                ),
                ("checkout_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("amount_minor", models.PositiveBigIntegerField()),
                ("currency", models.CharField(default="usd", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("requires_confirmation", "Requires Confirmation"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="requires_confirmation",
                        max_length=32,
                    ),
                ),
                ("client_secret", models.CharField(blank=True, default="", max_length=255)),
                (
                    "processor_status",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Last status reported by the processor, e.g. requires_payment_method.",
                        max_length=64,
                    ),
                ),
                ("failure_reason", models.TextField(blank=True, default="")),
                ("succeeded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_intents",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("orders", models.ManyToManyField(related_name="payment_intents", to="orders.order")),
            ],
            options={
                "verbose_name": "Payment Intent",
                "verbose_name_plural": "Payment Intents",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order_set_key", "attempt"), name="unique_intent_attempt_per_order_set"
                    )
                ],
            },
        ),
    ]
