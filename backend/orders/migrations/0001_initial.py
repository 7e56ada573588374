import django.db.models.deletion
import django.utils.timezone
import orders.models
import uuid
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("restaurants", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(default=orders.models.generate_order_number, max_length=32, unique=True)),
                ("checkout_id", models.UUIDField(blank=True, db_index=True, help_text="Shared by every order created from the same checkout submission.", null=True)),
                ("guest_info", models.JSONField(blank=True, help_text="Contact details stored inline for guest orders: name, email, phone.", null=True)),
                ("items", models.JSONField(default=list)),
                ("restaurant_groups", models.JSONField(blank=True, default=list, help_text="Restaurant grouping snapshot: restaurantId, restaurantName, items, subtotal.")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("preparing", "Preparing"), ("out_for_delivery", "Out for Delivery"), ("delivered", "Delivered"), ("cancelled", "Cancelled")], db_index=True, default="pending", max_length=20)),
                ("version", models.PositiveIntegerField(default=1, help_text="Incremented on every committed status transition.")),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("tax", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("tip", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("currency", models.CharField(default="usd", max_length=3)),
                ("tax_rate", models.DecimalField(blank=True, decimal_places=4, max_digits=6, null=True)),
                ("tax_source", models.CharField(blank=True, default="", max_length=20)),
                ("applied_promo", models.JSONField(blank=True, null=True)),
                ("delivery_address", models.JSONField(default=dict)),
                ("delivery_instructions", models.TextField(blank=True, default="")),
                ("estimated_delivery_time", models.DateTimeField(blank=True, null=True)),
                ("actual_delivery_time", models.DateTimeField(blank=True, null=True)),
                ("shipday_order_id", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("payment_settled", models.BooleanField(default=False)),
                ("payment_settled_at", models.DateTimeField(blank=True, null=True)),
                ("stripe_payment_intent_id", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ("confirmation_sent", models.BooleanField(default=False, help_text="Whether an order confirmation email has been sent for this order")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer", models.ForeignKey(blank=True, help_text="Empty for guest checkouts.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to=settings.AUTH_USER_MODEL)),
                ("restaurant", models.ForeignKey(blank=True, help_text="Empty only for legacy multi-restaurant container orders.", null=True, on_delete=django.db.models.deletion.PROTECT, related_name="orders", to="restaurants.restaurant")),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at", "order_number"],
                "indexes": [
                    models.Index(fields=["restaurant", "status"], name="order_rest_status_idx"),
                    models.Index(fields=["customer", "-created_at"], name="order_cust_created_idx"),
                ],
            },
        ),
    ]
