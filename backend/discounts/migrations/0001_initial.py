from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PromoCode",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True)),
                ("description", models.CharField(blank=True, max_length=255)),
                ("discount_type", models.CharField(choices=[("percentage", "Percentage"), ("fixed", "Fixed Amount")], max_length=20)),
                ("discount_value", models.DecimalField(decimal_places=2, help_text="Percentage (0-100) or fixed amount off the checkout subtotal.", max_digits=10)),
                ("minimum_order_amount", models.DecimalField(blank=True, decimal_places=2, help_text="The minimum subtotal required for the code to apply.", max_digits=10, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("starts_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("usage_limit", models.PositiveIntegerField(blank=True, help_text="Maximum number of redemptions. Empty means unlimited.", null=True)),
                ("usage_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["code"],
            },
        ),
    ]
