import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliveryZone",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("zip_code", models.CharField(max_length=5, unique=True)),
                ("city", models.CharField(max_length=100)),
                ("state", models.CharField(max_length=50)),
                ("delivery_fee", models.DecimalField(blank=True, decimal_places=2, help_text="Flat delivery fee for the whole checkout. Falls back to DEFAULT_DELIVERY_FEE.", max_digits=10, null=True)),
                ("tax_rate", models.DecimalField(blank=True, decimal_places=4, help_text="Sales tax rate as a fraction, e.g. 0.0825. Falls back to DEFAULT_TAX_RATE.", max_digits=6, null=True)),
                ("is_available", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["zip_code"],
            },
        ),
        migrations.CreateModel(
            name="Restaurant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=200)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(blank=True, help_text="The restaurant owner who may manage this restaurant's orders.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="restaurants", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
    ]
