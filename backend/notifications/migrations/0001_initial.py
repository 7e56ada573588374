import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AdminNotification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("type", models.CharField(choices=[("order.created", "Order Created"), ("order.status_changed", "Order Status Changed"), ("payment.failed", "Payment Failed"), ("ticket.created", "Ticket Created")], db_index=True, max_length=50)),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField(blank=True, default="")),
                ("data", models.JSONField(blank=True, default=dict, help_text="Reference to the subject entity, e.g. orderId and orderNumber.")),
                ("read_by", models.JSONField(blank=True, default=list, help_text="Ids of the admins who have read this notification.")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
