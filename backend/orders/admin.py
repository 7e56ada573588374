from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "restaurant",
        "customer",
        "status",
        "total",
        "payment_settled",
        "created_at",
    )
    list_filter = ("status", "payment_settled", "restaurant")
    search_fields = ("order_number", "shipday_order_id", "customer__email")
    readonly_fields = (
        "id",
        "order_number",
        "checkout_id",
        "version",
        "subtotal",
        "discount_amount",
        "delivery_fee",
        "tax",
        "tip",
        "total",
        "payment_settled",
        "payment_settled_at",
        "stripe_payment_intent_id",
        "actual_delivery_time",
        "created_at",
        "updated_at",
    )
