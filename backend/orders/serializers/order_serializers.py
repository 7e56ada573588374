from rest_framework import serializers

from orders.models import Order


class OrderSerializer(serializers.ModelSerializer):
    restaurant_name = serializers.CharField(source="restaurant.name", read_only=True, default=None)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    customer_name = serializers.CharField(source="contact_name", read_only=True)
    is_guest_order = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "checkout_id",
            "customer",
            "customer_name",
            "is_guest_order",
            "guest_info",
            "restaurant",
            "restaurant_name",
            "items",
            "restaurant_groups",
            "status",
            "status_display",
            "version",
            "subtotal",
            "discount_amount",
            "delivery_fee",
            "tax",
            "tip",
            "total",
            "currency",
            "tax_rate",
            "tax_source",
            "applied_promo",
            "delivery_address",
            "delivery_instructions",
            "estimated_delivery_time",
            "actual_delivery_time",
            "shipday_order_id",
            "payment_settled",
            "payment_settled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CheckoutResultSerializer(serializers.Serializer):
    """Wraps a SplitResult for the checkout response."""

    checkout_id = serializers.UUIDField()
    orders = OrderSerializer(many=True)
    combined_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.SerializerMethodField()

    def get_currency(self, obj):
        return obj.orders[0].currency if obj.orders else None
