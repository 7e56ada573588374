from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from orders.calculators import TipSpec
from orders.services import CheckoutRequest, CheckoutService


class CustomizationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, allow_blank=True, required=False, default="")
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=Decimal("0.00"))


class CartItemSerializer(serializers.Serializer):
    menu_item_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    restaurant_id = serializers.CharField(required=False, allow_blank=True)
    name = serializers.CharField(max_length=200)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.00"))
    quantity = serializers.IntegerField(min_value=1, default=1)
    customizations = CustomizationSerializer(many=True, required=False, default=list)


class RestaurantGroupSerializer(serializers.Serializer):
    restaurant_id = serializers.CharField()
    items = CartItemSerializer(many=True, allow_empty=False)


class GuestInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")


class CheckoutSerializer(serializers.Serializer):
    """
    Checkout input. Accepts either restaurant_groups or a flat items list
    whose lines each carry a restaurant_id. Client totals are advisory.
    """

    restaurant_groups = RestaurantGroupSerializer(many=True, required=False)
    items = CartItemSerializer(many=True, required=False)
    delivery_address = serializers.DictField()
    delivery_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    promo_code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tip_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    custom_tip = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )
    total = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get("restaurant_groups") and not attrs.get("items"):
            raise serializers.ValidationError("Cart is empty")
        return attrs

    def get_tip_spec(self, validated_data) -> TipSpec:
        tip_percent = validated_data.get("tip_percent")
        if tip_percent is None:
            tip_percent = Decimal(str(settings.DEFAULT_TIP_PERCENT))
        return TipSpec(percent=tip_percent, custom_amount=validated_data.get("custom_tip"))

    def to_checkout_request(self, guest_info=None) -> CheckoutRequest:
        data = self.validated_data
        lines = CheckoutService.parse_lines(
            restaurant_groups=data.get("restaurant_groups"),
            items=data.get("items"),
        )
        return CheckoutRequest(
            lines=lines,
            delivery_address=data["delivery_address"],
            delivery_instructions=data.get("delivery_instructions") or "",
            promo_code=data.get("promo_code") or None,
            tip=self.get_tip_spec(data),
            client_total=data.get("total"),
            guest_info=guest_info,
        )


class GuestCheckoutSerializer(CheckoutSerializer):
    guest_info = GuestInfoSerializer()

    def to_checkout_request(self, guest_info=None) -> CheckoutRequest:
        return super().to_checkout_request(guest_info=dict(self.validated_data["guest_info"]))
