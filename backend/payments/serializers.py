from rest_framework import serializers


class CreatePaymentIntentSerializer(serializers.Serializer):
    """
    Accepts camelCase keys from the storefront. amount is in minor units and
    must equal the server-side sum of the orders' totals.
    """

    amount = serializers.IntegerField()
    currency = serializers.CharField(max_length=3)
    orderIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    checkoutId = serializers.UUIDField(required=False, allow_null=True)
    paymentMethodId = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConfirmPaymentIntentSerializer(serializers.Serializer):
    paymentIntentId = serializers.CharField(max_length=255)
