from rest_framework import serializers

from orders.models import Order


class UpdateOrderStatusSerializer(serializers.Serializer):
    """
    Validates a manual status change. Transition rules are enforced by the
    FulfillmentStateMachine, not here.
    """

    status = serializers.ChoiceField(choices=Order.OrderStatus.choices)
    expected_version = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class CancelOrderSerializer(serializers.Serializer):
    expected_version = serializers.IntegerField(min_value=1, required=False, allow_null=True)
