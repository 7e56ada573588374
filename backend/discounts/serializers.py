from rest_framework import serializers


class PromoCodeValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    subtotal = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
