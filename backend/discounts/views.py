from decimal import Decimal

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.calculators import PricingEngine
from .serializers import PromoCodeValidateSerializer
from .services import PromoCodeService


@method_decorator(ratelimit(key="ip", rate="20/m", method="POST", block=True), name="post")
class ValidatePromoCodeView(APIView):
    """
    Previews a promo code against a subtotal without redeeming it.
    """

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = PromoCodeValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        promo = PromoCodeService.validate(
            serializer.validated_data["code"],
            serializer.validated_data.get("subtotal"),
        )

        data = {"valid": True, "promo": promo.as_dict()}
        subtotal = serializer.validated_data.get("subtotal")
        if subtotal is not None:
            discount = PricingEngine.compute_discount(Decimal(subtotal), promo)
            data["discount_amount"] = str(PricingEngine.round_money(discount))
        return Response(data)
