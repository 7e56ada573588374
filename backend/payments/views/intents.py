"""
Checkout payment intent views, shared by customers and guests.
"""
import logging

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from ..serializers import ConfirmPaymentIntentSerializer, CreatePaymentIntentSerializer
from .base import BasePaymentView

logger = logging.getLogger(__name__)


@method_decorator(ratelimit(key="user_or_ip", rate="20/m", method="POST", block=True), name="post")
class CreatePaymentIntentView(BasePaymentView):
    """
    Creates (or reuses) the payment intent for a checkout's orders.

    Authenticated customers pay for their own orders. Guests identify their
    orders with the checkoutId returned by guest checkout.
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        customer = request.user if request.user and request.user.is_authenticated else None
        result = self.get_orchestrator().create_intent(
            amount_minor=data["amount"],
            currency=data["currency"],
            order_ids=data["orderIds"],
            customer=customer,
            checkout_id=data.get("checkoutId"),
            payment_method_id=data.get("paymentMethodId") or None,
        )
        return Response(
            result.as_dict(),
            status=status.HTTP_200_OK if result.reused else status.HTTP_201_CREATED,
        )


@method_decorator(ratelimit(key="ip", rate="30/m", method="POST", block=True), name="post")
class ConfirmPaymentIntentView(BasePaymentView):
    """
    Client confirmation callback. Idempotent: confirming an already settled
    intent returns success with alreadySettled=true.
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = ConfirmPaymentIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_orchestrator().confirm_intent(serializer.validated_data["paymentIntentId"])
        return Response(result.as_dict())
