import logging

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders.serializers import CheckoutResultSerializer, CheckoutSerializer, GuestCheckoutSerializer
from orders.services import CheckoutService

logger = logging.getLogger(__name__)


@method_decorator(ratelimit(key="user_or_ip", rate="10/m", method="POST", block=True), name="post")
class CheckoutView(APIView):
    """
    Submits an authenticated customer's cart. Creates one order per
    restaurant and returns them with the server-computed combined total,
    which is the amount the client must pass to create-intent.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = CheckoutSerializer

    def get_checkout_service(self):
        return CheckoutService()

    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_checkout_service().submit(
            serializer.to_checkout_request(),
            customer=self.get_customer(request),
        )
        return Response(CheckoutResultSerializer(result).data, status=status.HTTP_201_CREATED)

    def get_customer(self, request):
        return request.user


class GuestCheckoutView(CheckoutView):
    """Guest checkout: contact details are stored inline on every order."""

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = GuestCheckoutSerializer

    def get_customer(self, request):
        return None


@method_decorator(ratelimit(key="ip", rate="60/m", method="POST", block=True), name="post")
class CheckoutQuoteView(APIView):
    """Prices a cart without persisting anything."""

    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        quote = CheckoutService().quote(serializer.to_checkout_request())
        data = quote.breakdown.as_dict()
        data["taxRate"] = str(quote.breakdown.tax_rate)
        data["zipCode"] = quote.zone.zip_code
        return Response(data)
