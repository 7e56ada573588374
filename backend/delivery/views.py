import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core_backend.exceptions import DomainError
from .webhooks import DispatchEvent, DispatchWebhookService, verify_webhook_secret

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class ShipdayWebhookView(APIView):
    """
    Inbound courier status updates from Shipday.

    200 for processed, duplicate, or ignored (terminal order) updates; 400 for
    a malformed payload or unknown status; 401 for a bad secret; 404 for an
    unknown order; 500 for anything unexpected so Shipday retries.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def get_service(self) -> DispatchWebhookService:
        return DispatchWebhookService()

    def post(self, request, *args, **kwargs):
        # Secret first: nothing is parsed or read for unauthenticated callers
        verify_webhook_secret(request)

        try:
            event = DispatchEvent.parse(request.data)
            result = self.get_service().handle(event)
        except (DomainError, APIException):
            raise
        except Exception as e:
            logger.error(f"Error processing Shipday webhook: {type(e).__name__}: {e}", exc_info=True)
            return Response(
                {"error": "Failed to process webhook", "code": "internal_error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {
                "success": True,
                "orderId": str(result.order.id),
                "orderNumber": result.order.order_number,
                "status": result.order.status,
                "changed": result.changed,
                "ignored": result.ignored,
            }
        )
