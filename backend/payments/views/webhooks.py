"""
Webhook views for payment providers.

Handles webhook callbacks from Stripe. These endpoints process asynchronous
payment events and update local state.
"""
import logging

import stripe
from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework.permissions import AllowAny

from ..gateways import StripeGateway
from .base import BasePaymentView

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(BasePaymentView):
    """
    Stripe webhook view to handle asynchronous events.

    payment_intent.succeeded settles the linked orders (idempotently) and
    payment_intent.payment_failed marks the local intent failed. Every other
    event is acknowledged and ignored.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")

        try:
            event = StripeGateway.construct_event(payload, sig_header)
        except ValueError as e:
            # Invalid payload
            logger.error(f"Stripe webhook: Invalid payload - {e}")
            return HttpResponse(status=400)
        except stripe.SignatureVerificationError as e:
            # Invalid signature
            logger.error(f"Stripe webhook: Invalid signature - {e}")
            return HttpResponse(status=400)

        logger.info(f"Stripe webhook: received {event['type']}")
        self.get_orchestrator().handle_webhook_event(event)
        return HttpResponse(status=200)
