"""
Shipday webhook parsing and handling.

Payloads arrive in several shapes depending on the Shipday event:

    {"event": ..., "order_status": "PICKED_UP", "order": {"id": 123, "order_number": "MKD-..."}}
    {"orderId": 123, "referenceNumber": "MKD-...", "status": "delivered"}
    {"id": 123, "status": "started"}
    {"data": {...any of the above...}}

DispatchEvent.parse normalizes all of them before any order is read.
"""
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.conf import settings

from orders.exceptions import OrderNotFound
from orders.models import Order
from orders.services import FulfillmentStateMachine, TransitionResult
from .exceptions import MalformedWebhook, UnauthorizedWebhook

logger = logging.getLogger(__name__)

Status = Order.OrderStatus

# Shipday status (lower-cased) -> order status
STATUS_MAP = {
    "not_assigned": Status.PENDING,
    "pending": Status.PENDING,
    "started": Status.CONFIRMED,
    "assigned": Status.CONFIRMED,
    "accepted": Status.CONFIRMED,
    "confirmed": Status.CONFIRMED,
    "picked_up": Status.PREPARING,
    "pickedup": Status.PREPARING,
    "pickup": Status.PREPARING,
    "ready_to_deliver": Status.OUT_FOR_DELIVERY,
    "on_the_way": Status.OUT_FOR_DELIVERY,
    "on_the_way_to_customer": Status.OUT_FOR_DELIVERY,
    "in_transit": Status.OUT_FOR_DELIVERY,
    "out_for_delivery": Status.OUT_FOR_DELIVERY,
    "already_delivered": Status.DELIVERED,
    "delivered": Status.DELIVERED,
    "completed": Status.DELIVERED,
    "cancelled": Status.CANCELLED,
    "canceled": Status.CANCELLED,
}

TOKEN_HEADERS = ("HTTP_X_SHIPDAY_TOKEN", "HTTP_X_WEBHOOK_TOKEN", "HTTP_TOKEN")


def map_status(raw_status: str) -> str:
    """Maps a provider status; unknown values pass through lower-cased."""
    lowered = (raw_status or "").strip().lower()
    return STATUS_MAP.get(lowered, lowered)


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class DispatchEvent:
    provider_order_id: Optional[str]
    reference_number: Optional[str]
    raw_status: str
    event_name: Optional[str] = None

    @property
    def status(self) -> str:
        return map_status(self.raw_status)

    @classmethod
    def parse(cls, payload: Any) -> "DispatchEvent":
        """
        Raises:
            MalformedWebhook: No order reference, no status, or a status that
                does not map to an order status.
        """
        if not isinstance(payload, dict):
            raise MalformedWebhook("Webhook body must be a JSON object")

        if isinstance(payload.get("data"), dict) and not cls._has_reference(payload):
            # Envelope shape: keep the outer event name, read everything else from data
            inner = dict(payload["data"])
            inner.setdefault("event", payload.get("event"))
            return cls.parse(inner)

        order = payload.get("order") if isinstance(payload.get("order"), dict) else {}
        provider_order_id = _as_text(order.get("id") or payload.get("orderId") or payload.get("id"))
        reference_number = _as_text(
            order.get("order_number")
            or order.get("orderNumber")
            or payload.get("referenceNumber")
            or payload.get("orderNumber")
        )
        raw_status = _as_text(payload.get("order_status") or payload.get("status") or order.get("status"))

        if not provider_order_id and not reference_number:
            raise MalformedWebhook(
                "Webhook must include orderId or referenceNumber", details={"code": "missing_reference"}
            )
        if not raw_status:
            raise MalformedWebhook("Webhook must include status", details={"code": "missing_status"})

        event = cls(
            provider_order_id=provider_order_id,
            reference_number=reference_number,
            raw_status=raw_status,
            event_name=_as_text(payload.get("event")),
        )
        if event.status not in Status.values:
            raise MalformedWebhook(
                f"Status '{raw_status}' cannot be mapped to a valid order status",
                details={"code": "unknown_status", "status": raw_status},
            )
        return event

    @staticmethod
    def _has_reference(payload: Dict[str, Any]) -> bool:
        return any(payload.get(key) for key in ("order", "orderId", "id", "referenceNumber", "orderNumber"))


def extract_token(request) -> Optional[str]:
    auth_header = request.META.get("HTTP_AUTHORIZATION", "")
    if auth_header:
        return auth_header[len("Bearer "):] if auth_header.startswith("Bearer ") else auth_header
    for header in TOKEN_HEADERS:
        value = request.META.get(header)
        if value:
            return value
    return None


def verify_webhook_secret(request) -> None:
    """
    Raises UnauthorizedWebhook unless the request carries the configured
    secret. With no secret configured every webhook is rejected.
    """
    secret = settings.SHIPDAY_WEBHOOK_SECRET
    if not secret:
        logger.error("SHIPDAY_WEBHOOK_SECRET is not configured; rejecting Shipday webhook")
        raise UnauthorizedWebhook()

    token = extract_token(request)
    if not token or not hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
        logger.warning(
            f"Shipday webhook authentication failed from {request.META.get('REMOTE_ADDR')} "
            f"(token present: {bool(token)})"
        )
        raise UnauthorizedWebhook()


class DispatchWebhookService:
    """Resolves the order a dispatch event refers to and applies its status."""

    def __init__(self, state_machine: Optional[FulfillmentStateMachine] = None):
        self.state_machine = state_machine or FulfillmentStateMachine()

    @staticmethod
    def find_order(event: DispatchEvent) -> Order:
        """Provider id first, then the platform order number."""
        order = None
        if event.provider_order_id:
            order = Order.objects.filter(shipday_order_id=event.provider_order_id).first()
        if order is None and event.reference_number:
            order = Order.objects.filter(order_number=event.reference_number).first()
            if order is not None and event.provider_order_id and not order.shipday_order_id:
                Order.objects.filter(pk=order.pk, shipday_order_id__isnull=True).update(
                    shipday_order_id=event.provider_order_id
                )

        if order is None:
            logger.warning(
                f"Order not found for Shipday webhook: shipday id {event.provider_order_id}, "
                f"reference {event.reference_number}"
            )
            raise OrderNotFound(
                f"No order found with shipdayOrderId: {event.provider_order_id} "
                f"or orderNumber: {event.reference_number}"
            )
        return order

    def handle(self, event: DispatchEvent) -> TransitionResult:
        order = self.find_order(event)
        result = self.state_machine.apply_dispatch_status(order.pk, event.status)
        logger.info(
            f"Shipday webhook {event.event_name or ''} for {result.order.order_number}: "
            f"{event.raw_status} -> {event.status} (changed={result.changed}, ignored={result.ignored})"
        )
        return result
