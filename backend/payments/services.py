import hashlib
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core_backend.exceptions import ValidationError
from discounts.services import PromoCodeService
from notifications.models import AdminNotification
from notifications.services import AdminNotificationService
from orders.exceptions import OrderNotFound
from orders.models import Order
from .exceptions import (
    AmountMismatchError,
    InvalidPaymentMethod,
    OrdersNotPayable,
    PaymentDeclined,
    PaymentIntentNotFound,
)
from .gateways import ProcessorIntent, StripeGateway
from .models import PaymentIntent, SavedPaymentMethod
from .money import to_minor

logger = logging.getLogger(__name__)

Status = PaymentIntent.IntentStatus


def _field(obj, name):
    """Reads a key from a webhook payload object (dict or StripeObject)."""
    if obj is None:
        return None
    try:
        return obj[name]
    except KeyError:
        return None


@dataclass(frozen=True)
class IntentResult:
    payment_intent: PaymentIntent
    reused: bool

    def as_dict(self):
        return {
            "clientSecret": self.payment_intent.client_secret,
            "paymentIntentId": self.payment_intent.stripe_payment_intent_id,
            "status": self.payment_intent.status,
            "reused": self.reused,
        }


@dataclass(frozen=True)
class SettlementResult:
    payment_intent: PaymentIntent
    order_ids: List[str]
    already_settled: bool

    @property
    def success(self):
        return self.payment_intent.status == Status.SUCCEEDED

    def as_dict(self):
        return {
            "success": self.success,
            "status": self.payment_intent.status,
            "orderIds": self.order_ids,
            "alreadySettled": self.already_settled,
        }


class PaymentOrchestrator:
    """
    One payment intent per checkout attempt, covering every order the
    checkout produced.

        (none) --create_intent--> requires_confirmation --confirm--> succeeded
                                                     \\--decline--> failed
        (none) --create_intent with saved card--> succeeded

    - create_intent reuses a pending intent for the same order set instead of
      creating a second one. An order already under a pending intent for a
      different order set is refused, so no order is ever covered twice.
      After a failure a fresh attempt gets its own processor idempotency key.
    - Settlement is idempotent: a repeated confirmation or webhook for a
      succeeded intent is acknowledged without touching the orders again.
    - Confirmation email and courier dispatch are scheduled after the
      settlement commits and never roll it back.
    """

    WEBHOOK_SUCCEEDED = "payment_intent.succeeded"
    WEBHOOK_FAILED = "payment_intent.payment_failed"

    def __init__(self, gateway: Optional[StripeGateway] = None, notifications: Optional[AdminNotificationService] = None):
        self.gateway = gateway or StripeGateway()
        self._notifications = notifications

    @property
    def notifications(self) -> AdminNotificationService:
        if self._notifications is None:
            self._notifications = AdminNotificationService()
        return self._notifications

    @staticmethod
    def order_set_key(order_ids: Iterable) -> str:
        joined = ",".join(sorted(str(order_id) for order_id in order_ids))
        return hashlib.sha256(joined.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    # Intent creation
    # ------------------------------------------------------------------

    def create_intent(
        self,
        *,
        amount_minor,
        currency: str,
        order_ids,
        customer=None,
        checkout_id=None,
        payment_method_id: Optional[str] = None,
    ) -> IntentResult:
        """
        Creates, or reuses, the payment intent for a set of orders.

        Raises:
            ValidationError: Bad amount, currency or order list.
            OrderNotFound: An order is missing or not the caller's.
            InvalidPaymentMethod: payment_method_id is not a card the customer saved.
            OrdersNotPayable: An order is cancelled, past pending, already settled,
                or already covered by another pending intent.
            AmountMismatchError: amount_minor differs from the sum of the order totals.
            PaymentDeclined: The processor declined a saved card. The failed
                attempt is recorded so the next call starts a fresh one.
            PaymentTransientError: The processor could not be reached; retry.
        """
        currency = self._validate_request(amount_minor, currency, order_ids)
        self._check_payment_method(payment_method_id, customer)
        order_ids = sorted({str(order_id) for order_id in order_ids})
        key = self.order_set_key(order_ids)

        declined = None
        with transaction.atomic():
            orders = self._lock_orders(order_ids)
            self._check_access(orders, customer, checkout_id)
            self._check_payable(orders)

            expected = to_minor(sum((order.total for order in orders), Decimal("0")), currency)
            if amount_minor != expected:
                logger.warning(
                    f"Amount mismatch for orders {order_ids}: client sent {amount_minor}, "
                    f"orders total {expected}"
                )
                raise AmountMismatchError(details={"expected": expected, "received": amount_minor})

            self._check_no_overlapping_intent(orders, key)

            latest = (
                PaymentIntent.objects.select_for_update()
                .filter(order_set_key=key)
                .order_by("-attempt")
                .first()
            )
            if latest is not None and latest.status == Status.SUCCEEDED:
                raise OrdersNotPayable("These orders have already been paid")

            if latest is not None and latest.status == Status.REQUIRES_CONFIRMATION:
                logger.info(
                    f"Reusing payment intent {latest.stripe_payment_intent_id} for orders {order_ids}"
                )
                if payment_method_id:
                    try:
                        self._apply_processor_state(
                            latest, self.gateway.confirm_intent(latest.stripe_payment_intent_id, payment_method_id)
                        )
                    except PaymentDeclined as e:
                        self._mark_failed(latest, e.message)
                        declined = e
                if declined is None:
                    return IntentResult(payment_intent=latest, reused=True)
            else:
                attempt = latest.attempt + 1 if latest is not None else 1
                record = PaymentIntent(
                    order_set_key=key,
                    attempt=attempt,
                    customer=customer,
                    checkout_id=checkout_id or orders[0].checkout_id,
                    amount_minor=expected,
                    currency=currency,
                )
                try:
                    processor_intent = self.gateway.create_intent(
                        amount_minor=expected,
                        currency=currency,
                        idempotency_key=record.idempotency_key,
                        metadata={
                            "order_ids": ",".join(order_ids),
                            "order_numbers": ",".join(order.order_number for order in orders),
                            "checkout_id": str(record.checkout_id or ""),
                        },
                        payment_method_id=payment_method_id,
                        receipt_email=orders[0].contact_email,
                    )
                except PaymentDeclined as e:
                    record.stripe_payment_intent_id = e.processor_intent_id
                    record.status = Status.FAILED
                    record.failure_reason = e.message
                    record.save()
                    record.orders.set(orders)
                    declined = e
                else:
                    record.stripe_payment_intent_id = processor_intent.id
                    record.client_secret = processor_intent.client_secret or ""
                    record.save()
                    record.orders.set(orders)
                    logger.info(
                        f"Created payment intent {processor_intent.id} (attempt {attempt}) "
                        f"for {expected} {currency} covering orders {order_ids}"
                    )
                    self._apply_processor_state(record, processor_intent)
                    return IntentResult(payment_intent=record, reused=False)

        # Raised after commit so the failed attempt stays recorded
        raise declined

    def _validate_request(self, amount_minor, currency, order_ids) -> str:
        if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
            raise ValidationError("Amount must be an integer number of minor units")
        if amount_minor <= 0 or amount_minor > settings.MAX_PAYMENT_AMOUNT_MINOR:
            raise ValidationError(
                f"Amount must be between 1 and {settings.MAX_PAYMENT_AMOUNT_MINOR} minor units"
            )

        currency = (currency or "").lower()
        if currency != settings.PAYMENT_CURRENCY:
            raise ValidationError(f"Unsupported currency: {currency or 'missing'}")

        if not order_ids:
            raise ValidationError("At least one order id is required")
        return currency

    @staticmethod
    def _lock_orders(order_ids: List[str]) -> List[Order]:
        try:
            orders = list(
                Order.objects.select_for_update().filter(id__in=order_ids).order_by("id")
            )
        except (ValueError, DjangoValidationError):
            raise OrderNotFound()
        if len(orders) != len(order_ids):
            raise OrderNotFound("One or more orders were not found")
        return orders

    @staticmethod
    def _check_access(orders: List[Order], customer, checkout_id) -> None:
        """
        Customers may only pay for their own orders. Guests prove ownership
        with the checkout id returned by guest checkout.
        """
        if customer is not None:
            if any(order.customer_id != customer.id for order in orders):
                raise OrderNotFound("One or more orders were not found")
            return

        if not checkout_id or any(
            not order.is_guest_order or str(order.checkout_id) != str(checkout_id) for order in orders
        ):
            raise OrderNotFound("One or more orders were not found")

    @staticmethod
    def _check_payment_method(payment_method_id: Optional[str], customer) -> None:
        """Saved cards may only be charged by the customer who saved them."""
        if not payment_method_id:
            return
        if customer is None:
            raise InvalidPaymentMethod("Sign in to pay with a saved payment method")
        owned = SavedPaymentMethod.objects.filter(
            user=customer, stripe_payment_method_id=payment_method_id
        ).exists()
        if not owned:
            logger.warning(f"Rejected payment method {payment_method_id} for user {customer.id}")
            raise InvalidPaymentMethod()

    @staticmethod
    def _check_no_overlapping_intent(orders: List[Order], key: str) -> None:
        """
        Refuses a new order set that shares an order with a pending intent for
        a different set. The orders are already locked, so two requests for
        overlapping sets cannot both pass this check.
        """
        overlapping = (
            PaymentIntent.objects.filter(
                orders__in=orders, status=Status.REQUIRES_CONFIRMATION
            )
            .exclude(order_set_key=key)
            .order_by("-created_at")
            .first()
        )
        if overlapping is None:
            return

        shared = sorted(
            overlapping.orders.filter(pk__in=[order.pk for order in orders]).values_list(
                "order_number", flat=True
            )
        )
        logger.warning(
            f"Orders {shared} already covered by pending intent {overlapping.stripe_payment_intent_id}"
        )
        raise OrdersNotPayable(
            f"Order {shared[0]} already has a payment in progress",
            details={"paymentIntentId": overlapping.stripe_payment_intent_id, "orderNumbers": shared},
        )

    @staticmethod
    def _check_payable(orders: List[Order]) -> None:
        for order in orders:
            if order.payment_settled:
                raise OrdersNotPayable(f"Order {order.order_number} has already been paid")
            if order.status != Order.OrderStatus.PENDING:
                raise OrdersNotPayable(
                    f"Order {order.order_number} is {order.get_status_display().lower()} and cannot be paid"
                )

    # ------------------------------------------------------------------
    # Confirmation and settlement
    # ------------------------------------------------------------------

    def confirm_intent(self, processor_intent_id: str) -> SettlementResult:
        """
        Client-side confirmation callback. The processor's own view of the
        intent decides the outcome; the client's claim is never trusted.
        """
        record = self._get_record(processor_intent_id)
        if record.status == Status.SUCCEEDED:
            logger.info(f"Payment intent {processor_intent_id} already settled; acknowledging")
            return self._result(record, already_settled=True)
        if record.status == Status.FAILED:
            return self._result(record, already_settled=False)

        processor_intent = self.gateway.retrieve_intent(processor_intent_id)
        with transaction.atomic():
            record = PaymentIntent.objects.select_for_update().get(pk=record.pk)
            return self._apply_processor_state(record, processor_intent)

    def handle_webhook_event(self, event) -> Optional[SettlementResult]:
        """
        Applies a verified processor webhook event. Unknown intents and
        unhandled event types are acknowledged and ignored.
        """
        event_type = event["type"]
        intent_data = event["data"]["object"]
        processor_intent_id = intent_data["id"]

        if event_type not in (self.WEBHOOK_SUCCEEDED, self.WEBHOOK_FAILED):
            logger.debug(f"Ignoring payment webhook event {event_type}")
            return None

        try:
            record = self._get_record(processor_intent_id)
        except PaymentIntentNotFound:
            logger.warning(f"Webhook {event_type} for unknown payment intent {processor_intent_id}")
            return None

        with transaction.atomic():
            record = PaymentIntent.objects.select_for_update().get(pk=record.pk)
            if event_type == self.WEBHOOK_SUCCEEDED:
                return self.settle(record)

            last_error = _field(intent_data, "last_payment_error")
            self._mark_failed(record, _field(last_error, "message") or "Payment failed")
            return self._result(record, already_settled=False)

    def settle(self, record: PaymentIntent) -> SettlementResult:
        """
        Marks every linked order payment-settled. Must run inside a
        transaction with the intent row locked.
        """
        if record.status == Status.SUCCEEDED:
            logger.info(f"Payment intent {record.stripe_payment_intent_id} already settled; no-op")
            return self._result(record, already_settled=True)

        now = timezone.now()
        record.status = Status.SUCCEEDED
        record.processor_status = ProcessorIntent.SUCCEEDED
        record.succeeded_at = now
        record.save(update_fields=["status", "processor_status", "succeeded_at", "updated_at"])

        orders = list(record.orders.select_for_update().order_by("created_at", "order_number"))
        for order in orders:
            if order.payment_settled:
                continue
            order.payment_settled = True
            order.payment_settled_at = now
            order.stripe_payment_intent_id = record.stripe_payment_intent_id
            order.save(
                update_fields=["payment_settled", "payment_settled_at", "stripe_payment_intent_id", "updated_at"]
            )

        promo = orders[0].applied_promo if orders else None
        if promo and promo.get("code"):
            PromoCodeService.redeem(promo["code"])

        order_ids = [str(order.id) for order in orders]
        logger.info(
            f"Payment intent {record.stripe_payment_intent_id} settled {record.amount_minor} "
            f"{record.currency} for orders {[o.order_number for o in orders]}"
        )
        transaction.on_commit(lambda: self._schedule_post_settlement(order_ids))
        return self._result(record, already_settled=False)

    @staticmethod
    def _schedule_post_settlement(order_ids: List[str]) -> None:
        from delivery.tasks import dispatch_order_to_courier
        from notifications.tasks import send_order_confirmation_email

        try:
            send_order_confirmation_email.delay(order_ids)
        except Exception as e:
            logger.error(f"Failed to queue confirmation email for orders {order_ids}: {e}", exc_info=True)

        for order_id in order_ids:
            try:
                dispatch_order_to_courier.delay(order_id)
            except Exception as e:
                logger.error(f"Failed to queue courier dispatch for order {order_id}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply_processor_state(self, record: PaymentIntent, processor_intent: ProcessorIntent) -> SettlementResult:
        if processor_intent.succeeded:
            return self.settle(record)
        if processor_intent.failed:
            self._mark_failed(record, processor_intent.failure_message or "Payment failed")
            return self._result(record, already_settled=False)

        if record.processor_status != processor_intent.status:
            record.processor_status = processor_intent.status
            record.save(update_fields=["processor_status", "updated_at"])
        return self._result(record, already_settled=False)

    def _mark_failed(self, record: PaymentIntent, reason: str) -> None:
        if record.status != Status.REQUIRES_CONFIRMATION:
            return
        record.status = Status.FAILED
        record.failure_reason = reason or ""
        record.save(update_fields=["status", "failure_reason", "updated_at"])
        logger.warning(f"Payment intent {record.stripe_payment_intent_id} failed: {reason}")

        order_numbers = list(record.orders.values_list("order_number", flat=True))
        self.notifications.create_on_commit(
            AdminNotification.NotificationType.PAYMENT_FAILED,
            title=f"Payment failed for {', '.join(order_numbers)}",
            message=reason or "",
            data={"paymentIntentId": record.stripe_payment_intent_id, "orderNumbers": order_numbers},
        )

    @staticmethod
    def _get_record(processor_intent_id: str) -> PaymentIntent:
        if not processor_intent_id:
            raise ValidationError("paymentIntentId is required")
        try:
            return PaymentIntent.objects.get(stripe_payment_intent_id=processor_intent_id)
        except PaymentIntent.DoesNotExist:
            raise PaymentIntentNotFound()

    @staticmethod
    def _result(record: PaymentIntent, already_settled: bool) -> SettlementResult:
        order_ids = [str(order_id) for order_id in record.orders.order_by("created_at").values_list("id", flat=True)]
        return SettlementResult(payment_intent=record, order_ids=order_ids, already_settled=already_settled)
