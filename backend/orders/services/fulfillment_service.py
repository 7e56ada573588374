import logging
from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from orders.exceptions import InvalidTransition, OrderNotFound, StaleTransition
from orders.models import Order
from users.models import User
from .event_service import OrderEventPublisher

logger = logging.getLogger(__name__)

Status = Order.OrderStatus


class TransitionSource:
    MANUAL = "manual"
    CUSTOMER = "customer"
    DISPATCH_WEBHOOK = "dispatch_webhook"


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    previous_status: str
    changed: bool
    ignored: bool = False


class FulfillmentStateMachine:
    """
    Per-order delivery lifecycle:

        pending -> confirmed -> preparing -> out_for_delivery -> delivered
        any non-terminal state -> cancelled

    delivered and cancelled are terminal. Requesting the current status is a
    no-op, which absorbs duplicate webhook deliveries. Every committed change
    bumps Order.version and emits order.updated after commit.
    """

    SEQUENCE = (
        Status.PENDING,
        Status.CONFIRMED,
        Status.PREPARING,
        Status.OUT_FOR_DELIVERY,
        Status.DELIVERED,
    )
    TERMINAL_STATES = {Status.DELIVERED, Status.CANCELLED}
    CUSTOMER_CANCELLABLE = {Status.PENDING, Status.CONFIRMED}

    def __init__(self, events: Optional[OrderEventPublisher] = None):
        self.events = events or OrderEventPublisher()

    @classmethod
    def is_valid_status(cls, status: str) -> bool:
        return status in Status.values

    @classmethod
    def is_forward(cls, current: str, target: str) -> bool:
        if target == Status.CANCELLED:
            return current not in cls.TERMINAL_STATES
        if current not in cls.SEQUENCE or target not in cls.SEQUENCE:
            return False
        return cls.SEQUENCE.index(target) > cls.SEQUENCE.index(current)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def apply_manual(
        self,
        order_id,
        target_status: str,
        actor: User,
        expected_version: Optional[int] = None,
    ) -> TransitionResult:
        """
        Applies a status change requested through the API.

        Raises:
            OrderNotFound: If the order does not exist.
            StaleTransition: If expected_version is given and out of date.
            InvalidTransition: If the role or the current state forbids it.
        """
        self._require_valid_status(target_status)
        source = (
            TransitionSource.CUSTOMER
            if actor.role == User.Role.CUSTOMER
            else TransitionSource.MANUAL
        )

        with transaction.atomic():
            order = self._lock_order(order_id)

            if expected_version is not None and order.version != expected_version:
                logger.warning(
                    f"Stale update for order {order.order_number}: "
                    f"expected version {expected_version}, stored {order.version}"
                )
                raise StaleTransition(
                    details={"currentVersion": order.version, "currentStatus": order.status}
                )

            self._check_actor(order, target_status, actor)

            if order.status == target_status:
                return self._noop(order, source)

            self._check_state_rules(order, target_status, actor)
            return self._commit(order, target_status, source)

    def apply_dispatch_status(self, order_id, target_status: str) -> TransitionResult:
        """
        Applies a status reported by the delivery dispatcher.

        Dispatcher updates for an order that is already delivered or
        cancelled are acknowledged and ignored rather than rejected, so the
        provider stops retrying them.
        """
        self._require_valid_status(target_status)
        source = TransitionSource.DISPATCH_WEBHOOK

        with transaction.atomic():
            order = self._lock_order(order_id)

            if order.status == target_status:
                return self._noop(order, source)

            if order.is_terminal:
                logger.warning(
                    f"Ignoring dispatch status {target_status} for order {order.order_number}: "
                    f"already {order.status}"
                )
                return TransitionResult(
                    order=order, previous_status=order.status, changed=False, ignored=True
                )

            return self._commit(order, target_status, source)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _require_valid_status(self, status: str) -> None:
        if not self.is_valid_status(status):
            raise InvalidTransition(
                f"Unknown order status: {status}",
                details={"allowed": list(Status.values)},
            )

    @staticmethod
    def _lock_order(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValueError, DjangoValidationError):
            raise OrderNotFound()

    def _check_actor(self, order: Order, target_status: str, actor: User) -> None:
        """Who may touch this order at all, and which targets their role allows."""
        if actor.role in (User.Role.STAFF, User.Role.ADMIN):
            return

        if actor.role == User.Role.RESTAURANT_OWNER:
            if order.restaurant is None or order.restaurant.owner_id != actor.id:
                raise InvalidTransition(
                    "You can only update orders for your own restaurants", forbidden=True
                )
            return

        if actor.role == User.Role.CUSTOMER:
            if order.customer_id != actor.id:
                raise OrderNotFound()
            if target_status != Status.CANCELLED:
                raise InvalidTransition("Customers may only cancel orders", forbidden=True)
            return

        raise InvalidTransition("Not allowed to change order status", forbidden=True)

    def _check_state_rules(self, order: Order, target_status: str, actor: User) -> None:
        if order.is_terminal:
            raise InvalidTransition(
                f"Order {order.order_number} is already {order.status}",
                details={"currentStatus": order.status},
            )

        if actor.role == User.Role.CUSTOMER and order.status not in self.CUSTOMER_CANCELLABLE:
            raise InvalidTransition(
                f"Order can no longer be cancelled once it is {order.get_status_display().lower()}",
                details={"currentStatus": order.status},
                forbidden=True,
            )

        if actor.role == User.Role.RESTAURANT_OWNER and not self.is_forward(order.status, target_status):
            raise InvalidTransition(
                f"Restaurant owners cannot move an order from {order.status} back to {target_status}",
                details={"currentStatus": order.status},
                forbidden=True,
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def _noop(order: Order, source: str) -> TransitionResult:
        logger.info(f"Order {order.order_number} already {order.status}; ignoring duplicate {source} update")
        return TransitionResult(order=order, previous_status=order.status, changed=False)

    def _commit(self, order: Order, target_status: str, source: str) -> TransitionResult:
        previous_status = order.status

        if target_status not in (Status.PENDING, Status.CANCELLED) and not order.payment_settled:
            # Advisory only: dispatch may legitimately run ahead of the payment callback
            logger.warning(
                f"Order {order.order_number} moving to {target_status} before payment settled"
            )

        order.status = target_status
        order.version += 1
        update_fields = ["status", "version", "updated_at"]

        if target_status == Status.DELIVERED and order.actual_delivery_time is None:
            order.actual_delivery_time = timezone.now()
            update_fields.append("actual_delivery_time")

        order.save(update_fields=update_fields)

        logger.info(
            f"Order {order.order_number}: Status transition {previous_status} -> {target_status} "
            f"via {source} (version {order.version})"
        )
        self.events.order_updated(order, previous_status, source)
        return TransitionResult(order=order, previous_status=previous_status, changed=True)
