import logging
from typing import Optional

from notifications.events import ORDER_CREATED, ORDER_UPDATED, EventBroadcaster, get_broadcaster
from notifications.models import AdminNotification
from notifications.services import AdminNotificationService

logger = logging.getLogger(__name__)


def order_created_payload(order):
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "checkoutId": order.checkout_id,
        "status": order.status,
        "restaurantId": order.restaurant_id,
        "restaurantName": order.restaurant.name if order.restaurant_id else None,
        "customerName": order.contact_name,
        "isGuest": order.is_guest_order,
        "total": order.total,
        "createdAt": order.created_at,
    }


def order_updated_payload(order, previous_status, source):
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "previousStatus": previous_status,
        "source": source,
        "version": order.version,
        "updatedAt": order.updated_at,
    }


class OrderEventPublisher:
    """
    Announces committed order changes: an event for live observers and an
    admin notification. Both run after the transaction commits.
    """

    def __init__(
        self,
        broadcaster: Optional[EventBroadcaster] = None,
        notifications: Optional[AdminNotificationService] = None,
    ):
        self.broadcaster = broadcaster or get_broadcaster()
        self.notifications = notifications or AdminNotificationService(self.broadcaster)

    def order_created(self, order):
        logger.info(f"Publishing order.created for {order.order_number}")
        self.broadcaster.publish_on_commit(ORDER_CREATED, order_created_payload(order))

        restaurant = order.restaurant.name if order.restaurant_id else "Multiple restaurants"
        self.notifications.create_on_commit(
            AdminNotification.NotificationType.ORDER_CREATED,
            f"New order {order.order_number}",
            f"{order.contact_name} ordered from {restaurant} (${order.total})",
            {"orderId": str(order.id), "orderNumber": order.order_number},
        )

    def order_updated(self, order, previous_status, source):
        logger.info(
            f"Publishing order.updated for {order.order_number}: {previous_status} -> {order.status} ({source})"
        )
        self.broadcaster.publish_on_commit(
            ORDER_UPDATED, order_updated_payload(order, previous_status, source)
        )
        self.notifications.create_on_commit(
            AdminNotification.NotificationType.ORDER_STATUS_CHANGED,
            f"Order {order.order_number} is {order.get_status_display().lower()}",
            f"Status changed from {previous_status} to {order.status} via {source}",
            {
                "orderId": str(order.id),
                "orderNumber": order.order_number,
                "status": order.status,
                "previousStatus": previous_status,
            },
        )
