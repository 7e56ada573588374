import logging
from typing import Any, Dict, Iterable, Optional

from django.conf import settings
from django.core.mail import send_mail
from django.db import DatabaseError, transaction
from django.template.loader import render_to_string

from .events import ADMIN_NOTIFICATION_CREATED, EventBroadcaster, get_broadcaster
from .models import AdminNotification

logger = logging.getLogger(__name__)


class AdminNotificationService:
    """
    Creates admin feed entries and announces them on the event bus.

    Notification failures are logged and swallowed: they must never fail the
    checkout, payment or webhook request that triggered them.
    """

    def __init__(self, broadcaster: Optional[EventBroadcaster] = None):
        self.broadcaster = broadcaster or get_broadcaster()

    def create(
        self,
        notification_type: str,
        title: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AdminNotification]:
        try:
            with transaction.atomic():
                notification = AdminNotification.objects.create(
                    type=notification_type,
                    title=title,
                    message=message,
                    data=data or {},
                )
        except DatabaseError as e:
            logger.error(f"Failed to create admin notification {notification_type}: {e}", exc_info=True)
            return None

        self.broadcaster.publish_on_commit(ADMIN_NOTIFICATION_CREATED, notification.to_event())
        return notification

    def create_on_commit(self, notification_type, title, message="", data=None) -> None:
        """Defers creation until the caller's transaction has committed."""
        transaction.on_commit(
            lambda: self.create(notification_type, title, message, data)
        )

    @staticmethod
    def mark_read(notification: AdminNotification, user) -> AdminNotification:
        with transaction.atomic():
            locked = AdminNotification.objects.select_for_update().get(pk=notification.pk)
            read_by = list(locked.read_by or [])
            if user.id not in read_by:
                read_by.append(user.id)
                locked.read_by = read_by
                locked.save(update_fields=["read_by"])
        return locked

    @staticmethod
    def unread_for(user, queryset=None):
        queryset = queryset if queryset is not None else AdminNotification.objects.all()
        return [n for n in queryset if not n.is_read_by(user)]


class EmailService:
    def __init__(self):
        from_email_address = getattr(settings, "DEFAULT_FROM_EMAIL", "orders@example.com")
        self.default_from_email = f"Orders <{from_email_address}>"

    def send_email(self, recipient_list, subject, template_name, context, text_template_name=None):
        """
        Sends an email rendered from Django templates.

        Args:
            recipient_list (list): A list of recipient email addresses.
            subject (str): The subject of the email.
            template_name (str): HTML template path (e.g. 'emails/order_confirmation.html').
            context (dict): Template context.
            text_template_name (str): Optional plain-text template path.
        """
        html_message = render_to_string(template_name, context)
        text_message = render_to_string(text_template_name, context) if text_template_name else ""
        send_mail(
            subject,
            text_message,
            self.default_from_email,
            recipient_list,
            html_message=html_message,
            fail_silently=False,
        )

    def send_order_confirmation_email(self, orders: Iterable) -> bool:
        """
        Sends one confirmation covering every order of a checkout.

        Returns False (after logging) instead of raising, because a failed
        email must never undo a settled payment.
        """
        orders = list(orders)
        if not orders:
            return False

        recipient = orders[0].contact_email
        if not recipient:
            logger.warning(
                f"No email address for checkout {orders[0].checkout_id}; skipping confirmation"
            )
            return False

        try:
            context = {
                "customer_name": orders[0].contact_name,
                "orders": [
                    {
                        "order_number": order.order_number,
                        "restaurant": order.restaurant.name if order.restaurant_id else "",
                        "items": order.items,
                        "subtotal": order.subtotal,
                        "discount_amount": order.discount_amount,
                        "delivery_fee": order.delivery_fee,
                        "tax": order.tax,
                        "tip": order.tip,
                        "total": order.total,
                    }
                    for order in orders
                ],
                "grand_total": sum((order.total for order in orders)),
                "delivery_address": orders[0].delivery_address,
            }
            order_numbers = ", ".join(order.order_number for order in orders)

            self.send_email(
                recipient_list=[recipient],
                subject=f"Order Confirmation - {order_numbers}",
                template_name="emails/order_confirmation.html",
                text_template_name="emails/order_confirmation.txt",
                context=context,
            )

            for order in orders:
                order.confirmation_sent = True
                order.save(update_fields=["confirmation_sent", "updated_at"])

            logger.info(f"Order confirmation email sent for {order_numbers}")
            return True

        except Exception as e:
            logger.error(f"Failed to send order confirmation email: {type(e).__name__}: {e}")
            return False
