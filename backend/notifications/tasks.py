from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def send_order_confirmation_email(order_ids):
    """Celery task: confirmation email for the orders of one settled checkout."""
    from orders.models import Order
    from .services import EmailService

    orders = list(
        Order.objects.filter(id__in=order_ids)
        .select_related("customer", "restaurant")
        .order_by("created_at", "order_number")
    )
    if not orders:
        logger.warning(f"Confirmation email requested for unknown orders {order_ids}")
        return False
    return EmailService().send_order_confirmation_email(orders)
