from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def dispatch_order_to_courier(order_id):
    """
    Celery task: sends a settled order to Shipday and stores the courier-side id.
    Failures are logged; the order stays settled and can be re-dispatched.
    """
    from orders.models import Order
    from .services import ShipdayClient

    order = Order.objects.select_related("customer", "restaurant").filter(pk=order_id).first()
    if order is None:
        logger.warning(f"Courier dispatch requested for unknown order {order_id}")
        return False
    if order.shipday_order_id:
        logger.info(f"Order {order.order_number} already dispatched as {order.shipday_order_id}")
        return True
    if order.status == Order.OrderStatus.CANCELLED:
        logger.info(f"Order {order.order_number} was cancelled before dispatch; skipping")
        return False

    result = ShipdayClient().create_order(order)
    if not result.success:
        logger.error(f"Courier dispatch failed for order {order.order_number}: {result.error}")
        return False

    Order.objects.filter(pk=order.pk).update(shipday_order_id=result.provider_order_id)
    return True
