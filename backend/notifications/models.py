import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class AdminNotification(models.Model):
    """
    Append-only feed item for administrators. Only read_by changes after creation.
    """

    class NotificationType(models.TextChoices):
        ORDER_CREATED = "order.created", _("Order Created")
        ORDER_STATUS_CHANGED = "order.status_changed", _("Order Status Changed")
        PAYMENT_FAILED = "payment.failed", _("Payment Failed")
        TICKET_CREATED = "ticket.created", _("Ticket Created")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(max_length=50, choices=NotificationType.choices, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")
    data = models.JSONField(
        default=dict,
        blank=True,
        help_text=_("Reference to the subject entity, e.g. orderId and orderNumber."),
    )
    read_by = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Ids of the admins who have read this notification."),
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.type}: {self.title}"

    def is_read_by(self, user) -> bool:
        return user.id in (self.read_by or [])

    def to_event(self):
        return {
            "id": str(self.id),
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": self.data,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
