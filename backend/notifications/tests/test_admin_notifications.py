"""
Admin notification feed, stream tokens and the order stream endpoint.
"""
import pytest
from decimal import Decimal
from django.core import mail
from django.test import RequestFactory
from unittest.mock import MagicMock

from notifications.models import AdminNotification
from notifications.services import AdminNotificationService, EmailService
from notifications.views import admin_orders_stream
from users.tokens import issue_stream_token

NOTIFICATIONS_URL = "/api/notifications/"
STREAM_TOKEN_URL = "/api/admin/orders/stream-token/"
STREAM_URL = "/api/admin/orders/stream/"


@pytest.fixture
def notification_service():
    return AdminNotificationService(broadcaster=MagicMock())


# ============================================================================
# Notification service
# ============================================================================


@pytest.mark.django_db
class TestAdminNotificationService:
    def test_create_announces_after_commit(self, notification_service):
        notification = notification_service.create(
            AdminNotification.NotificationType.ORDER_CREATED,
            "New order MKD-1",
            data={"orderNumber": "MKD-1"},
        )

        assert notification.data == {"orderNumber": "MKD-1"}
        notification_service.broadcaster.publish_on_commit.assert_called_once()
        topic, payload = notification_service.broadcaster.publish_on_commit.call_args.args
        assert topic == "admin.notification.created"
        assert payload["title"] == "New order MKD-1"

    def test_create_on_commit_defers(self, notification_service, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            notification_service.create_on_commit(AdminNotification.NotificationType.PAYMENT_FAILED, "Payment failed")
            assert AdminNotification.objects.count() == 0

        assert AdminNotification.objects.get().type == "payment.failed"

    def test_mark_read_is_idempotent(self, notification_service, admin_user):
        notification = notification_service.create(AdminNotification.NotificationType.ORDER_CREATED, "New order")

        AdminNotificationService.mark_read(notification, admin_user)
        AdminNotificationService.mark_read(notification, admin_user)

        notification.refresh_from_db()
        assert notification.read_by == [admin_user.id]


# ============================================================================
# Notification API
# ============================================================================


@pytest.mark.django_db
class TestNotificationEndpoints:
    def test_admin_lists_notifications(self, authenticated_client, admin_user, notification_service):
        notification_service.create(AdminNotification.NotificationType.ORDER_CREATED, "First")
        notification_service.create(AdminNotification.NotificationType.PAYMENT_FAILED, "Second")

        response = authenticated_client(admin_user).get(NOTIFICATIONS_URL)

        assert response.status_code == 200
        assert response.data["count"] == 2

    def test_filter_by_type(self, authenticated_client, admin_user, notification_service):
        notification_service.create(AdminNotification.NotificationType.ORDER_CREATED, "First")
        notification_service.create(AdminNotification.NotificationType.PAYMENT_FAILED, "Second")

        response = authenticated_client(admin_user).get(NOTIFICATIONS_URL, {"type": "payment.failed"})
        assert [n["title"] for n in response.data["results"]] == ["Second"]

    def test_mark_read_and_unread_only(self, authenticated_client, admin_user, notification_service):
        read = notification_service.create(AdminNotification.NotificationType.ORDER_CREATED, "Read me")
        notification_service.create(AdminNotification.NotificationType.ORDER_CREATED, "Still unread")
        client = authenticated_client(admin_user)

        response = client.post(f"{NOTIFICATIONS_URL}{read.id}/read/")
        assert response.status_code == 200
        assert response.data["is_read"] is True

        response = client.get(NOTIFICATIONS_URL, {"unread_only": "true"})
        assert [n["title"] for n in response.data["results"]] == ["Still unread"]

    def test_staff_cannot_read_admin_feed(self, authenticated_client, staff_user):
        assert authenticated_client(staff_user).get(NOTIFICATIONS_URL).status_code == 403


# ============================================================================
# Order stream
# ============================================================================


@pytest.mark.django_db
class TestStreamToken:
    def test_admin_gets_token(self, authenticated_client, admin_user):
        response = authenticated_client(admin_user).post(STREAM_TOKEN_URL)

        assert response.status_code == 200
        assert response.data["token"]
        assert response.data["expiresIn"] == 120

    def test_non_admin_forbidden(self, authenticated_client, staff_user):
        assert authenticated_client(staff_user).post(STREAM_TOKEN_URL).status_code == 403


@pytest.mark.django_db(transaction=True)
class TestOrderStreamEndpoint:
    @pytest.mark.asyncio
    async def test_missing_token(self):
        response = await admin_orders_stream(RequestFactory().get(STREAM_URL))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_forged_token(self):
        response = await admin_orders_stream(RequestFactory().get(STREAM_URL, {"token": "not.a.jwt"}))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_non_admin_token(self, staff_user):
        token = issue_stream_token(staff_user)
        response = await admin_orders_stream(RequestFactory().get(STREAM_URL, {"token": token}))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_opens_stream(self, admin_user):
        token = issue_stream_token(admin_user)
        response = await admin_orders_stream(RequestFactory().get(STREAM_URL, {"token": token}))

        assert response.status_code == 200
        assert response["Content-Type"] == "text/event-stream"
        assert response["Cache-Control"] == "no-cache"
        assert response.streaming

    @pytest.mark.asyncio
    async def test_post_not_allowed(self):
        response = await admin_orders_stream(RequestFactory().post(STREAM_URL))
        assert response.status_code == 405


# ============================================================================
# Confirmation email
# ============================================================================


@pytest.mark.django_db
class TestConfirmationEmail:
    def test_one_email_per_checkout(self, make_order, customer_user, restaurant_b):
        orders = [
            make_order(customer=customer_user),
            make_order(customer=customer_user, restaurant=restaurant_b, subtotal=Decimal("20.00")),
        ]

        assert EmailService().send_order_confirmation_email(orders) is True

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == [customer_user.email]
        assert orders[0].order_number in message.subject
        assert orders[1].order_number in message.subject
        for order in orders:
            order.refresh_from_db()
            assert order.confirmation_sent

    def test_no_recipient(self, make_order):
        order = make_order(guest_info={"name": "No Email"})
        assert EmailService().send_order_confirmation_email([order]) is False
        assert mail.outbox == []

    def test_send_failure_is_reported_not_raised(self, customer_order, monkeypatch):
        def boom(*args, **kwargs):
            raise ConnectionRefusedError("smtp down")

        monkeypatch.setattr("notifications.services.send_mail", boom)
        assert EmailService().send_order_confirmation_email([customer_order]) is False
