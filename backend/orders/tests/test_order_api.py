"""
Order listing and status action endpoints.
"""
import pytest

from orders.models import Order

Status = Order.OrderStatus


def detail_url(order, action=None):
    url = f"/api/orders/{order.id}/"
    return f"{url}{action}/" if action else url


@pytest.mark.django_db
class TestOrderListScoping:
    def test_customer_sees_only_own_orders(self, authenticated_client, customer_user, make_order):
        own = make_order(customer=customer_user)
        make_order()

        response = authenticated_client(customer_user).get("/api/orders/")

        assert response.status_code == 200
        assert [o["id"] for o in response.data["results"]] == [str(own.id)]

    def test_owner_sees_own_restaurant_orders(self, authenticated_client, owner_user, other_owner, make_order, restaurant_b):
        own = make_order()
        make_order(restaurant=restaurant_b)

        response = authenticated_client(owner_user).get("/api/orders/")
        assert [o["id"] for o in response.data["results"]] == [str(own.id)]

    def test_staff_sees_everything(self, authenticated_client, staff_user, make_order, restaurant_b):
        make_order()
        make_order(restaurant=restaurant_b)

        response = authenticated_client(staff_user).get("/api/orders/")
        assert response.data["count"] == 2

    def test_status_filter(self, authenticated_client, staff_user, make_order):
        make_order(status=Status.PENDING)
        delivered = make_order(status=Status.DELIVERED)

        response = authenticated_client(staff_user).get("/api/orders/", {"status": "delivered,cancelled"})
        assert [o["id"] for o in response.data["results"]] == [str(delivered.id)]

    def test_customer_cannot_retrieve_others_order(self, authenticated_client, other_customer, customer_order):
        response = authenticated_client(other_customer).get(detail_url(customer_order))
        assert response.status_code == 404

    def test_anonymous_rejected(self, api_client):
        assert api_client.get("/api/orders/").status_code == 401


@pytest.mark.django_db
class TestStatusEndpoint:
    def test_staff_updates_status(self, authenticated_client, staff_user, customer_order):
        response = authenticated_client(staff_user).post(
            detail_url(customer_order, "status"), {"status": "confirmed"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["status"] == "confirmed"
        assert response.data["version"] == 2
        assert response.data["changed"] is True
        assert response.data["previous_status"] == "pending"

    def test_repeat_update_is_noop(self, authenticated_client, staff_user, make_order):
        order = make_order(status=Status.CONFIRMED)
        response = authenticated_client(staff_user).post(
            detail_url(order, "status"), {"status": "confirmed"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["changed"] is False
        assert response.data["version"] == 1

    def test_stale_version_returns_409(self, authenticated_client, staff_user, make_order):
        order = make_order(status=Status.CONFIRMED, version=3)
        response = authenticated_client(staff_user).post(
            detail_url(order, "status"), {"status": "preparing", "expected_version": 2}, format="json"
        )

        assert response.status_code == 409
        assert response.data["code"] == "stale_transition"

    def test_unknown_status_rejected(self, authenticated_client, staff_user, customer_order):
        response = authenticated_client(staff_user).post(
            detail_url(customer_order, "status"), {"status": "misplaced"}, format="json"
        )
        assert response.status_code == 400

    def test_terminal_order_returns_400(self, authenticated_client, staff_user, make_order):
        order = make_order(status=Status.DELIVERED)
        response = authenticated_client(staff_user).post(
            detail_url(order, "status"), {"status": "preparing"}, format="json"
        )
        assert response.status_code == 400
        assert response.data["code"] == "invalid_transition"

    def test_other_owner_forbidden(self, authenticated_client, other_owner, customer_order):
        response = authenticated_client(other_owner).post(
            detail_url(customer_order, "status"), {"status": "confirmed"}, format="json"
        )
        assert response.status_code == 403

    def test_customer_cannot_use_status_endpoint(self, authenticated_client, customer_user, customer_order):
        response = authenticated_client(customer_user).post(
            detail_url(customer_order, "status"), {"status": "cancelled"}, format="json"
        )
        assert response.status_code == 403


@pytest.mark.django_db
class TestCancelEndpoint:
    def test_customer_cancels_own_pending_order(self, authenticated_client, customer_user, customer_order):
        response = authenticated_client(customer_user).post(detail_url(customer_order, "cancel"), {}, format="json")

        assert response.status_code == 200
        assert response.data["status"] == "cancelled"

    def test_customer_cannot_cancel_out_for_delivery(self, authenticated_client, customer_user, make_order):
        order = make_order(customer=customer_user, status=Status.OUT_FOR_DELIVERY)
        response = authenticated_client(customer_user).post(detail_url(order, "cancel"), {}, format="json")

        assert response.status_code == 403
        order.refresh_from_db()
        assert order.status == Status.OUT_FOR_DELIVERY

    def test_cancel_someone_elses_order(self, authenticated_client, other_customer, customer_order):
        response = authenticated_client(other_customer).post(detail_url(customer_order, "cancel"), {}, format="json")
        assert response.status_code == 404
