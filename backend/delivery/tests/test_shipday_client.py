"""
Shipday client and courier dispatch task tests. requests.post and
time.sleep are patched; nothing leaves the process.
"""
import pytest
import requests
from decimal import Decimal
from unittest.mock import MagicMock, patch

from delivery.services import ShipdayClient
from delivery.tasks import dispatch_order_to_courier
from orders.models import Order


def response(status_code=200, body=None, text=None):
    resp = MagicMock()
    resp.status_code = status_code
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    resp.text = text if text is not None else ""
    return resp


@pytest.fixture
def client():
    return ShipdayClient(api_key="test-key", base_url="https://shipday.test", max_attempts=3, base_delay=1.0)


# ============================================================================
# Payload
# ============================================================================


@pytest.mark.django_db
class TestBuildPayload:
    def test_payload_fields(self, customer_order):
        payload = ShipdayClient.build_payload(customer_order)

        assert payload["orderNumber"] == customer_order.order_number
        assert payload["customerName"] == "Jane Doe"
        assert payload["customerPhoneNumber"] == "5551234567"
        assert payload["customerEmail"] == "jane@example.com"
        assert payload["customerAddress"] == "350 5th Ave, New York, NY 10001, USA"
        assert payload["totalOrderCost"] == float(customer_order.total)
        assert payload["deliveryFee"] == 3.0
        assert payload["tips"] == 2.7
        assert payload["restaurantName"] == "Pizza Place"
        assert payload["items"][0] == {"name": "Margherita", "quantity": 1, "unitPrice": 15.0}

    def test_guest_without_phone_gets_placeholder(self, make_order):
        order = make_order(guest_info={"name": "Guest", "email": "g@example.com"})
        payload = ShipdayClient.build_payload(order)

        assert payload["customerPhoneNumber"] == "0000000000"
        assert payload["customerName"] == f"Customer {order.order_number}"

    def test_promo_in_instructions(self, make_order):
        order = make_order(delivery_instructions="Ring twice", applied_promo={"code": "SAVE10"})
        assert ShipdayClient.build_payload(order)["specialInstructions"] == "Ring twice | Promo Code: SAVE10"

    def test_incomplete_address(self, make_order):
        order = make_order(delivery_address={"street": "1 Main St", "zip_code": "10001"})
        with pytest.raises(ValueError, match="Missing required delivery address fields"):
            ShipdayClient.build_payload(order)


# ============================================================================
# API calls
# ============================================================================


@pytest.mark.django_db
class TestCreateOrder:
    def test_success_json_id(self, client, customer_order):
        with patch("delivery.services.requests.post", return_value=response(200, {"orderId": 8675309})) as post:
            result = client.create_order(customer_order)

        assert result.success
        assert result.provider_order_id == "8675309"
        url = post.call_args.args[0]
        assert url == "https://shipday.test/orders"
        assert post.call_args.kwargs["headers"]["Authorization"] == "Basic test-key"

    def test_success_plain_text_id(self, client, customer_order):
        resp = response(200, text="Order inserted with id 424242")
        with patch("delivery.services.requests.post", return_value=resp):
            result = client.create_order(customer_order)

        assert result.success
        assert result.provider_order_id == "424242"

    def test_insert_failure_in_body(self, client, customer_order):
        body = {"success": False, "response": "Invalid address"}
        with patch("delivery.services.requests.post", return_value=response(200, body)):
            result = client.create_order(customer_order)

        assert not result.success
        assert result.error == "Invalid address"

    def test_client_error_not_retried(self, client, customer_order):
        with patch("delivery.services.requests.post", return_value=response(400, {"message": "Bad payload"})) as post, \
                patch("delivery.services.time.sleep") as sleep:
            result = client.create_order(customer_order)

        assert not result.success
        assert result.status_code == 400
        assert result.error == "Bad payload"
        assert post.call_count == 1
        sleep.assert_not_called()

    def test_server_error_retried_with_backoff(self, client, customer_order):
        responses = [response(502), response(503), response(200, {"id": 1})]
        with patch("delivery.services.requests.post", side_effect=responses) as post, \
                patch("delivery.services.time.sleep") as sleep:
            result = client.create_order(customer_order)

        assert result.success
        assert post.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_connection_errors_exhaust_attempts(self, client, customer_order):
        with patch("delivery.services.requests.post", side_effect=requests.ConnectionError("refused")) as post, \
                patch("delivery.services.time.sleep"):
            result = client.create_order(customer_order)

        assert not result.success
        assert post.call_count == 3
        assert "refused" in result.error

    def test_no_api_key(self, customer_order):
        with patch("delivery.services.requests.post") as post:
            result = ShipdayClient(api_key="").create_order(customer_order)

        assert not result.success
        post.assert_not_called()


# ============================================================================
# Dispatch task
# ============================================================================


@pytest.mark.django_db
class TestDispatchTask:
    def test_stores_provider_id(self, customer_order):
        with patch.object(ShipdayClient, "create_order") as create_order:
            create_order.return_value = MagicMock(success=True, provider_order_id="777")
            assert dispatch_order_to_courier(str(customer_order.id)) is True

        customer_order.refresh_from_db()
        assert customer_order.shipday_order_id == "777"

    def test_already_dispatched_skipped(self, make_order):
        order = make_order(shipday_order_id="111")
        with patch.object(ShipdayClient, "create_order") as create_order:
            assert dispatch_order_to_courier(str(order.id)) is True
        create_order.assert_not_called()

    def test_cancelled_order_skipped(self, make_order):
        order = make_order(status=Order.OrderStatus.CANCELLED)
        with patch.object(ShipdayClient, "create_order") as create_order:
            assert dispatch_order_to_courier(str(order.id)) is False
        create_order.assert_not_called()

    def test_failure_leaves_order_undispatched(self, customer_order):
        with patch.object(ShipdayClient, "create_order") as create_order:
            create_order.return_value = MagicMock(success=False, error="Shipday down")
            assert dispatch_order_to_courier(str(customer_order.id)) is False

        customer_order.refresh_from_db()
        assert customer_order.shipday_order_id is None
        assert customer_order.total == Decimal("21.94")

    def test_unknown_order(self, db):
        assert dispatch_order_to_courier("00000000-0000-0000-0000-000000000000") is False
