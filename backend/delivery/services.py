import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

PLAIN_TEXT_ID = re.compile(r"\bid\s+(\d+)\b", re.IGNORECASE)


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    provider_order_id: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None


class ShipdayError(Exception):
    """A Shipday request failed in a way that is worth retrying."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ShipdayClient:
    """
    Service for sending settled orders to Shipday for courier dispatch.

    Connection errors, timeouts and 5xx responses are retried with
    exponential backoff. 4xx responses are returned as failures straight away.
    create_order never raises; callers inspect the DispatchResult.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SHIPDAY_API_KEY
        self.base_url = (base_url or settings.SHIPDAY_API_URL).rstrip("/")
        self.timeout = timeout or settings.SHIPDAY_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or settings.SHIPDAY_MAX_ATTEMPTS
        self.base_delay = settings.SHIPDAY_RETRY_BASE_DELAY if base_delay is None else base_delay

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Basic {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    @staticmethod
    def build_payload(order) -> Dict[str, Any]:
        """
        Maps an order to Shipday's order format.

        Raises:
            ValueError: If the delivery address lacks street, city, state or zip.
        """
        address = order.delivery_address or {}
        line1 = address.get("street") or address.get("address") or address.get("line1") or ""
        line2 = address.get("address_line2") or address.get("apt") or address.get("unit") or ""
        city = address.get("city") or ""
        state = address.get("state") or ""
        zip_code = address.get("zip_code") or address.get("zipCode") or address.get("zip") or ""

        if not (line1 and city and state and zip_code):
            raise ValueError(
                f"Missing required delivery address fields: street={bool(line1)}, city={bool(city)}, "
                f"state={bool(state)}, zip={bool(zip_code)}"
            )

        full_address = line1
        if line2:
            full_address += f", {line2}"
        full_address += f", {city}, {state} {zip_code}, USA"

        phone = re.sub(r"\D", "", order.contact_phone or address.get("phone") or "") or "0000000000"
        customer_name = order.contact_name
        if not customer_name or customer_name == "Guest":
            customer_name = f"Customer {order.order_number}"

        notes = [order.delivery_instructions]
        if order.applied_promo:
            notes.append(f"Promo Code: {order.applied_promo.get('code', '')}")

        payload = {
            "orderNumber": order.order_number,
            "customerName": customer_name,
            "customerPhoneNumber": phone,
            "customerEmail": order.contact_email or None,
            "customerAddress": full_address,
            "items": [
                {
                    "name": item.get("name") or "Item",
                    "quantity": item.get("quantity") or 1,
                    "unitPrice": float(item.get("price") or 0),
                }
                for item in order.items or []
            ],
            "totalOrderCost": float(order.total),
            "deliveryFee": float(order.delivery_fee),
            "tax": float(order.tax),
            "discountAmount": float(order.discount_amount),
            "tips": float(order.tip) or None,
            "specialInstructions": " | ".join(n for n in notes if n) or None,
            "orderPlaced": order.created_at.isoformat() if order.created_at else None,
        }

        restaurant = order.restaurant
        if restaurant is not None:
            payload["restaurantName"] = restaurant.name
            payload["restaurantAddress"] = restaurant.address or None
            payload["restaurantPhoneNumber"] = restaurant.phone or None

        return {key: value for key, value in payload.items() if value is not None}

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    def create_order(self, order) -> DispatchResult:
        if not self.api_key:
            logger.warning(f"Shipday API key not configured, skipping dispatch of {order.order_number}")
            return DispatchResult(success=False, error="Shipday API key not configured")

        try:
            payload = self.build_payload(order)
        except ValueError as e:
            logger.error(f"Cannot dispatch order {order.order_number}: {e}")
            return DispatchResult(success=False, error=str(e))

        url = f"{self.base_url}/orders"
        try:
            response = self._post_with_retry(url, payload)
        except (ShipdayError, requests.RequestException) as e:
            status_code = getattr(e, "status_code", None)
            logger.error(f"Failed to send order {order.order_number} to Shipday: {e}")
            return DispatchResult(success=False, error=str(e), status_code=status_code)

        if response.status_code >= 400:
            error = self._error_message(response)
            logger.error(
                f"Shipday rejected order {order.order_number} ({response.status_code}): {error}"
            )
            return DispatchResult(success=False, error=error, status_code=response.status_code)

        provider_order_id, error = self._extract_order_id(response)
        if provider_order_id is None:
            logger.error(f"Shipday response for order {order.order_number} missing order id: {error}")
            return DispatchResult(success=False, error=error, status_code=response.status_code)

        logger.info(f"Order {order.order_number} sent to Shipday as {provider_order_id}")
        return DispatchResult(
            success=True, provider_order_id=provider_order_id, status_code=response.status_code
        )

    def _post_with_retry(self, url: str, payload: Dict[str, Any]) -> requests.Response:
        for attempt in range(self.max_attempts):
            try:
                response = requests.post(
                    url, json=payload, headers=self._get_headers(), timeout=self.timeout
                )
                if response.status_code >= 500:
                    raise ShipdayError(
                        f"Shipday server error {response.status_code}", status_code=response.status_code
                    )
                return response
            except (requests.ConnectionError, requests.Timeout, ShipdayError) as e:
                if attempt == self.max_attempts - 1:
                    raise
                delay = self.base_delay * (2 ** attempt)
                logger.warning(
                    f"Shipday API call failed, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_attempts}): {e}"
                )
                time.sleep(delay)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body.get("response") or body)
        return str(body)

    @staticmethod
    def _extract_order_id(response: requests.Response):
        """Returns (provider_order_id, error). Shipday answers with JSON or a plain sentence."""
        try:
            body = response.json()
        except ValueError:
            body = response.text or ""

        if isinstance(body, str):
            match = PLAIN_TEXT_ID.search(body)
            if match:
                return match.group(1), None
            return None, "Shipday response missing orderId"

        if isinstance(body, dict):
            if body.get("success") is False:
                return None, str(body.get("response") or body.get("message") or "Shipday insert failed")
            data = body.get("data") if isinstance(body.get("data"), dict) else {}
            order_id = body.get("id") or body.get("orderId") or data.get("id") or data.get("orderId")
            if order_id:
                return str(order_id), None
        return None, "Shipday response missing orderId"
