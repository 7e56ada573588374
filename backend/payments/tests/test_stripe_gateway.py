"""
Stripe gateway tests: request parameters and error translation.
"""
import pytest
import stripe
from types import SimpleNamespace
from unittest.mock import patch

from payments.exceptions import PaymentDeclined, PaymentError, PaymentTransientError
from payments.gateways import ProcessorIntent, StripeGateway, translate_stripe_errors


def stripe_intent(intent_id="pi_123", status="requires_payment_method", last_payment_error=None):
    return SimpleNamespace(
        id=intent_id,
        status=status,
        client_secret=f"{intent_id}_secret",
        amount=5019,
        currency="usd",
        last_payment_error=last_payment_error,
    )


class TestProcessorIntent:
    def test_from_stripe(self):
        intent = ProcessorIntent.from_stripe(stripe_intent())
        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret"
        assert not intent.succeeded
        assert not intent.failed

    def test_decline_reported_in_last_payment_error(self):
        intent = ProcessorIntent.from_stripe(
            stripe_intent(last_payment_error=SimpleNamespace(message="Your card was declined."))
        )
        assert intent.failed
        assert intent.failure_message == "Your card was declined."

    def test_canceled_is_failed(self):
        assert ProcessorIntent.from_stripe(stripe_intent(status="canceled")).failed

    def test_succeeded(self):
        assert ProcessorIntent.from_stripe(stripe_intent(status="succeeded")).succeeded


class TestErrorTranslation:
    def test_card_error_becomes_decline(self):
        with pytest.raises(PaymentDeclined) as exc_info:
            with translate_stripe_errors("test"):
                raise stripe.CardError("Your card was declined.", None, "card_declined")

        assert exc_info.value.status_code == 402
        assert exc_info.value.message == "Your card was declined."
        assert exc_info.value.details == {"decline_code": "card_declined"}

    @pytest.mark.parametrize(
        "error",
        [
            stripe.APIConnectionError("Network down"),
            stripe.RateLimitError("Too many requests"),
            stripe.APIError("Stripe is having a bad day"),
        ],
    )
    def test_transient_errors_are_retryable(self, error):
        with pytest.raises(PaymentTransientError) as exc_info:
            with translate_stripe_errors("test"):
                raise error

        assert exc_info.value.retryable
        assert exc_info.value.to_response_data()["retryable"] is True

    def test_other_stripe_errors(self):
        with pytest.raises(PaymentError) as exc_info:
            with translate_stripe_errors("test"):
                raise stripe.InvalidRequestError("No such payment_intent", "intent")

        assert type(exc_info.value) is PaymentError
        assert exc_info.value.status_code == 502
        assert not exc_info.value.retryable

    def test_non_stripe_errors_pass_through(self):
        with pytest.raises(KeyError):
            with translate_stripe_errors("test"):
                raise KeyError("unrelated")


class TestStripeGateway:
    def test_create_intent_parameters(self):
        with patch("stripe.PaymentIntent.create", return_value=stripe_intent()) as create:
            intent = StripeGateway().create_intent(
                amount_minor=5019,
                currency="usd",
                idempotency_key="checkout-abc-1",
                metadata={"order_ids": "a,b"},
                receipt_email="jane@example.com",
            )

        assert intent.id == "pi_123"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 5019
        assert kwargs["idempotency_key"] == "checkout-abc-1"
        assert kwargs["receipt_email"] == "jane@example.com"
        assert "confirm" not in kwargs

    def test_saved_card_confirms_immediately(self):
        with patch("stripe.PaymentIntent.create", return_value=stripe_intent(status="succeeded")) as create:
            intent = StripeGateway().create_intent(
                amount_minor=5019,
                currency="usd",
                idempotency_key="checkout-abc-1",
                metadata={},
                payment_method_id="pm_card_visa",
            )

        assert intent.succeeded
        kwargs = create.call_args.kwargs
        assert kwargs["payment_method"] == "pm_card_visa"
        assert kwargs["confirm"] is True

    def test_retrieve_translates_errors(self):
        with patch("stripe.PaymentIntent.retrieve", side_effect=stripe.APIConnectionError("timeout")):
            with pytest.raises(PaymentTransientError):
                StripeGateway().retrieve_intent("pi_123")
