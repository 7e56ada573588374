"""
Payment exceptions.

Processor errors are translated into these at the gateway boundary so that
raw stripe exceptions never reach a view.
"""
from rest_framework import status

from core_backend.exceptions import DomainError


class PaymentError(DomainError):
    """Base class for payment failures. Unclassified processor errors use it directly."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment could not be processed"
    code = "payment_error"
    retryable = False

    def to_response_data(self):
        data = super().to_response_data()
        data["retryable"] = self.retryable
        return data


class AmountMismatchError(PaymentError):
    """The client's amount disagrees with the server-side sum of the order totals."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Payment amount does not match the order total"
    code = "amount_mismatch"


class PaymentDeclined(PaymentError):
    """The processor declined the payment. Terminal for the intent."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Your card was declined"
    code = "payment_declined"

    def __init__(self, message=None, details=None, processor_intent_id=None):
        super().__init__(message, details)
        self.processor_intent_id = processor_intent_id


class PaymentTransientError(PaymentError):
    """Network, rate limit or processor-side failure. Safe to retry with the same order set."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Payment service is temporarily unavailable, please try again"
    code = "payment_unavailable"
    retryable = True


class OrdersNotPayable(PaymentError):
    """The orders are cancelled, already settled, or otherwise cannot be charged."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "These orders cannot be paid"
    code = "orders_not_payable"


class PaymentIntentNotFound(PaymentError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Payment intent not found"
    code = "payment_intent_not_found"


class InvalidPaymentMethod(PaymentError):
    """The saved payment method is unknown, not the caller's, or the caller is a guest."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Payment method not found or does not belong to you"
    code = "invalid_payment_method"
