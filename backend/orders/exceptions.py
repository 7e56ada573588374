"""
Order and fulfillment exceptions.
"""
from rest_framework import status

from core_backend.exceptions import DomainError, ValidationError

__all__ = [
    "ValidationError",
    "OrderNotFound",
    "InvalidTransition",
    "StaleTransition",
]


class OrderNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Order not found"
    code = "order_not_found"


class InvalidTransition(DomainError):
    """
    Raised when a status change is not allowed from the current state or for
    the caller's role. Role violations carry 403, state violations 400.
    """

    default_message = "Status change not allowed"
    code = "invalid_transition"

    def __init__(self, message=None, details=None, forbidden=False):
        super().__init__(message, details)
        if forbidden:
            self.status_code = status.HTTP_403_FORBIDDEN
            self.code = "transition_forbidden"


class StaleTransition(DomainError):
    """Raised when the caller's expected version no longer matches the stored order."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Order was updated by someone else; reload and try again"
    code = "stale_transition"
