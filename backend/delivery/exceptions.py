"""
Dispatch webhook exceptions.
"""
from rest_framework import status

from core_backend.exceptions import DomainError


class UnauthorizedWebhook(DomainError):
    """Missing or wrong shared secret. Raised before any order is read."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid webhook token"
    code = "unauthorized_webhook"


class MalformedWebhook(DomainError):
    """The payload lacks an order reference or a usable status."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed webhook payload"
    code = "malformed_webhook"
