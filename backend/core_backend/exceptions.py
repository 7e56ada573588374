"""
Domain exception base classes and the REST framework exception handler.

Services raise subclasses of DomainError; the handler below turns them into
``{"error": ..., "code": ...}`` responses so raw exceptions never reach the
client.
"""
import logging

from django_ratelimit.exceptions import Ratelimited
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for errors that map to a client-facing response."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"
    code = "error"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_response_data(self):
        data = {"error": self.message, "code": self.code}
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(DomainError):
    """Malformed or incomplete input, rejected before any write."""

    default_message = "Invalid request"
    code = "validation_error"


def domain_exception_handler(exc, context):
    """
    Extends DRF's default handler with DomainError support.
    """
    if isinstance(exc, DomainError):
        view = context.get("view")
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response(exc.to_response_data(), status=exc.status_code)

    if isinstance(exc, Ratelimited):
        return Response(
            {"error": "Too many requests, please slow down", "code": "rate_limited"},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    return exception_handler(exc, context)
