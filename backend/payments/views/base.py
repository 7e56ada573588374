"""
Base classes and utilities for payment views.
"""
import logging

from rest_framework.views import APIView

from ..services import PaymentOrchestrator

logger = logging.getLogger(__name__)


class BasePaymentView(APIView):
    """
    Base class for all payment views with common functionality.
    """

    def get_orchestrator(self) -> PaymentOrchestrator:
        return PaymentOrchestrator()

    def handle_exception(self, exc):
        """
        Centralized exception handling for payment views.
        """
        logger.error(f"Payment view error in {self.__class__.__name__}: {type(exc).__name__}: {exc}")
        return super().handle_exception(exc)
