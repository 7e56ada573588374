import logging

from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from orders.models import Order
from orders.serializers import CancelOrderSerializer, UpdateOrderStatusSerializer
from orders.services import FulfillmentStateMachine
from users.permissions import IsRestaurantOwnerOrStaff

logger = logging.getLogger(__name__)


class StatusActionsMixin:
    """
    Mixin for order status transition actions

    This mixin provides action methods for OrderViewSet. The state machine
    loads and locks the order itself and applies the role rules, so these
    actions never call get_object().
    """

    def get_state_machine(self) -> FulfillmentStateMachine:
        return FulfillmentStateMachine()

    def _transition_response(self, result):
        serializer = self.get_serializer(result.order)
        data = serializer.data
        data["changed"] = result.changed
        data["previous_status"] = result.previous_status
        return Response(data)

    @action(
        detail=True,
        methods=["post"],
        url_path="status",
        permission_classes=[IsRestaurantOwnerOrStaff],
    )
    def update_status(self, request: Request, pk=None) -> Response:
        """
        Manual status update by staff, admins, or the restaurant's owner.

        Returns:
        - 200: Transition applied, or no-op if already in that status
        - 400: Unknown status or transition out of a terminal state
        - 403: Role does not permit this transition
        - 409: expected_version is stale
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_state_machine().apply_manual(
            pk,
            serializer.validated_data["status"],
            actor=request.user,
            expected_version=serializer.validated_data.get("expected_version"),
        )
        return self._transition_response(result)

    @action(detail=True, methods=["post"], permission_classes=[IsAuthenticated])
    def cancel(self, request: Request, pk=None) -> Response:
        """
        Cancels an order. Customers may cancel their own orders while pending
        or confirmed; staff, admins and owners follow the status rules.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.get_state_machine().apply_manual(
            pk,
            Order.OrderStatus.CANCELLED,
            actor=request.user,
            expected_version=serializer.validated_data.get("expected_version"),
        )
        return self._transition_response(result)
