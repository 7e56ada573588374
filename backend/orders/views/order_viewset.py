import logging

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from orders.filters import OrderFilter
from orders.models import Order
from orders.serializers import OrderSerializer
from users.models import User

from .status_actions import StatusActionsMixin

logger = logging.getLogger(__name__)


class OrderViewSet(StatusActionsMixin, viewsets.ReadOnlyModelViewSet):
    """
    Order listing and retrieval, scoped by role:
    - customers see their own orders
    - restaurant owners see orders of restaurants they own
    - staff and admins see every order

    Status transitions come from StatusActionsMixin.
    """

    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = OrderFilter

    def get_queryset(self):
        user = self.request.user
        queryset = Order.objects.select_related("restaurant", "customer")

        if user.role in (User.Role.STAFF, User.Role.ADMIN):
            return queryset
        if user.role == User.Role.RESTAURANT_OWNER:
            return queryset.filter(restaurant__owner=user)
        return queryset.filter(customer=user)
