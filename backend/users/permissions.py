from rest_framework import permissions
from .models import User
import logging

logger = logging.getLogger(__name__)


class IsAdminRole(permissions.BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.role == User.Role.ADMIN
        )


class IsStaffOrHigher(permissions.BasePermission):
    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.role in [User.Role.STAFF, User.Role.ADMIN]
        )


class IsRestaurantOwnerOrStaff(permissions.BasePermission):
    """
    Allows restaurant owners, staff and admins.

    Object-level checks restrict owners to orders of restaurants they own.
    """

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.role
            in [User.Role.RESTAURANT_OWNER, User.Role.STAFF, User.Role.ADMIN]
        )

    def has_object_permission(self, request, view, obj):
        if request.user.role in [User.Role.STAFF, User.Role.ADMIN]:
            return True

        restaurant = getattr(obj, "restaurant", None)
        allowed = restaurant is not None and restaurant.owner_id == request.user.id
        if not allowed:
            logger.warning(
                f"User {request.user.id} denied access to order {obj.pk}: not the restaurant owner"
            )
        return allowed
