import django_filters

from .models import Order


class CharInFilter(django_filters.BaseInFilter, django_filters.CharFilter):
    pass


class OrderFilter(django_filters.FilterSet):
    """
    Filters for the order list: status (comma-separated allowed), restaurant,
    checkout and creation date range.
    """

    status = CharInFilter(field_name="status", lookup_expr="in")
    restaurant = django_filters.UUIDFilter(field_name="restaurant_id")
    checkout_id = django_filters.UUIDFilter(field_name="checkout_id")
    payment_settled = django_filters.BooleanFilter(field_name="payment_settled")
    created_at__gte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_at__lte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["status", "restaurant", "checkout_id", "payment_settled"]
