"""
Delivery zone and restaurant lookup tests.
"""
import uuid
import pytest
from decimal import Decimal
from django.test import override_settings

from core_backend.exceptions import ValidationError
from restaurants.models import DeliveryZone
from restaurants.services import DeliveryZoneService, RestaurantService, UNSERVED_AREA_MESSAGE


class TestExtractZip:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ({"zip_code": "10001"}, "10001"),
            ({"zipCode": "10001-1234"}, "10001"),
            ({"postal_code": " 100 01 "}, "10001"),
            ({"street": "1 Main St"}, None),
            (None, None),
        ],
    )
    def test_extract(self, address, expected):
        assert DeliveryZoneService.extract_zip(address) == expected


@pytest.mark.django_db
class TestResolveZone:
    def test_served_zone(self, delivery_zone, delivery_address):
        quote = DeliveryZoneService.resolve(delivery_address)
        assert quote.zip_code == "10001"
        assert quote.delivery_fee == Decimal("6.00")
        assert quote.tax_rate == Decimal("0.0825")
        assert quote.zone == delivery_zone

    @override_settings(DEFAULT_DELIVERY_FEE=Decimal("4.99"), DEFAULT_TAX_RATE=Decimal("0.07"))
    def test_zone_defaults(self, db):
        DeliveryZone.objects.create(zip_code="94105", city="San Francisco", state="CA")
        quote = DeliveryZoneService.resolve({"zip_code": "94105"})
        assert quote.delivery_fee == Decimal("4.99")
        assert quote.tax_rate == Decimal("0.07")

    def test_unserved_zip(self, delivery_zone):
        with pytest.raises(ValidationError, match=UNSERVED_AREA_MESSAGE):
            DeliveryZoneService.resolve({"zip_code": "60601"})

    def test_unavailable_zone(self, delivery_zone):
        delivery_zone.is_available = False
        delivery_zone.save()
        with pytest.raises(ValidationError, match=UNSERVED_AREA_MESSAGE):
            DeliveryZoneService.resolve({"zip_code": "10001"})

    @pytest.mark.parametrize("address", [{}, {"street": "1 Main St"}, {"zip_code": "ABCDE"}])
    def test_bad_address(self, db, address):
        with pytest.raises(ValidationError):
            DeliveryZoneService.resolve(address)


@pytest.mark.django_db
class TestActiveRestaurants:
    def test_loads_by_string_id(self, restaurant_a, restaurant_b):
        found = RestaurantService.get_active_restaurants([restaurant_a.id, str(restaurant_b.id)])
        assert found == {str(restaurant_a.id): restaurant_a, str(restaurant_b.id): restaurant_b}

    def test_inactive_restaurant(self, restaurant_a, inactive_restaurant):
        with pytest.raises(ValidationError) as exc_info:
            RestaurantService.get_active_restaurants([restaurant_a.id, inactive_restaurant.id])
        assert exc_info.value.details == {"restaurant_ids": [str(inactive_restaurant.id)]}

    def test_unknown_restaurant(self, db):
        with pytest.raises(ValidationError):
            RestaurantService.get_active_restaurants([uuid.uuid4()])

    def test_malformed_id(self, db):
        with pytest.raises(ValidationError, match="Invalid restaurant id"):
            RestaurantService.get_active_restaurants(["not-a-uuid"])
