from django.contrib import admin

from .models import DeliveryZone, Restaurant


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(DeliveryZone)
class DeliveryZoneAdmin(admin.ModelAdmin):
    list_display = ("zip_code", "city", "state", "delivery_fee", "tax_rate", "is_available")
    list_filter = ("is_available", "state")
    search_fields = ("zip_code", "city")
