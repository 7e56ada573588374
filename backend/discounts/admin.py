from django.contrib import admin

from .models import PromoCode


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "discount_type", "discount_value", "is_active", "usage_count", "usage_limit", "expires_at")
    list_filter = ("discount_type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("usage_count",)
