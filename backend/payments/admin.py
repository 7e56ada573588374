from django.contrib import admin

from .models import PaymentIntent, SavedPaymentMethod


@admin.register(PaymentIntent)
class PaymentIntentAdmin(admin.ModelAdmin):
    """
    Read-mostly view of checkout payment intents.
    """

    list_display = (
        "stripe_payment_intent_id",
        "attempt",
        "amount_minor",
        "currency",
        "status",
        "processor_status",
        "created_at",
    )
    list_filter = ("status", "currency", "created_at")
    search_fields = ("stripe_payment_intent_id", "order_set_key", "orders__order_number")
    readonly_fields = (
        "id",
        "stripe_payment_intent_id",
        "order_set_key",
        "attempt",
        "amount_minor",
        "currency",
        "client_secret",
        "succeeded_at",
        "created_at",
        "updated_at",
    )
    filter_horizontal = ("orders",)


@admin.register(SavedPaymentMethod)
class SavedPaymentMethodAdmin(admin.ModelAdmin):
    list_display = ("user", "card_brand", "card_last_four", "is_default", "created_at")
    list_filter = ("card_brand", "is_default")
    search_fields = ("user__email", "stripe_payment_method_id")
    readonly_fields = ("stripe_payment_method_id", "created_at")
