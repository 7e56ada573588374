from django.urls import path

from .views import ValidatePromoCodeView

urlpatterns = [
    path("validate/", ValidatePromoCodeView.as_view(), name="promo-code-validate"),
]
