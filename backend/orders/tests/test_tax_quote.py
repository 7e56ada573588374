"""
Tax quote tests. Stripe Tax is patched at the SDK boundary.
"""
import pytest
import stripe
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from orders.services import TaxService

ADDRESS = {"street": "350 5th Ave", "city": "New York", "state": "NY", "zip_code": "10001"}


class TestFallback:
    @pytest.mark.parametrize("enabled", [False, True])
    def test_zone_rate_used_without_stripe_tax(self, settings, enabled):
        settings.STRIPE_TAX_ENABLED = enabled
        settings.STRIPE_SECRET_KEY = ""

        with patch("stripe.tax.Calculation.create") as create:
            quote = TaxService().quote(Decimal("35.00"), ADDRESS, Decimal("0.0825"))

        create.assert_not_called()
        assert quote.source == TaxService.FALLBACK
        assert quote.amount == Decimal("2.887500")
        assert quote.rate == Decimal("0.0825")

    def test_default_rate_when_no_zone_rate(self, settings):
        settings.DEFAULT_TAX_RATE = Decimal("0.05")
        quote = TaxService().quote(Decimal("10.00"), ADDRESS)
        assert quote.amount == Decimal("0.5000")


class TestStripeTax:
    @pytest.fixture(autouse=True)
    def stripe_tax_enabled(self, settings):
        settings.STRIPE_TAX_ENABLED = True
        settings.STRIPE_SECRET_KEY = "sk_test_123"

    def test_uses_stripe_amount(self):
        calculation = SimpleNamespace(tax_amount_exclusive=311)
        with patch("stripe.tax.Calculation.create", return_value=calculation) as create:
            quote = TaxService().quote(Decimal("35.00"), ADDRESS, Decimal("0.0825"))

        assert quote.source == TaxService.STRIPE
        assert quote.amount == Decimal("3.11")
        kwargs = create.call_args.kwargs
        assert kwargs["line_items"][0]["amount"] == 3500
        assert kwargs["customer_details"]["address"]["postal_code"] == "10001"

    def test_processor_error_falls_back(self):
        with patch("stripe.tax.Calculation.create", side_effect=stripe.APIConnectionError("timeout")):
            quote = TaxService().quote(Decimal("35.00"), ADDRESS, Decimal("0.0825"))

        assert quote.source == TaxService.FALLBACK
        assert quote.amount == Decimal("35.00") * Decimal("0.0825")

    def test_zero_subtotal_skips_stripe(self):
        with patch("stripe.tax.Calculation.create") as create:
            quote = TaxService().quote(Decimal("0"), ADDRESS, Decimal("0.0825"))

        create.assert_not_called()
        assert quote.amount == Decimal("0")
