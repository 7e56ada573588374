from abc import ABC, abstractmethod
from decimal import Decimal


class DiscountStrategy(ABC):
    """Computes the discount a promo code grants on a checkout subtotal."""

    @abstractmethod
    def compute(self, subtotal: Decimal, value: Decimal) -> Decimal:
        pass


class PercentageDiscountStrategy(DiscountStrategy):
    def compute(self, subtotal: Decimal, value: Decimal) -> Decimal:
        percentage = min(max(Decimal(value), Decimal("0")), Decimal("100"))
        return subtotal * percentage / Decimal("100")


class FixedAmountDiscountStrategy(DiscountStrategy):
    def compute(self, subtotal: Decimal, value: Decimal) -> Decimal:
        # A fixed discount larger than the subtotal is clamped to the subtotal
        return min(max(Decimal(value), Decimal("0")), subtotal)


class DiscountStrategyFactory:
    _strategies = {
        "percentage": PercentageDiscountStrategy(),
        "fixed": FixedAmountDiscountStrategy(),
    }

    @classmethod
    def get_strategy(cls, discount_type: str) -> DiscountStrategy:
        try:
            return cls._strategies[discount_type]
        except KeyError:
            raise ValueError(f"Unsupported discount type: {discount_type}")
