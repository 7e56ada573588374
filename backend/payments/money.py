"""
Money helpers for checkout pricing and splitting.

Amounts stay unrounded Decimals while prices are being computed and are
rounded to cents only when they are persisted or sent to the processor.
Shared charges are split in integer minor units so the parts always add up
to the whole.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import List, Sequence, Union

Number = Union[Decimal, str, int]

CENT = Decimal("0.01")

# Minor-unit exponents for the currencies the processor may be asked to charge
CURRENCY_EXPONENT = {
    "usd": 2,
    "cad": 2,
    "eur": 2,
    "gbp": 2,
    "jpy": 0,
}


def currency_exponent(currency: str) -> int:
    return CURRENCY_EXPONENT.get(currency.lower(), 2)


def quantize(amount: Number, currency: str = "usd") -> Decimal:
    """
    Round to the currency's smallest unit using banker's rounding.

    >>> quantize("1.2375")
    Decimal('1.24')
    >>> quantize("10.125")
    Decimal('10.12')
    """
    step = Decimal(10) ** -currency_exponent(currency)
    return Decimal(amount).quantize(step, rounding=ROUND_HALF_EVEN)


def to_minor(amount: Number, currency: str = "usd") -> int:
    """
    Convert to minor units, quantizing first.

    >>> to_minor("19.24")
    1924
    """
    exponent = currency_exponent(currency)
    return int((quantize(amount, currency) * (10 ** exponent)).to_integral_value())


def from_minor(minor: int, currency: str = "usd") -> Decimal:
    """
    >>> from_minor(1924)
    Decimal('19.24')
    """
    exponent = currency_exponent(currency)
    return (Decimal(minor) / (10 ** exponent)).quantize(Decimal(10) ** -exponent)


def allocate_minor(weights: Sequence[int], total_minor: int) -> List[int]:
    """
    Split total_minor across parts proportionally to weights.

    Each part gets the floor of its exact share; leftover units go to the
    parts with the largest remainders, earliest index first on ties. All
    arithmetic is integer, so the result is exact and deterministic.

    Guarantees sum(result) == total_minor whenever at least one weight is
    positive. With all weights zero the total is split evenly instead.

    >>> allocate_minor([1500, 2000], 289)
    [124, 165]
    >>> allocate_minor([1, 1, 1], 100)
    [34, 33, 33]
    """
    if not weights:
        if total_minor:
            raise ValueError("Cannot allocate a non-zero amount across zero parts")
        return []
    if any(weight < 0 for weight in weights):
        raise ValueError("Allocation weights must not be negative")

    total_weight = sum(weights)
    if total_weight == 0:
        return split_evenly(total_minor, len(weights))

    floors = []
    remainders = []
    for index, weight in enumerate(weights):
        share, remainder = divmod(weight * total_minor, total_weight)
        floors.append(share)
        remainders.append((remainder, index))

    leftover = total_minor - sum(floors)
    remainders.sort(key=lambda item: (-item[0], item[1]))

    result = floors[:]
    for _, index in remainders[:leftover]:
        result[index] += 1
    return result


def split_evenly(total_minor: int, parts: int) -> List[int]:
    """
    Split total_minor into equal parts, handing leftover units to the first parts.

    >>> split_evenly(600, 2)
    [300, 300]
    >>> split_evenly(599, 2)
    [300, 299]
    """
    if parts <= 0:
        raise ValueError("parts must be positive")
    base, leftover = divmod(total_minor, parts)
    return [base + 1 if index < leftover else base for index in range(parts)]


def validate_minor_sum(components: Sequence[int], expected_total: int, context: str = "") -> None:
    """
    Raise ValueError if the components do not add up to expected_total exactly.
    """
    actual = sum(components)
    if actual != expected_total:
        diff = actual - expected_total
        raise ValueError(
            f"Minor unit sum mismatch{' ' + context if context else ''}: "
            f"expected {expected_total}, got {actual} (diff: {diff:+d})"
        )
