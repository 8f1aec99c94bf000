"""
Exact decimal helpers for amounts and quantities.

Amounts are kept at 2 decimal places, rounded half-even, so totals never
pick up binary floating-point drift. Quantities and unit prices are stored
at 4 places and are never rounded: input with more places is refused.
"""
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Iterable, Union

from .exceptions import InvalidAmountError

Number = Union[Decimal, int, str, float]

CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.0001")
ZERO = Decimal("0.00")
MIN_QUANTITY = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Parse a number without rounding it; callers decide what precision they accept."""
    if isinstance(value, bool):
        raise InvalidAmountError(f"Not a number: {value!r}", value=value)
    if isinstance(value, float):
        # shortest repr, so 0.1 becomes Decimal("0.1") and not 0.1000000000000000055...
        value = repr(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Not a number: {value!r}", value=value)
    if not result.is_finite():
        raise InvalidAmountError(f"Not a finite number: {value!r}", value=value)
    return result


def to_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


def fits_quantity_step(value: Decimal) -> bool:
    """True when `value` has no more than the 4 decimal places quantities are stored with."""
    return value.normalize().as_tuple().exponent >= QUANTITY_STEP.as_tuple().exponent


def multiply_money(quantity: Number, unit_price: Number) -> Decimal:
    """quantity × unit_price, rounded once to cents."""
    product = to_decimal(quantity) * to_decimal(unit_price)
    return product.quantize(CENT, rounding=ROUND_HALF_EVEN)


def money_sum(values: Iterable[Number]) -> Decimal:
    return sum((to_money(v) for v in values), ZERO)


def to_exact_money(value: Number) -> Decimal:
    """Like to_money(), but refuses to silently round away fractions of a cent."""
    raw = to_decimal(value)
    amount = raw.quantize(CENT, rounding=ROUND_HALF_EVEN)
    if amount != raw:
        raise InvalidAmountError(
            f"Amount {value!r} has more than 2 decimal places", value=value)
    return amount
