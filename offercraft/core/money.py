"""
Money and rounding helpers.

WHAT: Fixed-point decimal arithmetic for every currency amount in the system.

WHY: Offer totals are shown to clients, signed, and exported. They must be
reproducible to the cent on any machine, so amounts never pass through
binary floats and every rounding step uses the same rule.

HOW: All amounts are ``Decimal`` values quantized to two decimal places with
ROUND_HALF_UP (half away from zero). Rounding happens where a product is
formed or a percentage is applied, never at the end only.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from offercraft.core.exceptions import ValidationError


CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Parse a value into a Decimal without float drift.

    WHY: ``Decimal(0.1)`` carries the binary float error; ``Decimal("0.1")``
    does not. Floats are converted through ``str()`` first.

    Raises:
        ValidationError: If the value is missing or not numeric
    """
    if value is None:
        raise ValidationError(message=f"{field} is required", field=field)
    if isinstance(value, Decimal):
        result = value
    else:
        if isinstance(value, bool):
            raise ValidationError(message=f"{field} must be numeric", field=field)
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(message=f"{field} must be numeric", field=field, value=str(value))
    if not result.is_finite():
        raise ValidationError(message=f"{field} must be a finite number", field=field)
    return result


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Parse and quantize a value to two decimal places."""
    return quantize(to_decimal(value, field))


def quantize(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def ensure_non_negative(value: Any, field: str) -> Decimal:
    """
    Parse a value and reject negatives.

    Raises:
        ValidationError: If value is negative or not numeric
    """
    amount = to_decimal(value, field)
    if amount < 0:
        raise ValidationError(
            message=f"{field} must not be negative",
            field=field,
            value=str(amount),
        )
    return amount


def ensure_percent(value: Any, field: str) -> Decimal:
    """
    Parse a percentage and reject anything outside [0, 100].

    Raises:
        ValidationError: If percent is out of range or not numeric
    """
    percent = to_decimal(value, field)
    if percent < 0 or percent > HUNDRED:
        raise ValidationError(
            message=f"{field} must be between 0 and 100",
            field=field,
            value=str(percent),
        )
    return percent


def multiply_by_quantity(unit_price: Any, quantity: Any) -> Decimal:
    """
    Compute a line total from unit price and quantity.

    Example:
        >>> multiply_by_quantity("20.00", 3)
        Decimal('60.00')
    """
    price = ensure_non_negative(unit_price, "unit_price")
    qty = ensure_non_negative(quantity, "quantity")
    return quantize(price * qty)


def apply_percent(amount: Any, percent: Any, field: str = "percent") -> Decimal:
    """
    Return ``percent`` % of ``amount``, rounded to cents.

    Example:
        >>> apply_percent("54.00", 21)
        Decimal('11.34')
    """
    base = to_decimal(amount, "amount")
    pct = ensure_percent(percent, field)
    return quantize(base * pct / HUNDRED)


def money_sum(amounts: Iterable[Any]) -> Decimal:
    """Sum amounts exactly; an empty iterable sums to 0.00."""
    total = ZERO
    for amount in amounts:
        total += to_decimal(amount)
    return quantize(total)


def quantize_to(value: Any, places: int, field: str = "amount") -> Decimal:
    """
    Parse a value and round it to a fixed number of decimal places.

    WHY: Snapshot payloads store quantities (3 dp) and rates (2 dp) at the
    column scale, so a value read back from the database serializes the
    same as the value that was written.
    """
    exponent = Decimal(1).scaleb(-places)
    try:
        return to_decimal(value, field).quantize(exponent, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # more digits than the decimal context holds
        raise ValidationError(message=f"{field} is too large", field=field)
