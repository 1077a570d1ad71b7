"""
Quantity and price primitives.

All money arithmetic in the journal runs on ``Decimal``; binary floats are
only accepted at the boundary and converted through their shortest repr so
that ``10.1`` becomes ``Decimal("10.1")`` rather than its binary expansion.

Precision:
- Prices, average cost and money amounts: 4 decimal places, ROUND_HALF_UP
- Percentages and R-multiples: 2 decimal places
- Risk/reward ratios: 4 decimal places
- Quantities: whole shares, positive multiples of the lot size
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from ..errors import InvalidLot, InvalidPrice, InvalidQuantity, ValidationError

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

PRICE_QUANTUM = Decimal("0.0001")
MONEY_QUANTUM = Decimal("0.0001")
RATIO_QUANTUM = Decimal("0.0001")
PERCENT_QUANTUM = Decimal("0.01")
R_MULTIPLE_QUANTUM = Decimal("0.01")

DEFAULT_LOT_SIZE = 100


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """
    Convert a boundary value into a finite Decimal.

    Args:
        value: Decimal, int, str or float
        field: Field name used in error messages

    Returns:
        Finite Decimal

    Raises:
        ValidationError: If the value is missing, boolean, non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field, value=value)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field} is not a valid number: {value!r}", field=field, value=value)
    else:
        raise ValidationError(f"{field} has unsupported type {type(value).__name__}", field=field, value=value)

    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", field=field, value=value)

    return result


def to_price(value: Any, field: str = "price") -> Decimal:
    """
    Convert a boundary value into a strictly positive price.

    Raises:
        InvalidPrice: If the value is not a positive number
    """
    try:
        price = to_decimal(value, field)
    except ValidationError as e:
        raise InvalidPrice(e.message, field=field, value=value) from e

    price = quantize_price(price)
    if price <= ZERO:
        raise InvalidPrice(f"{field} must be positive, got {value}", field=field, value=value)
    return price


def to_quantity(value: Any, field: str = "quantity") -> int:
    """
    Convert a boundary value into a positive whole number of shares.

    Raises:
        InvalidQuantity: If the value is not a positive integer
    """
    if isinstance(value, int) and not isinstance(value, bool):
        quantity = value
    else:
        try:
            number = to_decimal(value, field)
        except ValidationError as e:
            raise InvalidQuantity(e.message, field=field, value=value) from e
        if number != number.to_integral_value():
            raise InvalidQuantity(f"{field} must be a whole number of shares, got {value}",
                                  field=field, value=value)
        quantity = int(number)

    if quantity <= 0:
        raise InvalidQuantity(f"{field} must be positive, got {value}", field=field, value=value)
    return quantity


def is_lot_multiple(quantity: int, lot_size: int = DEFAULT_LOT_SIZE) -> bool:
    """Return True if quantity is a positive multiple of lot_size."""
    return quantity > 0 and quantity % lot_size == 0


def require_lot(quantity: Any, lot_size: int = DEFAULT_LOT_SIZE, field: str = "quantity") -> int:
    """
    Validate that quantity is a positive multiple of the lot size.

    Quantities are never rounded here; a partial lot is rejected.

    Raises:
        InvalidQuantity: If the value is not a positive whole number
        InvalidLot: If the value is not a multiple of lot_size
    """
    shares = to_quantity(quantity, field)
    if not is_lot_multiple(shares, lot_size):
        raise InvalidLot(
            f"{field} must be a positive multiple of {lot_size} shares, got {shares}",
            lot_size=lot_size,
            field=field,
            value=quantity
        )
    return shares


def floor_to_lot(shares: int, lot_size: int = DEFAULT_LOT_SIZE) -> int:
    """Round a share count down to the nearest lot multiple."""
    return (shares // lot_size) * lot_size


def floor_int(value: Decimal) -> int:
    """Floor a Decimal to an int."""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def quantize_price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_ratio(value: Decimal) -> Decimal:
    return value.quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_percent(value: Decimal) -> Decimal:
    return value.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_r_multiple(value: Decimal) -> Decimal:
    return value.quantize(R_MULTIPLE_QUANTUM, rounding=ROUND_HALF_UP)
