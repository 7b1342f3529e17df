"""Exact decimal handling for monetary amounts.

Prices are persisted in Float fields, so every read goes through
``to_money`` which rebuilds the exact two-place Decimal from the shortest
repr of the stored number. All arithmetic happens on Decimals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from commerce.errors import InvalidArgument

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MINIMUM_PRICE = CENT
# Largest amount a stored float still reads back exactly (15 significant digits)
MAXIMUM_PRICE = Decimal("9999999999999.99")


def to_money(value) -> Decimal:
    """Convert a number or numeric string to a Decimal quantized to cents."""
    if isinstance(value, bool):
        raise InvalidArgument(f"Not a monetary amount: {value!r}", value=value)

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f"Not a monetary amount: {value!r}", value=str(value)) from None

    if not amount.is_finite():
        raise InvalidArgument(f"Not a monetary amount: {value!r}", value=str(value))

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price(value) -> Decimal:
    """Validate a caller-supplied price: at least 0.01, at most two decimals."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f"Price is not a number: {value!r}", field="price") from None

    if isinstance(value, bool) or not amount.is_finite():
        raise InvalidArgument(f"Price is not a number: {value!r}", field="price")

    if amount != amount.quantize(CENT):
        raise InvalidArgument("Price can have at most two decimal places", field="price", value=str(amount))

    if amount < MINIMUM_PRICE:
        raise InvalidArgument("Price must be at least 0.01", field="price", value=str(amount))

    if amount > MAXIMUM_PRICE:
        raise InvalidArgument(f"Price cannot exceed {MAXIMUM_PRICE}", field="price", value=str(amount))

    return amount.quantize(CENT)


def line_total(unit_price, quantity: int) -> Decimal:
    return to_money(unit_price) * quantity


def apply_discount(price, percentage) -> Decimal:
    """Discount ``price`` by ``percentage`` (0-100), rounded half-up to cents."""
    try:
        pct = percentage if isinstance(percentage, Decimal) else Decimal(str(percentage))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f"Discount percentage is not a number: {percentage!r}") from None

    if not pct.is_finite() or pct < 0 or pct > 100:
        raise InvalidArgument("Discount percentage must be between 0 and 100", percentage=str(pct))

    multiplier = Decimal(1) - (pct / Decimal(100)).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    return (to_money(price) * multiplier).quantize(CENT, rounding=ROUND_HALF_UP)
