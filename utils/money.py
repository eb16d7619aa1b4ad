"""Money helpers. Amounts are Decimal with two places, never float."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

_TWO_PLACES = Decimal("0.01")
_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


def parse_amount(value: str | int | float | Decimal) -> Decimal:
    """
    Parse a price as entered by the frontend ("GH¢ 1,250.00", "100", 100.5).

    Currency symbols, separators and whitespace are stripped.

    Raises:
        ValueError: If nothing numeric remains.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    cleaned = _NON_NUMERIC.sub("", value)
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")


def quantize(amount: Decimal) -> Decimal:
    """Round half up to two decimal places."""
    return amount.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_total(price_per_day: Decimal, num_days: int) -> Decimal:
    """Booking total: price per day times number of days, two places."""
    return quantize(price_per_day * num_days)


def format_amount(amount: Decimal) -> str:
    """Two-decimal string, e.g. Decimal("300") -> "300.00"."""
    return f"{quantize(amount):.2f}"


def from_minor_units(amount: int) -> Decimal:
    """Paystack reports amounts in pesewas/kobo. 25000 -> Decimal("250.00")."""
    return quantize(Decimal(amount) / 100)


def amounts_equal(a: Decimal, b: Decimal) -> bool:
    """Compare at cent precision."""
    return quantize(a) == quantize(b)
