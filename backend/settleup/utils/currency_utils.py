from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Coerce a user-supplied amount to a 2-decimal Decimal.

    Floats go through ``str`` first so 0.1 becomes Decimal("0.10")
    rather than its binary expansion.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a currency amount to integer minor units, rounding half up."""
    return int((Decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal(100)).quantize(CENT)


def sum_money(amounts) -> Decimal:
    return sum((Decimal(a) for a in amounts), Decimal("0")).quantize(CENT)
