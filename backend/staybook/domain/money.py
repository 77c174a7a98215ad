"""Money helpers. All amounts are ``Decimal`` rounded half-up to cents."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Coerce ``value`` to a Decimal rounded half-up to two places.

    Floats go through ``str`` first so that ``0.1`` stays ``0.10`` instead of
    picking up binary noise.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
