from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


# PUBLIC_INTERFACE
def start_of_day(moment: datetime) -> datetime:
    """Return midnight of `moment`'s calendar day, keeping its tzinfo (if any)."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


# PUBLIC_INTERFACE
def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, ties going away from zero.

    The builtin round() sends ties to the even neighbour (round(0.5) == 0),
    which is not what a percentage shown to a user should do.
    """
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


# PUBLIC_INTERFACE
def percentage(numerator: int, denominator: int) -> int:
    """Return numerator / denominator as a rounded percentage, 0 for an empty denominator."""
    if denominator <= 0:
        return 0
    return round_half_away(numerator / denominator * 100)
