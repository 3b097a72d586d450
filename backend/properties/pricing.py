from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(value: Decimal | str | int) -> int:
    """
    Convert a major-unit amount (e.g. ``Decimal("100.00")``) into integer minor units.

    Works on ``Decimal`` throughout so two-decimal rates convert exactly.
    """
    amount = Decimal(str(value)) * MINOR_UNITS_PER_MAJOR
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_minor_units(amount: int) -> str:
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), MINOR_UNITS_PER_MAJOR)
    return f"{sign}{major}.{minor:02d}"


def count_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def stay_amount_minor(nightly_rate_minor: int, check_in: date, check_out: date) -> int:
    nights = count_nights(check_in, check_out)
    if nights <= 0:
        raise ValueError("A stay must be at least one night long.")
    return nights * nightly_rate_minor
