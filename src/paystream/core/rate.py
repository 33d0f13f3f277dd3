"""
Rate model for continuous salary streaming.

Salary accrues linearly: an annual principal is spread evenly over an average
year of 365.25 days, so the amount earned after ``t`` seconds is
``principal_per_year / SECONDS_PER_YEAR * t``.

All functions here are pure and total. They never raise for out-of-range
inputs: negative elapsed time (clock skew between the local clock and a
ledger-reported start) is clamped to zero, and so is a negative result.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from .currency import HLUSD, MONEY, Currency, to_decimal
from .utils import elapsed_seconds

SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = Decimal("365.25") * SECONDS_PER_DAY  # 31_557_600, leap years on average

_ZERO = Decimal("0")


def accrued(
    principal_per_year: Decimal | int | str,
    elapsed: Decimal | int | str,
    currency: Currency = HLUSD,
) -> Decimal:
    """
    Total amount accrued after ``elapsed`` seconds of streaming.

    Args:
        principal_per_year: Annual salary
        elapsed: Seconds since the stream started
        currency: Token whose precision the result is truncated to

    Returns:
        Accrued amount, never negative, truncated to token precision

    Example:
        >>> accrued(50000, 86400)
        Decimal('136.892539356605065023')
    """
    principal = to_decimal(principal_per_year)
    seconds = to_decimal(elapsed)
    if principal <= _ZERO or seconds <= _ZERO:
        return currency.quantize(_ZERO)
    earned = MONEY.divide(MONEY.multiply(principal, seconds), SECONDS_PER_YEAR)
    return currency.quantize(earned)


def rate_per_second(
    principal_per_year: Decimal | int | str, currency: Currency = HLUSD
) -> Decimal:
    """Instantaneous accrual rate in tokens per second."""
    return accrued(principal_per_year, 1, currency)


def accrued_between(
    principal_per_year: Decimal | int | str,
    start: datetime | None,
    now: datetime,
    currency: Currency = HLUSD,
) -> Decimal:
    """Accrued amount for a stream started at ``start``, evaluated at ``now``."""
    if start is None:
        return currency.quantize(_ZERO)
    return accrued(principal_per_year, elapsed_seconds(start, now), currency)
