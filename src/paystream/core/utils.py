"""
Utility functions for PayStream.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import numpy as np
import pandas as pd


def utc_now() -> datetime:
    """Current wall-clock instant in UTC."""
    return datetime.now(timezone.utc)


def to_instant(value) -> datetime:
    """
    Normalize a timestamp to a timezone-aware UTC datetime.

    Ledger adapters report block timestamps as integer epoch seconds, the
    display layer hands over datetimes or ISO strings, and analytics code works
    with pandas/numpy timestamps. All of them end up as the same instant type.

    **Args:**
        value: datetime (naive values are taken as UTC), date, ISO string,
            pd.Timestamp, np.datetime64, or int/float epoch seconds

    **Returns:**
        Timezone-aware datetime in UTC

    **Example:**
        ```python
        from paystream.core.utils import to_instant

        to_instant(1_700_000_000)          # block timestamp
        to_instant("2026-01-01T00:00:00Z")  # ISO string
        ```
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        raise TypeError("Booleans are not instants")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert("UTC").to_pydatetime()


def elapsed_seconds(start: datetime, now: datetime) -> Decimal:
    """
    Exact seconds between two instants as a Decimal.

    Built from the timedelta components rather than ``total_seconds()`` so no
    binary float rounding leaks into accrual. Negative when ``now`` precedes
    ``start``.
    """
    delta: timedelta = to_instant(now) - to_instant(start)
    whole = Decimal(delta.days * 86400 + delta.seconds)
    return whole + Decimal(delta.microseconds).scaleb(-6)


def seconds_ago(seconds: int | float, now: datetime | None = None) -> datetime:
    """Instant ``seconds`` before ``now`` (defaults to the current time)."""
    base = to_instant(now) if now is not None else utc_now()
    return base - timedelta(seconds=seconds)
