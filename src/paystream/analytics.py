"""
Payroll analytics over the transaction feed.

This module provides standalone functions for summarizing streams and their
settlement history. Feed-based functions operate on the DataFrame produced by
:func:`feed_frame` and return floats, pandas Series or DataFrames; amounts are
converted to float here because these figures are for display, never for
settlement.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal
from pathlib import Path

import numpy as np
import pandas as pd

from paystream.core.events import TransactionKind, TransactionRecord
from paystream.core.rate import SECONDS_PER_YEAR
from paystream.core.state import StreamState
from paystream.core.utils import to_instant, utc_now

FEED_COLUMNS = [
    "id",
    "kind",
    "party",
    "amount",
    "tax_withheld",
    "net_amount",
    "occurred_at",
    "reference",
    "source",
]

_SECONDS_PER_YEAR = float(SECONDS_PER_YEAR)


def feed_frame(records: Iterable[TransactionRecord]) -> pd.DataFrame:
    """
    Tabulate feed records, preserving their order.

    Args:
        records: Feed records, typically ``engine.get_feed()``

    Returns:
        DataFrame with columns ``FEED_COLUMNS``; ``occurred_at`` is a UTC
        datetime column and ``tax_withheld`` is NaN for Onboarded rows
    """
    rows = [
        {
            "id": r.id,
            "kind": r.kind.value,
            "party": r.party,
            "amount": float(r.amount),
            "tax_withheld": np.nan if r.tax_withheld is None else float(r.tax_withheld),
            "net_amount": float(r.net_amount),
            "occurred_at": pd.Timestamp(r.occurred_at),
            "reference": r.reference,
            "source": r.source,
        }
        for r in records
    ]
    df = pd.DataFrame(rows, columns=FEED_COLUMNS)
    df["occurred_at"] = pd.to_datetime(df["occurred_at"], utc=True)
    return df


def _claims(df: pd.DataFrame, party: str | None = None) -> pd.DataFrame:
    mask = df["kind"] == TransactionKind.CLAIMED.value
    if party is not None:
        mask &= df["party"] == party
    return df[mask]


def total_claimed(df: pd.DataFrame, party: str | None = None) -> float:
    """Gross amount claimed, optionally for one party."""
    return float(_claims(df, party)["amount"].sum())


def total_tax_withheld(df: pd.DataFrame, party: str | None = None) -> float:
    """Tax withheld across all claims, optionally for one party."""
    return float(_claims(df, party)["tax_withheld"].fillna(0.0).sum())


def effective_tax_rate(df: pd.DataFrame, party: str | None = None) -> float:
    """
    Withheld tax as a share of gross claims.

    Returns:
        Rate in [0, 1]; 0.0 when nothing has been claimed
    """
    gross = total_claimed(df, party)
    if gross <= 0:
        return 0.0
    return total_tax_withheld(df, party) / gross


def claims_by_day(df: pd.DataFrame) -> pd.Series:
    """Gross claimed amount per calendar day (UTC), oldest first."""
    claims = _claims(df)
    if claims.empty:
        return pd.Series(dtype=float, name="claimed")
    daily = claims.set_index("occurred_at").sort_index()["amount"].resample("D").sum()
    return daily.rename("claimed")


def salary_projection(
    principal_per_year: Decimal | float | int,
    months: int = 6,
    start: date | datetime | None = None,
) -> pd.DataFrame:
    """
    Cumulative salary paid out over the coming months.

    Month ``i`` (0-based) projects ``principal / 12 * (i + 1)``.

    Args:
        principal_per_year: Annual salary (or total budget across streams)
        months: Number of months to project
        start: First projected month (defaults to the current month)

    Returns:
        DataFrame indexed by monthly period with ``month`` label and
        cumulative ``amount``
    """
    if months < 1:
        raise ValueError("months must be >= 1")
    first = pd.Timestamp(to_instant(start) if start is not None else utc_now())
    periods = pd.period_range(first.tz_localize(None), periods=months, freq="M")
    monthly = float(principal_per_year) / 12.0
    amounts = monthly * (np.arange(months) + 1)
    return pd.DataFrame(
        {"month": [p.strftime("%b") for p in periods], "amount": amounts},
        index=periods,
    )


def accrual_curve(
    state: StreamState,
    end: datetime,
    points: int = 50,
) -> pd.Series:
    """
    Accrued amount over time from the stream start to ``end``.

    Vectorized float approximation of the rate model, for charts.

    Returns:
        Series of accrued amounts indexed by UTC timestamp; empty for an
        inactive stream
    """
    if state.stream_started_at is None:
        return pd.Series(dtype=float, name="accrued")
    if points < 2:
        raise ValueError("points must be >= 2")
    start = pd.Timestamp(state.stream_started_at)
    times = pd.date_range(start, pd.Timestamp(to_instant(end)), periods=points)
    elapsed = (times - start).total_seconds().to_numpy()
    values = float(state.principal_per_year) / _SECONDS_PER_YEAR * np.maximum(elapsed, 0.0)
    return pd.Series(values, index=times, name="accrued")


def payroll_stats(
    states: Iterable[StreamState],
    records: Iterable[TransactionRecord] = (),
    now: datetime | None = None,
) -> dict[str, float | int]:
    """
    Dashboard summary across streams.

    Args:
        states: Stream states to summarize (one per employee)
        records: Feed records used for claimed and withheld totals
        now: Instant claimable balances are evaluated at

    Returns:
        Dictionary with ``active_streams``, ``total_salary_budget``,
        ``average_salary``, ``claimable_total``, ``total_claimed``,
        ``total_tax_withheld`` and ``rate_per_second_total``
    """
    now = to_instant(now) if now is not None else utc_now()
    active = [s for s in states if s.active]
    budget = sum((s.principal_per_year for s in active), Decimal("0"))
    claimable = sum((s.claimable_at(now) for s in active), Decimal("0"))
    df = feed_frame(records)
    return {
        "active_streams": len(active),
        "total_salary_budget": float(budget),
        "average_salary": float(budget / len(active)) if active else 0.0,
        "claimable_total": float(claimable),
        "total_claimed": total_claimed(df),
        "total_tax_withheld": total_tax_withheld(df),
        "rate_per_second_total": float(budget) / _SECONDS_PER_YEAR,
    }


def export_feed_csv(
    path: str | Path, records: Iterable[TransactionRecord], decimals: int = 3
) -> int:
    """
    Export feed records to CSV for spreadsheets.

    Columns: Date, Employee, Type, Amount, Tax, Transaction Hash. Amounts are
    truncated to ``decimals`` places.

    Returns:
        Number of rows written
    """
    quantum = Decimal("1").scaleb(-decimals)

    def fmt(value: Decimal | None) -> str:
        if value is None:
            return ""
        return str(value.quantize(quantum, rounding=ROUND_DOWN))

    rows = [
        {
            "Date": r.occurred_at.date().isoformat(),
            "Employee": r.party,
            "Type": r.kind.value,
            "Amount": fmt(r.amount),
            "Tax": fmt(r.tax_withheld),
            "Transaction Hash": r.reference,
        }
        for r in records
    ]
    df = pd.DataFrame(
        rows, columns=["Date", "Employee", "Type", "Amount", "Tax", "Transaction Hash"]
    )
    df.to_csv(path, index=False)
    return len(df)
