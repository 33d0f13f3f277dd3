"""
Stream state and accrual snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from .currency import HLUSD, MONEY, Currency, to_decimal
from .errors import ConfigError
from .rate import accrued_between, rate_per_second
from .utils import to_instant

_ZERO = Decimal("0")


@dataclass(frozen=True)
class StreamState:
    """
    Per-party streaming record.

    Instances are immutable; settlement returns new states rather than
    mutating in place, so a reader holding a state never sees it change
    underneath.

    Attributes:
        party: Ledger identity of the employee (e.g. an address)
        principal_per_year: Annual salary, >= 0
        stream_started_at: Instant the stream became active (None = inactive)
        cumulative_claimed: Lifetime amount settled to the party, >= 0
    """

    party: str
    principal_per_year: Decimal = _ZERO
    stream_started_at: datetime | None = None
    cumulative_claimed: Decimal = _ZERO

    def __post_init__(self):
        """Normalize inputs and validate amounts."""
        principal = to_decimal(self.principal_per_year)
        claimed = to_decimal(self.cumulative_claimed)
        if principal < 0:
            raise ConfigError(f"principal_per_year must be >= 0, got {principal}")
        if claimed < 0:
            raise ConfigError(f"cumulative_claimed must be >= 0, got {claimed}")
        object.__setattr__(self, "principal_per_year", principal)
        object.__setattr__(self, "cumulative_claimed", claimed)
        if self.stream_started_at is not None:
            object.__setattr__(
                self, "stream_started_at", to_instant(self.stream_started_at)
            )

    @property
    def active(self) -> bool:
        """A stream is active once it has a start instant."""
        return self.stream_started_at is not None

    @classmethod
    def inactive(cls, party: str) -> StreamState:
        """State for a party that has never been onboarded."""
        return cls(party=party)

    def with_onboarding(
        self, principal_per_year: Decimal, started_at: datetime
    ) -> StreamState:
        """Copy with a new principal and start instant; claim history is kept."""
        return replace(
            self,
            principal_per_year=to_decimal(principal_per_year),
            stream_started_at=to_instant(started_at),
        )

    def with_claim(self, amount: Decimal) -> StreamState:
        """Copy with ``amount`` added to the cumulative claimed total."""
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValueError(f"Settled amount must be positive, got {amount}")
        return replace(
            self, cumulative_claimed=MONEY.add(self.cumulative_claimed, amount)
        )

    def accrued_at(self, now: datetime, currency: Currency = HLUSD) -> Decimal:
        """Total accrued to date, computed for ``now`` and never cached."""
        return accrued_between(
            self.principal_per_year, self.stream_started_at, to_instant(now), currency
        )

    def claimable_at(self, now: datetime, currency: Currency = HLUSD) -> Decimal:
        """Accrued minus already claimed, floored at zero."""
        remaining = MONEY.subtract(self.accrued_at(now, currency), self.cumulative_claimed)
        return remaining if remaining > 0 else currency.quantize(_ZERO)

    def snapshot(self, now: datetime, currency: Currency = HLUSD) -> AccrualSnapshot:
        """Derive the accrual snapshot at ``now``."""
        now = to_instant(now)
        total = self.accrued_at(now, currency)
        remaining = MONEY.subtract(total, self.cumulative_claimed)
        return AccrualSnapshot(
            party=self.party,
            as_of=now,
            principal_per_year=self.principal_per_year,
            cumulative_claimed=self.cumulative_claimed,
            total_accrued_to_date=total,
            claimable=remaining if remaining > 0 else currency.quantize(_ZERO),
            rate_per_second=rate_per_second(self.principal_per_year, currency),
            active=self.active,
        )


@dataclass(frozen=True)
class AccrualSnapshot:
    """
    Derived view of a stream at one instant.

    Snapshots are what the display layer polls; they are values, so a stale
    snapshot can be handed out again unchanged while the ledger is unreachable.
    """

    party: str
    as_of: datetime
    principal_per_year: Decimal
    cumulative_claimed: Decimal
    total_accrued_to_date: Decimal
    claimable: Decimal
    rate_per_second: Decimal
    active: bool

    def display(self, currency: Currency = HLUSD, decimals: int = 3) -> dict[str, str]:
        """String rendering for dashboards, truncated to ``decimals`` places."""
        return {
            "party": self.party,
            "as_of": self.as_of.isoformat(),
            "principal_per_year": currency.display(self.principal_per_year, decimals),
            "claimable": currency.display(self.claimable, decimals),
            "cumulative_claimed": currency.display(self.cumulative_claimed, decimals),
            "rate_per_second": currency.display(self.rate_per_second, decimals),
            "active": "yes" if self.active else "no",
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (amounts as strings)."""
        return {
            "party": self.party,
            "as_of": self.as_of.isoformat(),
            "principal_per_year": str(self.principal_per_year),
            "cumulative_claimed": str(self.cumulative_claimed),
            "total_accrued_to_date": str(self.total_accrued_to_date),
            "claimable": str(self.claimable),
            "rate_per_second": str(self.rate_per_second),
            "active": self.active,
        }
