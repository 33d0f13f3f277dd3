"""
Ledger adapter contract for PayStream.

The ledger is the authoritative source of onboarding and claim facts. The
engine only reads from it and asks it to settle claims; addresses, token
units and block numbers are converted by the adapter into parties, Decimal
amounts and UTC instants before they reach the engine.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable

from .events import TransactionKind, TransactionRecord, record_id


@dataclass(frozen=True)
class StreamInfo:
    """
    Result of ``read_stream``.

    ``cumulative_claimed`` is optional because not every contract exposes it;
    when it is None the engine derives it from the claim events. It counts
    claims since ``stream_started_at``, since re-onboarding restarts accrual.
    """

    principal_per_year: Decimal
    stream_started_at: datetime | None
    active: bool
    cumulative_claimed: Decimal | None = None


@dataclass(frozen=True)
class ClaimReceipt:
    """Confirmed result of ``submit_claim``; the ledger always settles everything accrued."""

    settled_amount: Decimal
    tax_withheld: Decimal
    reference: str
    confirmed_at: datetime


@dataclass(frozen=True)
class LedgerEvent:
    """One onboarding or claim event as reported by ``query_events``."""

    kind: TransactionKind
    party: str
    amount: Decimal
    timestamp: datetime
    reference: str
    tax_withheld: Decimal | None = None

    def to_record(self) -> TransactionRecord:
        """Feed record for this ledger fact."""
        return TransactionRecord(
            id=record_id(self.kind, self.reference),
            kind=self.kind,
            party=self.party,
            amount=self.amount,
            occurred_at=self.timestamp,
            reference=self.reference,
            tax_withheld=self.tax_withheld,
            source="ledger",
        )


@runtime_checkable
class LedgerAdapter(Protocol):
    """
    Contract every ledger adapter must satisfy.

    Adapters raise :class:`~paystream.core.exceptions.LedgerError` (or any
    ``OSError``) for transport faults, and a ``LedgerError`` with ``revert`` set
    when the contract refuses a claim. ``read_stream`` returns None when the
    party is unknown to the ledger.
    """

    def read_stream(self, party: str) -> StreamInfo | None:
        """Current stream parameters for ``party``, or None if not found."""
        ...

    def submit_claim(self, party: str) -> ClaimReceipt:
        """Settle everything currently accrued for ``party`` and wait for confirmation."""
        ...

    def query_events(
        self, kind: TransactionKind, party: str | None = None
    ) -> Sequence[LedgerEvent]:
        """Every event of ``kind``, optionally filtered to one party."""
        ...


__all__ = ["StreamInfo", "ClaimReceipt", "LedgerEvent", "LedgerAdapter"]
