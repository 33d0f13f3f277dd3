"""
Settlement event records shown in the transaction feed.
"""

from __future__ import annotations

import hashlib
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple


class TransactionKind(str, Enum):
    """Settlement event kinds, as named on the payroll contract."""

    ONBOARDED = "Onboarded"
    CLAIMED = "Claimed"


class TransactionRecord(NamedTuple):
    """
    Time-stamped settlement event for one party.

    Attributes:
        id: Feed identifier (``onboard-<reference>`` / ``claim-<reference>``)
        kind: Onboarded or Claimed
        party: Party the event belongs to
        amount: Annual salary for Onboarded, gross settled amount for Claimed
        occurred_at: Instant of the event (block time or local action time)
        reference: Ledger transaction hash or synthesized simulation hash
        tax_withheld: Tax withheld on a claim (None for Onboarded)
        source: 'ledger' for facts read back from the ledger, 'local' otherwise
    """

    id: str
    kind: TransactionKind
    party: str
    amount: Decimal
    occurred_at: datetime
    reference: str
    tax_withheld: Decimal | None = None
    source: str = "local"

    @property
    def net_amount(self) -> Decimal:
        """Amount received after tax."""
        if self.tax_withheld is None:
            return self.amount
        return self.amount - self.tax_withheld

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "party": self.party,
            "amount": str(self.amount),
            "tax_withheld": None
            if self.tax_withheld is None
            else str(self.tax_withheld),
            "occurred_at": self.occurred_at.isoformat(),
            "reference": self.reference,
            "source": self.source,
        }


def record_id(kind: TransactionKind, reference: str) -> str:
    """Feed identifier for an event, stable across rebuilds."""
    prefix = "onboard" if kind is TransactionKind.ONBOARDED else "claim"
    return f"{prefix}-{reference}"


def synthesize_reference(
    party: str, kind: TransactionKind, occurred_at: datetime, sequence: int
) -> str:
    """
    Transaction-hash-like reference for a simulated event.

    Deterministic for the same inputs, so a replayed simulation produces the
    same feed.
    """
    content = f"sim:{party}:{kind.value}:{occurred_at.isoformat()}:{sequence}"
    return "0x" + hashlib.sha256(content.encode()).hexdigest()
