"""
In-process ledger emulating the claim-all payroll contract.

The contract keeps, per employee, a yearly salary and a checkpoint (the time
of onboarding or of the last claim). ``claimSalary`` pays out everything
accrued since the checkpoint, withholds a fixed tax percentage, moves the
checkpoint to the block time, and emits ``SalaryClaimed``. Block times are
whole seconds.
"""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from paystream.core.currency import HLUSD, Currency, to_decimal
from paystream.core.events import TransactionKind
from paystream.core.exceptions import LedgerError, RevertReason
from paystream.core.ledger import ClaimReceipt, LedgerEvent, StreamInfo
from paystream.core.rate import accrued_between
from paystream.core.settlement import withholding
from paystream.core.utils import to_instant, utc_now


@dataclass
class _EmployeeStream:
    yearly_salary: Decimal
    onboarded_at: datetime
    checkpoint: datetime
    active: bool = True


class InMemoryLedger:
    """
    Reference :class:`~paystream.core.ledger.LedgerAdapter` held in memory.

    Attributes:
        tax_percent: Share of each claim withheld (the contract's TAX_PERCENT)
        currency: Token the ledger settles in
    """

    def __init__(
        self,
        tax_percent: Decimal | int | str = 10,
        *,
        clock: Callable[[], datetime] = utc_now,
        currency: Currency = HLUSD,
    ):
        self.tax_percent = to_decimal(tax_percent)
        self.currency = currency
        self._clock = clock
        self._lock = threading.Lock()
        self._streams: dict[str, _EmployeeStream] = {}
        self._events: list[LedgerEvent] = []
        self._nonce = 0

    def block_time(self) -> datetime:
        """Current block timestamp, truncated to whole seconds."""
        now = to_instant(self._clock())
        return now.replace(microsecond=0)

    # ── Owner actions ─────────────────────────────────────────

    def onboard_employee(
        self,
        party: str,
        yearly_salary: Decimal | int | str,
        at: datetime | None = None,
    ) -> str:
        """
        Start a stream for ``party``; returns the transaction reference.

        Onboarding an existing employee restarts the checkpoint, as the
        contract does.
        """
        salary = to_decimal(yearly_salary)
        if salary <= 0:
            raise LedgerError("yearly salary must be positive")
        with self._lock:
            when = to_instant(at).replace(microsecond=0) if at else self.block_time()
            self._streams[party] = _EmployeeStream(
                yearly_salary=salary, onboarded_at=when, checkpoint=when
            )
            reference = self._next_reference(party, when)
            self._events.append(
                LedgerEvent(
                    kind=TransactionKind.ONBOARDED,
                    party=party,
                    amount=salary,
                    timestamp=when,
                    reference=reference,
                )
            )
            return reference

    def terminate_employee(self, party: str) -> None:
        """Cancel the stream of ``party``; later claims revert."""
        with self._lock:
            stream = self._streams.get(party)
            if stream is None:
                raise LedgerError(
                    "execution reverted: not an active employee",
                    revert=RevertReason.NOT_ONBOARDED,
                )
            stream.active = False

    # ── LedgerAdapter ─────────────────────────────────────────

    def read_stream(self, party: str) -> StreamInfo | None:
        with self._lock:
            stream = self._streams.get(party)
            if stream is None:
                return None
            return StreamInfo(
                principal_per_year=stream.yearly_salary,
                stream_started_at=stream.onboarded_at,
                active=stream.active,
            )

    def submit_claim(self, party: str) -> ClaimReceipt:
        with self._lock:
            stream = self._streams.get(party)
            if stream is None or not stream.active:
                raise LedgerError(
                    "execution reverted: not an active employee",
                    revert=RevertReason.NOT_ONBOARDED,
                )
            when = self.block_time()
            amount = accrued_between(
                stream.yearly_salary, stream.checkpoint, when, self.currency
            )
            if amount <= 0:
                raise LedgerError(
                    "execution reverted: nothing to claim",
                    revert=RevertReason.NOTHING_TO_CLAIM,
                )
            tax = withholding(amount, self.tax_percent, self.currency)
            stream.checkpoint = when
            reference = self._next_reference(party, when)
            self._events.append(
                LedgerEvent(
                    kind=TransactionKind.CLAIMED,
                    party=party,
                    amount=amount,
                    timestamp=when,
                    reference=reference,
                    tax_withheld=tax,
                )
            )
            return ClaimReceipt(
                settled_amount=amount,
                tax_withheld=tax,
                reference=reference,
                confirmed_at=when,
            )

    def query_events(
        self, kind: TransactionKind, party: str | None = None
    ) -> list[LedgerEvent]:
        with self._lock:
            return [
                event
                for event in self._events
                if event.kind is kind and (party is None or event.party == party)
            ]

    # ── Internals ─────────────────────────────────────────────

    def _next_reference(self, party: str, when: datetime) -> str:
        self._nonce += 1
        content = f"{party}:{self._nonce}:{when.isoformat()}"
        return "0x" + hashlib.sha256(content.encode()).hexdigest()

    def __repr__(self) -> str:
        return f"InMemoryLedger(streams={len(self._streams)}, events={len(self._events)})"
