"""
Shared fixtures: a controllable clock and a failure-injecting ledger.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest
from paystream.adapters import InMemoryLedger
from paystream.core.exceptions import LedgerError

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
PARTY = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"
OTHER = "0x8ba1f109551bD432803012645Ac136ddd64DBA72"


class Clock:
    """Manually advanced clock; call it to read the current instant."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now

    def __call__(self) -> datetime:
        return self.now


class FlakyLedger:
    """
    Wraps a ledger adapter and injects faults.

    Attributes:
        fail_reads: Exception raised by read_stream/query_events (None = healthy)
        lose_confirmation: submit_claim settles on the wrapped ledger, then
            raises ``confirmation_fault``
        confirmation_fault: Fault raised after settling (a LedgerError with
            ``sent=True`` unless replaced)
        delay: Seconds every call sleeps before reaching the wrapped ledger
    """

    def __init__(self, inner: InMemoryLedger):
        self.inner = inner
        self.fail_reads: Exception | None = None
        self.lose_confirmation = False
        self.confirmation_fault: Exception = LedgerError(
            "connection reset while waiting for receipt", sent=True
        )
        self.delay = 0.0
        self.submit_calls = 0

    def _pause(self):
        if self.delay:
            time.sleep(self.delay)

    def read_stream(self, party):
        self._pause()
        if self.fail_reads is not None:
            raise self.fail_reads
        return self.inner.read_stream(party)

    def query_events(self, kind, party=None):
        self._pause()
        if self.fail_reads is not None:
            raise self.fail_reads
        return self.inner.query_events(kind, party)

    def submit_claim(self, party):
        self.submit_calls += 1
        self._pause()
        receipt = self.inner.submit_claim(party)
        if self.lose_confirmation:
            raise self.confirmation_fault
        return receipt


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def ledger(clock):
    """Ledger with PARTY onboarded at 50k/year at T0."""
    ledger = InMemoryLedger(tax_percent=10, clock=clock)
    ledger.onboard_employee(PARTY, 50000)
    return ledger


@pytest.fixture
def flaky(ledger):
    return FlakyLedger(ledger)
