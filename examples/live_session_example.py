"""
Walk through a Live session against the in-memory payroll ledger.

An owner onboards an employee, time passes, the employee claims, the ledger
becomes unreachable for a while and the engine keeps serving its last
snapshot until a resync succeeds.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

from paystream import (
    LedgerError,
    PayStreamEngine,
    SourceUnavailable,
    feed_frame,
    payroll_stats,
)
from paystream.adapters import InMemoryLedger

EMPLOYEE = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"


class DemoClock:
    def __init__(self, start: datetime):
        self.now = start

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def __call__(self) -> datetime:
        return self.now


class OutageLedger(InMemoryLedger):
    """In-memory ledger whose reads can be switched off."""

    down = False

    def read_stream(self, party):
        if self.down:
            raise LedgerError("rpc endpoint unreachable")
        return super().read_stream(party)


def pretty(data: dict) -> str:
    """Return JSON formatted output."""
    return json.dumps(data, indent=2, sort_keys=True)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    clock = DemoClock(datetime(2026, 1, 1, 9, tzinfo=timezone.utc))
    ledger = OutageLedger(tax_percent=10, clock=clock)
    ledger.onboard_employee(EMPLOYEE, 72000)

    clock.advance(days=3)
    with PayStreamEngine(ledger, party=EMPLOYEE, mode="live", clock=clock) as engine:
        print(pretty(engine.get_snapshot().display()))

        record = engine.request_claim()
        print(f"Claimed {record.amount} (tax {record.tax_withheld}) in {record.reference[:12]}...")

        clock.advance(hours=6)
        ledger.down = True
        try:
            engine.resync()
        except SourceUnavailable as e:
            print(f"Resync failed, serving last snapshot: {e}")
        print(pretty(engine.get_snapshot().display()))

        ledger.down = False
        engine.resync()
        print(pretty(engine.get_snapshot().display()))

        print(feed_frame(engine.get_feed())[["kind", "amount", "tax_withheld", "occurred_at"]])
        print(pretty(payroll_stats([engine.session.state], engine.get_feed(), now=clock.now)))


if __name__ == "__main__":
    main()
