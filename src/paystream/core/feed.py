"""
Append-only transaction feed.

The feed is always materialized newest-first by ``occurred_at``. Ties are
broken by insertion order, later insertions first, so a record the user just
produced locally sorts ahead of a same-instant ledger record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from decimal import Decimal

from .currency import MONEY
from .events import TransactionKind, TransactionRecord

logger = logging.getLogger(__name__)

_KIND_ORDER = {TransactionKind.ONBOARDED: 0, TransactionKind.CLAIMED: 1}


class TransactionFeed:
    """
    Ordered log of settlement events for display and export.

    In Simulated mode the engine calls :meth:`record` synchronously from
    claim/onboard. In Live mode the feed is rebuilt from the ledger's full
    history with :meth:`rebuilt`, which returns a fresh feed so the caller can
    swap it in together with the matching stream state.
    """

    def __init__(self, records: Iterable[TransactionRecord] = ()):
        self._entries: list[tuple[int, TransactionRecord]] = []
        self._ids: set[str] = set()
        self._seq = 0
        self._ordered: tuple[TransactionRecord, ...] | None = None
        for record in records:
            self.record(record)

    def record(self, record: TransactionRecord) -> None:
        """
        Append a record at the head of the feed.

        Raises:
            ValueError: If a record with the same id is already present
        """
        if record.id in self._ids:
            raise ValueError(f"Duplicate transaction ID: {record.id}")
        self._seq += 1
        self._entries.append((self._seq, record))
        self._ids.add(record.id)
        self._ordered = None

    def all(self) -> tuple[TransactionRecord, ...]:
        """Snapshot of the feed, newest first."""
        if self._ordered is None:
            ordered = sorted(
                self._entries,
                key=lambda entry: (entry[1].occurred_at, entry[0]),
                reverse=True,
            )
            self._ordered = tuple(record for _, record in ordered)
        return self._ordered

    def head(self) -> TransactionRecord | None:
        """Most recent record, or None for an empty feed."""
        records = self.all()
        return records[0] if records else None

    def contains(self, record_id: str) -> bool:
        """Whether a record with this id is in the feed."""
        return record_id in self._ids

    def claimed_total(self, party: str | None = None) -> Decimal:
        """Sum of Claimed amounts, optionally for a single party."""
        total = Decimal("0")
        for _, record in self._entries:
            if record.kind is not TransactionKind.CLAIMED:
                continue
            if party is not None and record.party != party:
                continue
            total = MONEY.add(total, record.amount)
        return total

    def claimed_since_onboarding(self, party: str) -> Decimal:
        """
        Sum of the party's Claimed amounts after its latest onboarding.

        A claim at the onboarding instant settled the previous stream, since
        nothing accrues in the block that restarts it. Without any Onboarded
        record every claim of the party counts.
        """
        onboarded = [
            record.occurred_at
            for _, record in self._entries
            if record.kind is TransactionKind.ONBOARDED and record.party == party
        ]
        since = max(onboarded) if onboarded else None
        total = Decimal("0")
        for _, record in self._entries:
            if record.kind is not TransactionKind.CLAIMED or record.party != party:
                continue
            if since is not None and record.occurred_at <= since:
                continue
            total = MONEY.add(total, record.amount)
        return total

    def rebuilt(self, ledger_records: Iterable[TransactionRecord]) -> TransactionFeed:
        """
        Build the feed that results from a full ledger history read.

        Ledger records are deduplicated by id (kind + reference) and inserted
        in a canonical order so that rebuilding twice from the same history
        yields the same ordering. Local records the ledger has not reported
        yet are carried over and inserted last.

        Args:
            ledger_records: Every event the ledger reports for the party

        Returns:
            A new feed; this feed is left untouched
        """
        unique: dict[str, TransactionRecord] = {}
        for record in ledger_records:
            unique.setdefault(record.id, record)
        canonical = sorted(
            unique.values(),
            key=lambda r: (r.occurred_at, _KIND_ORDER[r.kind], r.reference),
        )
        fresh = TransactionFeed(canonical)

        carried = 0
        for _, record in sorted(self._entries, key=lambda entry: entry[0]):
            if record.source == "local" and record.id not in unique:
                fresh.record(record)
                carried += 1
        logger.debug(
            "Rebuilt feed: %d ledger records, %d local records pending",
            len(unique),
            carried,
        )
        return fresh

    def to_frame(self):
        """Feed as a pandas DataFrame, newest first."""
        from paystream.analytics import feed_frame

        return feed_frame(self.all())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(self.all())

    def __repr__(self) -> str:
        return f"TransactionFeed(records={len(self._entries)})"
