"""
PayStream Live and Simulated modes.

Live:       State and feed are re-derived from the authoritative ledger.
Simulated:  State and feed are held locally; no ledger calls happen.

Each mode owns an independent :class:`StreamSession`. Switching modes never
copies or merges state between them: the Live session is suspended while
Simulated is current, and every entry into Simulated seeds a fresh session.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .config import SimulationSeed
from .currency import HLUSD, Currency
from .events import TransactionRecord
from .exceptions import SourceUnavailable
from .feed import TransactionFeed
from .settlement import claim, onboard, onboarding_record
from .state import AccrualSnapshot, StreamState
from .utils import seconds_ago, to_instant

logger = logging.getLogger(__name__)


class Mode(Enum):
    LIVE = "live"
    SIMULATED = "simulated"

    def other(self) -> Mode:
        return Mode.SIMULATED if self is Mode.LIVE else Mode.LIVE


class StreamSession:
    """
    The current state and feed of one party in one mode.

    All reads and writes go through a re-entrant lock, so a reader never sees
    the feed updated without the state or the other way round, and a claim is
    always computed against the freshest cumulative claimed amount. Ledger
    round trips (claim submission and resync) are serialized by a separate
    ``sync_lock`` and never hold ``lock``, so snapshot reads do not wait on
    the ledger.

    Attributes:
        mode: Mode that owns this session
        stale: Live only; True until a resync succeeds, and again after a
            failed one
        pending_reconciliation: Live only; set after an ambiguous claim and
            cleared by the next successful resync
        last_synced_at: Instant of the last successful resync
        last_error: Message of the last resync failure
    """

    def __init__(
        self,
        mode: Mode,
        state: StreamState,
        feed: TransactionFeed | None = None,
        *,
        currency: Currency = HLUSD,
        stale: bool = False,
    ):
        self.mode = mode
        self.currency = currency
        self.lock = threading.RLock()
        self.sync_lock = threading.Lock()
        self.stale = stale
        self.pending_reconciliation = False
        self.last_synced_at: datetime | None = None
        self.last_error: str | None = None
        self._state = state
        self._feed = feed if feed is not None else TransactionFeed()
        self._last_snapshot: AccrualSnapshot | None = None
        self._sequence = len(self._feed)

    @property
    def party(self) -> str:
        return self._state.party

    @property
    def state(self) -> StreamState:
        with self.lock:
            return self._state

    @property
    def feed(self) -> TransactionFeed:
        with self.lock:
            return self._feed

    def records(self) -> tuple[TransactionRecord, ...]:
        """Feed snapshot, newest first."""
        with self.lock:
            return self._feed.all()

    def snapshot(self, now: datetime) -> AccrualSnapshot:
        """
        Accrual snapshot at ``now``.

        A stale session hands back the last snapshot it produced, unchanged.

        Raises:
            SourceUnavailable: If the session is stale and has never produced
                a snapshot
        """
        with self.lock:
            if self.stale:
                if self._last_snapshot is None:
                    raise SourceUnavailable(
                        "Ledger state has not been loaded yet", party=self.party
                    )
                return self._last_snapshot
            snap = self._state.snapshot(now, self.currency)
            self._last_snapshot = snap
            return snap

    def next_sequence(self) -> int:
        with self.lock:
            self._sequence += 1
            return self._sequence

    def commit(self, state: StreamState, record: TransactionRecord | None = None) -> None:
        """
        Swap in a new state and append its record in one step.

        The last snapshot is refreshed at the record's instant, so a stale
        session never serves a snapshot older than its feed.
        """
        with self.lock:
            if record is not None:
                self._feed.record(record)
                self._last_snapshot = state.snapshot(record.occurred_at, self.currency)
            self._state = state

    def replace(
        self, state: StreamState, feed: TransactionFeed, synced_at: datetime
    ) -> None:
        """Install a resynchronized state and feed and leave the stale substate."""
        with self.lock:
            self._state = state
            self._feed = feed
            self._sequence = max(self._sequence, len(feed))
            self.stale = False
            self.pending_reconciliation = False
            self.last_synced_at = synced_at
            self.last_error = None
            self._last_snapshot = state.snapshot(synced_at, self.currency)

    def mark_stale(self, reason: str) -> None:
        with self.lock:
            self.stale = True
            self.last_error = reason

    # ── Simulated actions ─────────────────────────────────────

    def claim_locally(
        self,
        requested: Decimal | int | str | None,
        now: datetime,
        tax_percent: Decimal,
    ) -> TransactionRecord:
        """Settle a claim against local state only."""
        with self.lock:
            state, record = claim(
                self._state,
                requested,
                now,
                tax_percent=tax_percent,
                sequence=self.next_sequence(),
                currency=self.currency,
            )
            self.commit(state, record)
            return record

    def onboard_locally(
        self, principal_per_year: Decimal | int | str, start: datetime
    ) -> TransactionRecord:
        """(Re-)onboard the party locally, keeping its claim history."""
        with self.lock:
            state = onboard(self._state, principal_per_year, start)
            record = onboarding_record(state, sequence=self.next_sequence())
            self.commit(state, record)
            return record

    def __repr__(self) -> str:
        flags = []
        if self.stale:
            flags.append("stale")
        if self.pending_reconciliation:
            flags.append("pending")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"StreamSession({self.mode.value}, party='{self.party}'){suffix}"


class ModeController:
    """
    Tracks the current mode and owns one session per mode.

    Transitions happen only on an explicit :meth:`enter`; there is no
    automatic fallback from Live to Simulated.
    """

    def __init__(
        self,
        party: str,
        seed: SimulationSeed | None = None,
        *,
        currency: Currency = HLUSD,
    ):
        self.seed = seed or SimulationSeed()
        self.currency = currency
        self._lock = threading.RLock()
        self._party = party
        self._mode: Mode | None = None
        self._sessions: dict[Mode, StreamSession] = {}

    @property
    def party(self) -> str:
        return self._party

    @property
    def mode(self) -> Mode | None:
        with self._lock:
            return self._mode

    @property
    def current(self) -> StreamSession:
        with self._lock:
            if self._mode is None:
                raise RuntimeError("No mode has been entered yet")
            return self._sessions[self._mode]

    def session(self, mode: Mode) -> StreamSession | None:
        """Session owned by ``mode`` (None if it was never entered)."""
        with self._lock:
            return self._sessions.get(mode)

    def enter(
        self,
        mode: Mode,
        now: datetime,
        *,
        principal_per_year: Decimal | int | str | None = None,
        started_at: datetime | None = None,
    ) -> StreamSession:
        """
        Make ``mode`` current and return its session.

        Entering Simulated seeds a fresh session from the caller's principal
        and start instant, falling back to the configured seed. Entering Live
        resumes the suspended Live session, or creates a stale one that
        the engine must resynchronize before accepting claims.
        """
        with self._lock:
            previous = self._mode
            if mode is Mode.SIMULATED:
                session = self._seed_simulated(now, principal_per_year, started_at)
            else:
                session = self._sessions.get(Mode.LIVE)
                if session is None:
                    session = StreamSession(
                        Mode.LIVE,
                        StreamState.inactive(self._party),
                        currency=self.currency,
                        stale=True,
                    )
            self._sessions[mode] = session
            self._mode = mode
            logger.info(
                "Mode switch %s -> %s for %s",
                previous.value if previous else "-",
                mode.value,
                self._party,
            )
            return session

    def reset(self, party: str) -> None:
        """Drop every session; the next :meth:`enter` starts from empty feeds."""
        with self._lock:
            self._party = party
            self._mode = None
            self._sessions.clear()

    def _seed_simulated(
        self,
        now: datetime,
        principal_per_year: Decimal | int | str | None,
        started_at: datetime | None,
    ) -> StreamSession:
        principal = (
            self.seed.principal_per_year
            if principal_per_year is None
            else principal_per_year
        )
        if started_at is None:
            started_at = self.seed.started_at or seconds_ago(
                self.seed.started_seconds_ago, now
            )
        session = StreamSession(
            Mode.SIMULATED, StreamState.inactive(self._party), currency=self.currency
        )
        session.onboard_locally(principal, to_instant(started_at))
        return session
