"""
Accrual and settlement engine for salary streams.

The engine is the surface the display layer talks to. It answers "how much
is claimable right now", settles claims, and serves the transaction feed, in
whichever mode is current. In Live mode it pulls facts from a ledger adapter
on explicit resync; it runs no timers and subscribes to nothing, so state only
changes when the caller asks.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime
from decimal import Decimal
from typing import Any

from .config import EngineConfig
from .errors import ConfigError
from .events import TransactionKind, TransactionRecord
from .exceptions import (
    AmbiguousClaimOutcome,
    InsufficientBalance,
    LedgerError,
    ModeError,
    NotOnboarded,
    RevertReason,
    SourceUnavailable,
)
from .ledger import LedgerAdapter
from .modes import Mode, ModeController, StreamSession
from .settlement import ALL, apply_receipt, settle_amount
from .state import AccrualSnapshot, StreamState
from .utils import to_instant, utc_now

logger = logging.getLogger(__name__)


class PayStreamEngine:
    """
    Display-facing engine for one party.

    **Example Usage:**
        ```python
        from paystream import PayStreamEngine

        with PayStreamEngine() as engine:  # simulated by default
            snap = engine.get_snapshot()
            print(snap.claimable)          # ~136.89 after one day at 50k/year
            engine.request_claim("all")
            print(engine.get_feed()[0].kind)
        ```

    Args:
        ledger: Ledger adapter; required for Live mode
        config: Engine configuration (defaults to :class:`EngineConfig`)
        party: Party this engine serves (defaults to the simulation seed party)
        mode: Initial mode (defaults to ``config.default_mode``)
        clock: Callable returning the current instant
    """

    def __init__(
        self,
        ledger: LedgerAdapter | None = None,
        config: EngineConfig | None = None,
        *,
        party: str | None = None,
        mode: Mode | str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or EngineConfig()
        self.ledger = ledger
        self.currency = self.config.token()
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="paystream-ledger"
        )
        self._controller = ModeController(
            party or self.config.simulation.party,
            self.config.simulation,
            currency=self.currency,
        )
        self.set_mode(Mode(mode or self.config.default_mode))

    # ── Mode control ──────────────────────────────────────────

    @property
    def mode(self) -> Mode:
        return self._controller.mode

    @property
    def party(self) -> str:
        return self._controller.party

    @property
    def session(self) -> StreamSession:
        """Session of the current mode."""
        return self._controller.current

    @property
    def stale(self) -> bool:
        """True while the Live session could not be resynchronized."""
        return self.session.stale

    def set_mode(
        self,
        mode: Mode | str,
        *,
        principal_per_year: Decimal | int | str | None = None,
        started_at: datetime | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Switch to ``mode``.

        Entering Live runs one synchronous resync. If it fails the switch still
        happens and the session stays stale: snapshots come from the last
        known state and claims fail with SourceUnavailable until a later
        :meth:`resync` succeeds.

        Args:
            mode: Target mode
            principal_per_year: Simulated only; overrides the seed principal
            started_at: Simulated only; overrides the seed start instant
            now: Instant of the switch

        Returns:
            False if entering Live left the session stale, True otherwise

        Raises:
            ConfigError: If Live is requested without a ledger adapter
        """
        mode = Mode(mode)
        now = self._now(now)
        if mode is Mode.LIVE and self.ledger is None:
            raise ConfigError("Live mode requires a ledger adapter")
        if mode is self._controller.mode:
            logger.debug("Already in %s mode for %s", mode.value, self.party)
            return not self.session.stale

        self._controller.enter(
            mode, now, principal_per_year=principal_per_year, started_at=started_at
        )
        if mode is Mode.SIMULATED:
            return True
        try:
            self.resync(now)
        except SourceUnavailable as e:
            logger.warning("Entered live mode without a resync: %s", e)
            return False
        return True

    def toggle_mode(self, now: datetime | None = None) -> bool:
        """Flip between Live and Simulated; see :meth:`set_mode`."""
        return self.set_mode(self.mode.other(), now=now)

    def select_party(self, party: str, now: datetime | None = None) -> bool:
        """
        Re-initialize the engine for another party.

        Both sessions are discarded, feeds start empty, and the current mode is
        entered again for the new party.
        """
        mode = self.mode
        self._controller.reset(party)
        logger.info("Selected party %s", party)
        return self.set_mode(mode, now=now)

    # ── Reads ─────────────────────────────────────────────────

    def get_snapshot(self, now: datetime | None = None) -> AccrualSnapshot:
        """
        Claimable balance, principal, cumulative claimed and active flag.

        Safe to poll at high frequency; it never calls the ledger.

        Raises:
            SourceUnavailable: In Live mode before any resync has succeeded
        """
        return self.session.snapshot(self._now(now))

    def current_claimable(self, now: datetime | None = None) -> Decimal:
        """Claimable balance of the current session at ``now``."""
        return self.get_snapshot(now).claimable

    def get_feed(self) -> tuple[TransactionRecord, ...]:
        """Transaction feed of the current session, newest first."""
        return self.session.records()

    # ── Settlement ────────────────────────────────────────────

    def request_claim(
        self,
        amount: Decimal | int | str | None = ALL,
        now: datetime | None = None,
    ) -> TransactionRecord:
        """
        Claim ``amount`` (or ``"all"``) for the current party.

        In Simulated mode any positive amount up to the claimable balance is
        settled locally. In Live mode the ledger settles the full claimable
        balance whatever ``amount`` is.

        Returns:
            The Claimed record now at the head of the feed

        Raises:
            NotOnboarded: No active stream
            InsufficientBalance: Nothing claimable, or a bad custom amount
            SourceUnavailable: Live session stale or ledger unreachable
            AmbiguousClaimOutcome: Claim confirmation unknown, or an earlier
                one has not been reconciled yet
        """
        now = self._now(now)
        session = self.session
        if session.mode is Mode.SIMULATED:
            record = session.claim_locally(amount, now, self.config.tax_percent)
            logger.info(
                "Simulated claim of %s %s for %s", record.amount, self.currency, self.party
            )
            return record

        with session.sync_lock:
            with session.lock:
                if session.pending_reconciliation:
                    raise AmbiguousClaimOutcome(
                        "A previous claim is awaiting reconciliation; resync first",
                        party=session.party,
                    )
                if session.stale:
                    raise SourceUnavailable(
                        f"Ledger state is stale ({session.last_error}); resync first",
                        party=session.party,
                    )
                settle_amount(
                    session.state,
                    amount,
                    now,
                    ledger_backed=True,
                    currency=self.currency,
                )
            try:
                receipt = self._call_ledger(
                    self.ledger.submit_claim, session.party, submitting=True
                )
            except AmbiguousClaimOutcome:
                with session.lock:
                    session.pending_reconciliation = True
                logger.warning(
                    "Claim outcome unknown for %s; holding claims until resync",
                    session.party,
                )
                raise
            with session.lock:
                state, record = apply_receipt(session.state, receipt)
                session.commit(state, record)
        logger.info(
            "Ledger claim of %s %s for %s (%s)",
            record.amount,
            self.currency,
            self.party,
            record.reference,
        )
        return record

    def onboard(
        self,
        principal_per_year: Decimal | int | str,
        start: datetime | None = None,
        now: datetime | None = None,
    ) -> TransactionRecord:
        """
        Start or restart the simulated stream; claim history is kept.

        Raises:
            ModeError: In Live mode, where onboarding is observed from the ledger
        """
        session = self.session
        if session.mode is Mode.LIVE:
            raise ModeError(
                "Onboarding is read from the ledger in live mode", party=self.party
            )
        start = self._now(start if start is not None else now)
        return session.onboard_locally(principal_per_year, start)

    # ── Resynchronization ─────────────────────────────────────

    def resync(self, now: datetime | None = None) -> AccrualSnapshot:
        """
        Re-derive the Live state and feed from the ledger.

        All ledger reads finish before anything is installed, so a failed
        resync leaves the previous state and feed in place. The reads do not
        hold the session lock; snapshot polls keep answering from the previous
        state while they run.

        Raises:
            ModeError: If the current mode is not Live
            SourceUnavailable: If the ledger cannot be read; the session is
                marked stale
        """
        now = self._now(now)
        session = self.session
        if session.mode is not Mode.LIVE:
            raise ModeError("Resync is only available in live mode", party=self.party)

        party = session.party
        with session.sync_lock:
            try:
                info = self._call_ledger(self.ledger.read_stream, party)
                onboarded = self._call_ledger(
                    self.ledger.query_events, TransactionKind.ONBOARDED, party
                )
                claimed = self._call_ledger(
                    self.ledger.query_events, TransactionKind.CLAIMED, party
                )
            except SourceUnavailable as e:
                session.mark_stale(str(e))
                logger.warning("Resync failed for %s: %s", party, e)
                raise

            ledger_records = [
                event.to_record()
                for event in (*onboarded, *claimed)
                if event.party == party
            ]
            with session.lock:
                feed = session.feed.rebuilt(ledger_records)
                state = self._reconcile(session.state, info, feed)
                session.replace(state, feed, synced_at=now)
                snap = session.snapshot(now)

        logger.info(
            "Resynced %s: %d records, claimed %s, claimable %s",
            party,
            len(feed),
            state.cumulative_claimed,
            snap.claimable,
        )
        return snap

    def _reconcile(self, previous: StreamState, info, feed) -> StreamState:
        party = previous.party
        if info is None or not info.active:
            principal = info.principal_per_year if info is not None else Decimal("0")
            started_at = None
        else:
            principal = info.principal_per_year
            started_at = info.stream_started_at
            if started_at is None:
                onboarded = [
                    r for r in feed.all() if r.kind is TransactionKind.ONBOARDED
                ]
                started_at = onboarded[0].occurred_at if onboarded else None

        cumulative = (
            info.cumulative_claimed
            if info is not None and info.cumulative_claimed is not None
            else feed.claimed_since_onboarding(party)
        )
        restarted = started_at != previous.stream_started_at
        if cumulative < previous.cumulative_claimed and not restarted:
            logger.warning(
                "Ledger reports %s claimed for %s, below local %s; adopting ledger value",
                cumulative,
                party,
                previous.cumulative_claimed,
            )
        return StreamState(
            party=party,
            principal_per_year=principal,
            stream_started_at=started_at,
            cumulative_claimed=cumulative,
        )

    # ── Ledger calls ──────────────────────────────────────────

    def _call_ledger(self, fn: Callable[..., Any], *args, submitting: bool = False):
        """
        Run a ledger call on the worker pool, bounded by ``ledger_timeout``.

        A timeout or transport fault on a read is SourceUnavailable. On a claim
        submission it is AmbiguousClaimOutcome unless the adapter states the
        request was never sent. A contract revert is a definite answer and
        becomes NotOnboarded or InsufficientBalance.
        """
        name = getattr(fn, "__name__", "ledger call")
        timeout = self.config.ledger_timeout
        try:
            future = self._executor.submit(fn, *args)
        except RuntimeError as e:
            raise SourceUnavailable(f"Engine is closed: {e}", party=self.party) from e
        try:
            return future.result(timeout=timeout)
        except (FutureTimeout, TimeoutError) as e:
            future.cancel()
            if submitting:
                raise AmbiguousClaimOutcome(
                    f"{name} not confirmed within {timeout}s", party=self.party
                ) from e
            raise SourceUnavailable(
                f"{name} timed out after {timeout}s", party=self.party
            ) from e
        except LedgerError as e:
            if e.revert is RevertReason.NOT_ONBOARDED:
                raise NotOnboarded(f"{name} reverted: {e}", party=self.party) from e
            if e.revert is RevertReason.NOTHING_TO_CLAIM:
                raise InsufficientBalance(
                    f"{name} reverted: {e}", party=self.party
                ) from e
            if submitting and e.sent:
                raise AmbiguousClaimOutcome(
                    f"{name} failed after sending: {e}", party=self.party
                ) from e
            raise SourceUnavailable(f"{name} failed: {e}", party=self.party) from e
        except OSError as e:
            if submitting:
                raise AmbiguousClaimOutcome(
                    f"{name} lost its connection: {e}", party=self.party
                ) from e
            raise SourceUnavailable(f"{name} failed: {e}", party=self.party) from e

    def _now(self, now: datetime | None) -> datetime:
        return to_instant(now) if now is not None else to_instant(self._clock())

    # ── Lifecycle ─────────────────────────────────────────────

    def close(self) -> None:
        """Shut down the ledger worker pool."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> PayStreamEngine:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PayStreamEngine(mode={self.mode.value}, party='{self.party}')"
