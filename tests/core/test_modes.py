"""
Tests for modes, per-mode sessions and the mode controller.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from paystream.core.config import SimulationSeed
from paystream.core.events import TransactionKind
from paystream.core.exceptions import SourceUnavailable
from paystream.core.feed import TransactionFeed
from paystream.core.modes import Mode, ModeController, StreamSession
from paystream.core.state import StreamState

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
PARTY = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"
ONE_DAY = Decimal("136.892539356605065023")


class TestMode:
    def test_values(self):
        assert Mode("live") is Mode.LIVE
        assert Mode("simulated") is Mode.SIMULATED

    def test_other(self):
        assert Mode.LIVE.other() is Mode.SIMULATED
        assert Mode.SIMULATED.other() is Mode.LIVE


class TestStreamSession:
    """Session state, feed and the stale substate."""

    @pytest.fixture
    def session(self):
        state = StreamState(PARTY, principal_per_year=50000, stream_started_at=T0)
        return StreamSession(Mode.SIMULATED, state)

    def test_claim_locally_commits_state_and_record(self, session):
        now = T0 + timedelta(days=1)
        record = session.claim_locally("all", now, Decimal("10"))

        assert session.state.cumulative_claimed == ONE_DAY
        assert session.records()[0] == record
        assert session.snapshot(now).claimable == 0

    def test_onboard_locally_records_onboarding(self, session):
        start = T0 + timedelta(days=2)
        record = session.onboard_locally(60000, start)

        assert record.kind is TransactionKind.ONBOARDED
        assert session.state.principal_per_year == Decimal("60000")
        assert session.records()[0] == record

    def test_stale_session_serves_last_snapshot(self, session):
        first = session.snapshot(T0 + timedelta(days=1))
        session.mark_stale("ledger unreachable")

        later = session.snapshot(T0 + timedelta(days=5))
        assert later == first
        assert session.last_error == "ledger unreachable"

    def test_commit_refreshes_last_snapshot(self, session):
        now = T0 + timedelta(days=1)
        session.snapshot(T0)
        record = session.claim_locally("all", now, Decimal("10"))
        session.mark_stale("ledger unreachable")

        snap = session.snapshot(T0 + timedelta(days=3))
        assert snap.as_of == now
        assert snap.cumulative_claimed == record.amount
        assert snap.claimable == 0

    def test_stale_without_snapshot_raises(self):
        session = StreamSession(Mode.LIVE, StreamState.inactive(PARTY), stale=True)
        with pytest.raises(SourceUnavailable, match="not been loaded"):
            session.snapshot(T0)

    def test_replace_clears_stale_and_pending(self):
        session = StreamSession(Mode.LIVE, StreamState.inactive(PARTY), stale=True)
        session.pending_reconciliation = True
        state = StreamState(PARTY, principal_per_year=50000, stream_started_at=T0)

        session.replace(state, TransactionFeed(), synced_at=T0)

        assert not session.stale
        assert not session.pending_reconciliation
        assert session.last_synced_at == T0
        assert session.snapshot(T0 + timedelta(days=1)).claimable == ONE_DAY

    def test_repr_flags(self):
        session = StreamSession(Mode.LIVE, StreamState.inactive(PARTY), stale=True)
        assert "stale" in repr(session)


class TestModeController:
    """Mode transitions and session isolation."""

    @pytest.fixture
    def controller(self):
        return ModeController(PARTY)

    def test_no_mode_before_enter(self, controller):
        assert controller.mode is None
        with pytest.raises(RuntimeError):
            controller.current

    def test_simulated_seed(self, controller):
        now = T0 + timedelta(days=10)
        session = controller.enter(Mode.SIMULATED, now)

        assert controller.mode is Mode.SIMULATED
        assert session.state.principal_per_year == Decimal("50000")
        assert session.state.stream_started_at == now - timedelta(days=1)
        assert session.snapshot(now).claimable == ONE_DAY
        assert [r.kind for r in session.records()] == [TransactionKind.ONBOARDED]

    def test_simulated_seed_overrides(self, controller):
        session = controller.enter(
            Mode.SIMULATED, T0, principal_per_year=120000, started_at=T0
        )
        assert session.state.principal_per_year == Decimal("120000")
        assert session.state.stream_started_at == T0

    def test_custom_seed(self):
        seed = SimulationSeed(party=PARTY, principal_per_year=31557600, started_seconds_ago=10)
        controller = ModeController(PARTY, seed)
        session = controller.enter(Mode.SIMULATED, T0)
        assert session.snapshot(T0).claimable == Decimal("10")

    def test_reentering_simulated_reseeds(self, controller):
        now = T0 + timedelta(days=1)
        first = controller.enter(Mode.SIMULATED, now)
        first.claim_locally("all", now, Decimal("10"))

        second = controller.enter(Mode.SIMULATED, now)
        assert second is not first
        assert second.state.cumulative_claimed == 0
        assert len(second.records()) == 1

    def test_live_session_starts_stale(self, controller):
        session = controller.enter(Mode.LIVE, T0)
        assert session.stale
        assert not session.state.active
        with pytest.raises(SourceUnavailable):
            session.snapshot(T0)

    def test_live_session_resumed(self, controller):
        live = controller.enter(Mode.LIVE, T0)
        controller.enter(Mode.SIMULATED, T0)
        assert controller.enter(Mode.LIVE, T0) is live

    def test_sessions_are_isolated(self, controller):
        now = T0 + timedelta(days=1)
        live = controller.enter(Mode.LIVE, now)
        simulated = controller.enter(Mode.SIMULATED, now)
        simulated.claim_locally("10", now, Decimal("10"))

        assert controller.session(Mode.LIVE) is live
        assert live.records() == ()
        assert live.state.cumulative_claimed == 0

    def test_reset(self, controller):
        controller.enter(Mode.SIMULATED, T0)
        controller.reset("0xnew")

        assert controller.party == "0xnew"
        assert controller.mode is None
        assert controller.session(Mode.SIMULATED) is None
        session = controller.enter(Mode.SIMULATED, T0)
        assert session.party == "0xnew"
