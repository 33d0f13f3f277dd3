"""
Tests for StreamState and AccrualSnapshot.
"""

import dataclasses
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from paystream.core.errors import ConfigError
from paystream.core.state import StreamState

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
PARTY = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"
ONE_DAY = Decimal("136.892539356605065023")


@pytest.fixture
def state():
    return StreamState(PARTY, principal_per_year=50000, stream_started_at=T0)


class TestStreamState:
    """Per-party streaming record."""

    def test_inactive_state(self):
        state = StreamState.inactive(PARTY)
        assert not state.active
        assert state.principal_per_year == 0
        assert state.cumulative_claimed == 0
        assert state.claimable_at(T0) == 0

    def test_inputs_normalized(self):
        state = StreamState(PARTY, principal_per_year="50000", stream_started_at="2026-01-01")
        assert state.principal_per_year == Decimal("50000")
        assert state.stream_started_at == T0
        assert state.active

    def test_negative_amounts_rejected(self):
        with pytest.raises(ConfigError, match="principal_per_year"):
            StreamState(PARTY, principal_per_year=-1)
        with pytest.raises(ConfigError, match="cumulative_claimed"):
            StreamState(PARTY, cumulative_claimed=Decimal("-0.5"))

    def test_immutable(self, state):
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.cumulative_claimed = Decimal("1")

    def test_accrued_recomputed_per_instant(self, state):
        assert state.accrued_at(T0) == 0
        assert state.accrued_at(T0 + timedelta(days=1)) == ONE_DAY
        assert state.accrued_at(T0 + timedelta(days=2)) > ONE_DAY

    def test_with_claim_returns_new_state(self, state):
        claimed = state.with_claim(Decimal("100"))
        assert claimed.cumulative_claimed == Decimal("100")
        assert state.cumulative_claimed == 0
        assert claimed.claimable_at(T0 + timedelta(days=1)) == ONE_DAY - 100

    def test_with_claim_rejects_non_positive(self, state):
        with pytest.raises(ValueError, match="positive"):
            state.with_claim(Decimal("0"))

    def test_with_onboarding_keeps_claim_history(self, state):
        claimed = state.with_claim(Decimal("100"))
        restarted = claimed.with_onboarding(Decimal("60000"), T0 + timedelta(days=1))
        assert restarted.principal_per_year == Decimal("60000")
        assert restarted.stream_started_at == T0 + timedelta(days=1)
        assert restarted.cumulative_claimed == Decimal("100")

    def test_claimable_floors_at_zero(self):
        state = StreamState(
            PARTY, principal_per_year=50000, stream_started_at=T0, cumulative_claimed=500
        )
        assert state.claimable_at(T0 + timedelta(days=1)) == 0


class TestAccrualSnapshot:
    """Derived view of a stream at one instant."""

    def test_snapshot_fields(self, state):
        now = T0 + timedelta(days=1)
        snap = state.with_claim(Decimal("36")).snapshot(now)

        assert snap.party == PARTY
        assert snap.as_of == now
        assert snap.total_accrued_to_date == ONE_DAY
        assert snap.cumulative_claimed == Decimal("36")
        assert snap.claimable == ONE_DAY - 36
        assert snap.rate_per_second == Decimal("0.001584404390701447")
        assert snap.active

    def test_inactive_snapshot(self):
        snap = StreamState.inactive(PARTY).snapshot(T0)
        assert not snap.active
        assert snap.claimable == 0
        assert snap.rate_per_second == 0

    def test_display_truncates(self, state):
        view = state.snapshot(T0 + timedelta(days=1)).display()
        assert view["claimable"] == "136.892"
        assert view["principal_per_year"] == "50000.000"
        assert view["active"] == "yes"

    def test_to_dict_is_json_friendly(self, state):
        data = state.snapshot(T0 + timedelta(days=1)).to_dict()
        assert data["claimable"] == "136.892539356605065023"
        assert data["as_of"] == "2026-01-02T00:00:00+00:00"
        assert data["active"] is True
