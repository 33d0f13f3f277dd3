"""
Settlement operations for salary streams.

These are pure functions of ``(state, now)``: they compute what is claimable,
validate a claim request, and return new states and feed records. They never
touch the ledger and hold no locks; :mod:`paystream.core.modes` serializes
them per party and talks to the ledger.
"""

from __future__ import annotations

import warnings
from datetime import datetime
from decimal import Decimal

from .currency import HLUSD, MONEY, Currency, to_decimal
from .events import TransactionKind, TransactionRecord, record_id, synthesize_reference
from .exceptions import InsufficientBalance, NotOnboarded
from .ledger import ClaimReceipt
from .state import StreamState
from .utils import to_instant

ALL = "all"

_HUNDRED = Decimal("100")


def current_claimable(
    state: StreamState, now: datetime, currency: Currency = HLUSD
) -> Decimal:
    """
    Claimable balance at ``now``.

    Safe to call at any frequency: it reads nothing but its arguments, so
    repeated calls with the same ``(state, now)`` return the same value.
    """
    return state.claimable_at(now, currency)


def settle_amount(
    state: StreamState,
    requested: Decimal | int | str | None,
    now: datetime,
    *,
    ledger_backed: bool = False,
    currency: Currency = HLUSD,
) -> Decimal:
    """
    Validate a claim request and return the amount that will be settled.

    Args:
        state: Current stream state
        requested: ``"all"`` (or None) for everything claimable, else an amount
        now: Instant the claim is evaluated at
        ledger_backed: Whether the authoritative ledger settles the claim; the
            ledger only supports claiming everything, so a custom amount is
            ignored in that case
        currency: Token whose precision amounts are truncated to

    Returns:
        The amount to settle, > 0

    Raises:
        NotOnboarded: If the party has no active stream
        InsufficientBalance: If nothing is claimable, or a custom amount is
            not positive or exceeds the claimable balance
    """
    if not state.active:
        raise NotOnboarded("No active stream", party=state.party)

    claimable = current_claimable(state, now, currency)
    claim_all = requested is None or (isinstance(requested, str) and requested == ALL)

    if claim_all or ledger_backed:
        if claimable <= 0:
            raise InsufficientBalance(
                "No amount available to claim",
                requested=None,
                claimable=claimable,
                party=state.party,
            )
        if not claim_all:
            warnings.warn(
                "The ledger only settles the full claimable balance; "
                f"ignoring requested amount {requested}",
                stacklevel=3,
            )
        return claimable

    amount = currency.quantize(to_decimal(requested))
    if amount <= 0:
        raise InsufficientBalance(
            f"Claim amount must be positive, got {amount}",
            requested=amount,
            claimable=claimable,
            party=state.party,
        )
    if amount > claimable:
        raise InsufficientBalance(
            f"Amount exceeds available balance ({claimable})",
            requested=amount,
            claimable=claimable,
            party=state.party,
        )
    return amount


def withholding(
    amount: Decimal, tax_percent: Decimal | int | str, currency: Currency = HLUSD
) -> Decimal:
    """Tax withheld on a gross claim of ``amount``."""
    rate = MONEY.divide(to_decimal(tax_percent), _HUNDRED)
    return currency.quantize(MONEY.multiply(amount, rate))


def claim(
    state: StreamState,
    requested: Decimal | int | str | None,
    now: datetime,
    *,
    tax_percent: Decimal | int | str = 0,
    sequence: int = 0,
    currency: Currency = HLUSD,
) -> tuple[StreamState, TransactionRecord]:
    """
    Settle a claim locally, without a ledger.

    Returns:
        The new state (cumulative claimed grown by the settled amount) and the
        Claimed record to put at the head of the feed
    """
    now = to_instant(now)
    amount = settle_amount(state, requested, now, currency=currency)
    reference = synthesize_reference(state.party, TransactionKind.CLAIMED, now, sequence)
    record = TransactionRecord(
        id=record_id(TransactionKind.CLAIMED, reference),
        kind=TransactionKind.CLAIMED,
        party=state.party,
        amount=amount,
        occurred_at=now,
        reference=reference,
        tax_withheld=withholding(amount, tax_percent, currency),
    )
    return state.with_claim(amount), record


def apply_receipt(
    state: StreamState, receipt: ClaimReceipt
) -> tuple[StreamState, TransactionRecord]:
    """
    Apply a confirmed ledger claim.

    The ledger's settled amount is authoritative; it can differ slightly from
    the locally computed claimable because the ledger evaluates accrual at
    block time.
    """
    record = TransactionRecord(
        id=record_id(TransactionKind.CLAIMED, receipt.reference),
        kind=TransactionKind.CLAIMED,
        party=state.party,
        amount=receipt.settled_amount,
        occurred_at=to_instant(receipt.confirmed_at),
        reference=receipt.reference,
        tax_withheld=receipt.tax_withheld,
    )
    return state.with_claim(receipt.settled_amount), record


def onboard(
    state: StreamState, principal_per_year: Decimal | int | str, start: datetime
) -> StreamState:
    """
    Start (or restart) a stream.

    Sets the principal and start instant and keeps ``cumulative_claimed``,
    so re-onboarding never loses claim history.
    """
    return state.with_onboarding(to_decimal(principal_per_year), to_instant(start))


def onboarding_record(
    state: StreamState, *, sequence: int = 0, reference: str | None = None
) -> TransactionRecord:
    """Onboarded feed record for an active state."""
    if state.stream_started_at is None:
        raise NotOnboarded("Stream has no start instant", party=state.party)
    if reference is None:
        reference = synthesize_reference(
            state.party, TransactionKind.ONBOARDED, state.stream_started_at, sequence
        )
    return TransactionRecord(
        id=record_id(TransactionKind.ONBOARDED, reference),
        kind=TransactionKind.ONBOARDED,
        party=state.party,
        amount=state.principal_per_year,
        occurred_at=state.stream_started_at,
        reference=reference,
    )
