"""
Settlement exceptions for PayStream.

Every failure the engine reports to its caller is one of these kinds. None of
them is fatal to the process; the display layer decides whether to re-offer a
corrected amount, retry a resync, or wait for reconciliation.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class PayStreamError(Exception):
    """Base class for all recoverable engine failures."""

    def __init__(self, message: str, party: str | None = None):
        self.party = party
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Prefix the message with the party when known."""
        if self.party:
            return f"[{self.party}] {msg}"
        return msg


class InsufficientBalance(PayStreamError):
    """
    Raised when a claim exceeds what is currently claimable.

    Attributes:
        requested: The amount the caller asked for (None for "claim all")
        claimable: The claimable balance at the instant of the request
    """

    def __init__(
        self,
        message: str,
        requested: Decimal | None = None,
        claimable: Decimal = Decimal("0"),
        party: str | None = None,
    ):
        self.requested = requested
        self.claimable = claimable
        super().__init__(message, party=party)


class SourceUnavailable(PayStreamError):
    """Raised when the ledger cannot be reached, times out, or the session is stale."""


class NotOnboarded(PayStreamError):
    """Raised when claiming against a party without an active stream."""


class AmbiguousClaimOutcome(PayStreamError):
    """
    Raised when a claim was submitted but its confirmation is unknown.

    The claim must not be retried; the next successful resync reconciles
    cumulative claims against the ledger.

    Attributes:
        reference: Transaction reference when the ledger returned one
    """

    def __init__(
        self, message: str, reference: str | None = None, party: str | None = None
    ):
        self.reference = reference
        super().__init__(message, party=party)


class ModeError(PayStreamError):
    """Raised when an operation is not available in the current mode."""


class RevertReason(str, Enum):
    """Contract-level refusals a ledger can answer a claim with."""

    NOT_ONBOARDED = "not_onboarded"
    NOTHING_TO_CLAIM = "nothing_to_claim"


class LedgerError(Exception):
    """
    Raised by ledger adapters for faults while talking to the ledger.

    A fault with ``revert`` set is a definite answer from the ledger and the
    engine reports it as NotOnboarded or InsufficientBalance. Other faults
    become SourceUnavailable on reads. On claim submission only a fault that
    is known to have never been sent is SourceUnavailable; anything else is
    AmbiguousClaimOutcome.

    Attributes:
        sent: Whether the request may have reached the ledger
        revert: Why the ledger refused the request, if it did
    """

    def __init__(
        self, message: str, sent: bool = False, revert: RevertReason | None = None
    ):
        self.sent = sent
        self.revert = revert
        super().__init__(message)
