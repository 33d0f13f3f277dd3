"""
Core module for PayStream.

This module contains the accrual and settlement engine: the rate model, stream
state, transaction feed, settlement operations, ledger contract and modes.
"""

from .config import EngineConfig, SimulationSeed, load_config
from .currency import HLUSD, Currency, RoundingPolicy, from_base_units, to_base_units
from .engine import PayStreamEngine
from .errors import ConfigError
from .events import TransactionKind, TransactionRecord
from .exceptions import (
    AmbiguousClaimOutcome,
    InsufficientBalance,
    LedgerError,
    ModeError,
    NotOnboarded,
    PayStreamError,
    RevertReason,
    SourceUnavailable,
)
from .feed import TransactionFeed
from .ledger import ClaimReceipt, LedgerAdapter, LedgerEvent, StreamInfo
from .modes import Mode, ModeController, StreamSession
from .rate import SECONDS_PER_YEAR, accrued, accrued_between, rate_per_second
from .settlement import ALL, claim, current_claimable, onboard, settle_amount
from .state import AccrualSnapshot, StreamState
from .utils import to_instant, utc_now

__all__ = [
    # Errors
    "ConfigError",
    "PayStreamError",
    "InsufficientBalance",
    "SourceUnavailable",
    "NotOnboarded",
    "AmbiguousClaimOutcome",
    "ModeError",
    "LedgerError",
    "RevertReason",
    # Config
    "EngineConfig",
    "SimulationSeed",
    "load_config",
    # Currency
    "Currency",
    "RoundingPolicy",
    "HLUSD",
    "from_base_units",
    "to_base_units",
    # Rate model
    "SECONDS_PER_YEAR",
    "accrued",
    "accrued_between",
    "rate_per_second",
    # State and feed
    "StreamState",
    "AccrualSnapshot",
    "TransactionKind",
    "TransactionRecord",
    "TransactionFeed",
    # Settlement
    "ALL",
    "current_claimable",
    "settle_amount",
    "claim",
    "onboard",
    # Ledger contract
    "LedgerAdapter",
    "StreamInfo",
    "ClaimReceipt",
    "LedgerEvent",
    # Modes and engine
    "Mode",
    "ModeController",
    "StreamSession",
    "PayStreamEngine",
    # Utils
    "to_instant",
    "utc_now",
]
