"""
PayStream - Continuous Salary Streaming on a Discrete Ledger

PayStream models salaries that stream every second, proportional to an annual
rate, on top of a ledger that only records discrete events (onboarding and
claims). The engine reconciles the continuous accrual model with the ledger's
facts and keeps displayed balances, transaction history and withdrawal limits
consistent, in a Live mode backed by the ledger and a Simulated mode that only
holds local state.

Key Features:
- **Exact Accrual**: Decimal arithmetic, truncated to token precision
- **Pull Model**: No timers or subscriptions; state changes only on request
- **Two Modes**: Live and Simulated sessions never share state
- **Stale-Safe**: A failed resync keeps serving the last good snapshot
- **Ambiguity-Aware**: Unconfirmed claims block retries until reconciled

Architecture Overview:
- **Rate Model**: accrued amount from annual principal and elapsed seconds
- **StreamState**: immutable per-party record, replaced on every settlement
- **TransactionFeed**: newest-first event log, rebuilt from the ledger in Live mode
- **Settlement**: pure claim/onboard operations over states
- **ModeController / StreamSession**: per-mode sessions behind a lock
- **PayStreamEngine**: display-facing facade, ledger calls bounded by a timeout

Quick Start:
    ```python
    from paystream import PayStreamEngine

    with PayStreamEngine() as engine:          # simulated: 50k/year, started 1 day ago
        print(engine.get_snapshot().claimable)  # ~136.89
        record = engine.request_claim("all")
        print(record.amount, record.tax_withheld)
    ```

Live mode with a ledger adapter:
    ```python
    from paystream import PayStreamEngine
    from paystream.adapters import InMemoryLedger

    ledger = InMemoryLedger(tax_percent=10)
    ledger.onboard_employee("0xabc", 60000)
    engine = PayStreamEngine(ledger, party="0xabc", mode="live")
    engine.resync()
    ```
"""

# Version information
__version__ = "0.1.0"
__author__ = "PayStream Team"
__description__ = "Continuous salary streaming on a discrete ledger"

from .analytics import (
    accrual_curve,
    claims_by_day,
    effective_tax_rate,
    export_feed_csv,
    feed_frame,
    payroll_stats,
    salary_projection,
    total_claimed,
    total_tax_withheld,
)
from .core import (
    ALL,
    HLUSD,
    SECONDS_PER_YEAR,
    AccrualSnapshot,
    AmbiguousClaimOutcome,
    ClaimReceipt,
    ConfigError,
    EngineConfig,
    InsufficientBalance,
    LedgerAdapter,
    LedgerError,
    LedgerEvent,
    Mode,
    ModeError,
    NotOnboarded,
    PayStreamEngine,
    PayStreamError,
    RevertReason,
    SimulationSeed,
    SourceUnavailable,
    StreamInfo,
    StreamState,
    TransactionFeed,
    TransactionKind,
    TransactionRecord,
    accrued,
    load_config,
    rate_per_second,
)

# Define what gets imported with "from paystream import *"
__all__ = [
    # Engine
    "PayStreamEngine",
    "Mode",
    "EngineConfig",
    "SimulationSeed",
    "load_config",
    # Model
    "StreamState",
    "AccrualSnapshot",
    "TransactionKind",
    "TransactionRecord",
    "TransactionFeed",
    "accrued",
    "rate_per_second",
    "SECONDS_PER_YEAR",
    "HLUSD",
    "ALL",
    # Ledger contract
    "LedgerAdapter",
    "StreamInfo",
    "ClaimReceipt",
    "LedgerEvent",
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
    # Analytics
    "feed_frame",
    "total_claimed",
    "total_tax_withheld",
    "effective_tax_rate",
    "claims_by_day",
    "salary_projection",
    "accrual_curve",
    "payroll_stats",
    "export_feed_csv",
    # Version info
    "__version__",
    "__author__",
    "__description__",
]
