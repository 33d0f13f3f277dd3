"""Engine configuration and loading from YAML/JSON sources."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from .currency import Currency, get_currency, to_decimal
from .errors import ConfigError
from .utils import to_instant

__all__ = [
    "EngineConfig",
    "SimulationSeed",
    "load_config",
    "MODES",
]

MODES = ("live", "simulated")

# Demo employee shown by the simulated dashboard
DEFAULT_PARTY = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"


@dataclass(slots=True)
class SimulationSeed:
    """Starting point for a simulated session."""

    party: str = DEFAULT_PARTY
    principal_per_year: Decimal = Decimal("50000")
    started_seconds_ago: int = 86400
    started_at: datetime | None = None  # overrides started_seconds_ago

    def __post_init__(self):
        self.principal_per_year = _decimal(
            self.principal_per_year, "simulation.principal_per_year"
        )
        if self.principal_per_year < 0:
            raise ConfigError("simulation.principal_per_year must be >= 0")
        if int(self.started_seconds_ago) < 0:
            raise ConfigError("simulation.started_seconds_ago must be >= 0")
        self.started_seconds_ago = int(self.started_seconds_ago)
        if self.started_at is not None:
            self.started_at = to_instant(self.started_at)


@dataclass(slots=True)
class EngineConfig:
    """
    Runtime configuration for a PayStream engine.

    Attributes:
        currency: Payroll token symbol
        token_decimals: Fixed-point decimals the ledger uses for the token
        display_decimals: Decimals shown by dashboards
        tax_percent: Share of each claim withheld as tax (simulated claims)
        ledger_timeout: Seconds before a ledger call counts as unavailable
        default_mode: 'live' or 'simulated'
        simulation: Seed for simulated sessions
    """

    currency: str = "HLUSD"
    token_decimals: int = 18
    display_decimals: int = 3
    tax_percent: Decimal = Decimal("10")
    ledger_timeout: float = 10.0
    default_mode: str = "simulated"
    simulation: SimulationSeed = field(default_factory=SimulationSeed)

    def __post_init__(self):
        self.tax_percent = _decimal(self.tax_percent, "tax_percent")
        if not Decimal("0") <= self.tax_percent <= Decimal("100"):
            raise ConfigError(f"tax_percent must be within [0, 100], got {self.tax_percent}")
        if int(self.token_decimals) < 0 or int(self.display_decimals) < 0:
            raise ConfigError("token_decimals and display_decimals must be >= 0")
        if float(self.ledger_timeout) <= 0:
            raise ConfigError(f"ledger_timeout must be > 0, got {self.ledger_timeout}")
        self.ledger_timeout = float(self.ledger_timeout)
        self.default_mode = str(self.default_mode).lower()
        if self.default_mode not in MODES:
            raise ConfigError(
                f"default_mode must be one of {', '.join(MODES)}, got '{self.default_mode}'"
            )
        if isinstance(self.simulation, dict):
            self.simulation = _build(SimulationSeed, self.simulation, "simulation")

    def token(self) -> Currency:
        """Currency object carrying the configured token precision."""
        return get_currency(self.currency, int(self.token_decimals))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        data["tax_percent"] = str(self.tax_percent)
        data["simulation"]["principal_per_year"] = str(
            self.simulation.principal_per_year
        )
        if self.simulation.started_at is not None:
            data["simulation"]["started_at"] = self.simulation.started_at.isoformat()
        return data


def load_config(
    source: str | Path | dict[str, Any] | None = None, *, format: str | None = None
) -> EngineConfig:
    """Parse an engine configuration from YAML/JSON/dict; None gives defaults."""

    if source is None:
        return EngineConfig()
    mapping, label = _read_source(source, format=format)
    return _build(EngineConfig, mapping, label)


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise ConfigError(f"Unsupported config format '{fmt}' for {path}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top-level config must be a mapping")
    return data, str(path)


def _build(cls, mapping: dict[str, Any], label: str):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ConfigError(f"{label}: unknown keys {unknown}")
    try:
        return cls(**mapping)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{label}: {e}") from e


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return to_decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ConfigError(f"{name} must be a decimal number, got {value!r}") from e
