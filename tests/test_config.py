from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from paystream.core.config import DEFAULT_PARTY, EngineConfig, SimulationSeed, load_config
from paystream.core.currency import HLUSD
from paystream.core.errors import ConfigError

YAML_CONFIG = """
currency: HLUSD
tax_percent: 12.5
ledger_timeout: 2
default_mode: LIVE
simulation:
  party: "0xabc"
  principal_per_year: 80000
  started_at: 2026-01-01T00:00:00Z
"""


def test_defaults() -> None:
    config = load_config()

    assert config.currency == "HLUSD"
    assert config.tax_percent == Decimal("10")
    assert config.ledger_timeout == 10.0
    assert config.default_mode == "simulated"
    assert config.simulation.party == DEFAULT_PARTY
    assert config.simulation.principal_per_year == Decimal("50000")
    assert config.simulation.started_seconds_ago == 86400
    assert config.token() is HLUSD


def test_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(YAML_CONFIG, encoding="utf-8")

    config = load_config(path)

    assert config.tax_percent == Decimal("12.5")
    assert config.ledger_timeout == 2.0
    assert config.default_mode == "live"
    assert isinstance(config.simulation, SimulationSeed)
    assert config.simulation.party == "0xabc"
    assert config.simulation.principal_per_year == Decimal("80000")
    assert config.simulation.started_at == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_load_json(tmp_path: Path) -> None:
    path = tmp_path / "engine.json"
    path.write_text(
        json.dumps({"token_decimals": 6, "simulation": {"started_seconds_ago": 60}}),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.token().decimals == 6
    assert config.simulation.started_seconds_ago == 60


def test_load_mapping_is_not_mutated() -> None:
    mapping = {"simulation": {"principal_per_year": "1000"}}
    config = load_config(mapping)

    assert config.simulation.principal_per_year == Decimal("1000")
    assert mapping == {"simulation": {"principal_per_year": "1000"}}


def test_empty_yaml_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == EngineConfig()


@pytest.mark.parametrize(
    "mapping, message",
    [
        ({"tax": 10}, "unknown keys"),
        ({"simulation": {"salary": 1}}, "unknown keys"),
        ({"tax_percent": 150}, "tax_percent"),
        ({"tax_percent": "ten"}, "decimal number"),
        ({"ledger_timeout": 0}, "ledger_timeout"),
        ({"default_mode": "paper"}, "default_mode"),
        ({"simulation": {"principal_per_year": -1}}, "principal_per_year"),
        ({"simulation": {"started_seconds_ago": -1}}, "started_seconds_ago"),
    ],
)
def test_invalid_config(mapping, message) -> None:
    with pytest.raises(ConfigError, match=message):
        load_config(mapping)


def test_unsupported_format(tmp_path: Path) -> None:
    path = tmp_path / "engine.toml"
    path.write_text("tax_percent = 10", encoding="utf-8")
    with pytest.raises(ConfigError, match="Unsupported config format"):
        load_config(path)


def test_non_mapping_rejected(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_to_dict_is_json_serializable() -> None:
    data = load_config({"simulation": {"started_at": "2026-01-01"}}).to_dict()
    encoded = json.loads(json.dumps(data))

    assert encoded["tax_percent"] == "10"
    assert encoded["simulation"]["principal_per_year"] == "50000"
    assert encoded["simulation"]["started_at"] == "2026-01-01T00:00:00+00:00"


def test_example_config_loads() -> None:
    path = Path(__file__).resolve().parents[1] / "examples" / "engine.yaml"
    assert load_config(path) == EngineConfig()
