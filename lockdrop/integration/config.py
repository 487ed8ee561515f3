"""
Configuration for a lockdrop deployment.

`load_config(path)` reads a YAML document of the form::

    program:
      admin: admin
      reward_asset: RWD
      program_end: 2027-01-01        # YAML date (UTC midnight) or integer clock value
      fund_amount: 1000000
      annual_yield_rate: 1
      reward_period_days: 30
      withdrawal_delay_days: 7
      lock_policy:                   # optional, defaults to the reference bands
        - {min_days: 1, max_days: 60}
        - {min_days: 61, max_days: 90, cap: 1000000}
    engine:
      max_event_log: 100000
    genesis:                         # optional, used by the replay tool
      balances:
        - {owner: alice, asset: POOL, amount: 5000}
      allowances:
        - {owner: alice, spender: lockdrop.custody, asset: POOL, amount: 5000}

Unknown keys are rejected (fail-closed).
"""

from __future__ import annotations

import datetime as _dt
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from ..core.staking.math import DAY, REWARD_PERIOD_DEFAULT, WITHDRAWAL_DELAY_DEFAULT
from ..core.staking.policy import DEFAULT_LOCK_POLICY, policy_from_bands
from ..core.staking.types import ProgramParams


CONFIG_ENV_VAR = "LOCKDROP_CONFIG"

_PROGRAM_KEYS = {
    "admin",
    "custody",
    "reward_asset",
    "program_end",
    "fund_amount",
    "annual_yield_rate",
    "reward_period_days",
    "withdrawal_delay_days",
    "reward_period",
    "withdrawal_delay",
    "lock_policy",
}
_ENGINE_KEYS = {"max_event_log"}
_GENESIS_KEYS = {"balances", "allowances"}


@dataclass(frozen=True)
class GenesisBalance:
    owner: str
    asset: str
    amount: int


@dataclass(frozen=True)
class GenesisAllowance:
    owner: str
    spender: str
    asset: str
    amount: int


@dataclass(frozen=True)
class EngineConfig:
    program: ProgramParams
    # Oldest events are dropped once the in-memory log reaches this size.
    max_event_log: int = 100_000
    genesis_balances: Tuple[GenesisBalance, ...] = ()
    genesis_allowances: Tuple[GenesisAllowance, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.max_event_log, int) or isinstance(self.max_event_log, bool) or self.max_event_log <= 0:
            raise ValueError("max_event_log must be a positive int")


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def default_config_path() -> Optional[Path]:
    """Path from `LOCKDROP_CONFIG`, if set."""
    raw = _env_str(CONFIG_ENV_VAR, "")
    return Path(raw) if raw else None


def _require_mapping(value: Any, *, name: str, allowed: set[str]) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ValueError(f"{name} has unknown keys: {sorted(unknown)}")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _to_clock(value: Any, *, name: str) -> int:
    """Integer clock values pass through; dates/datetimes become UTC epoch seconds."""
    if isinstance(value, _dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=_dt.timezone.utc)
        return int(value.timestamp())
    if isinstance(value, _dt.date):
        return int(_dt.datetime(value.year, value.month, value.day, tzinfo=_dt.timezone.utc).timestamp())
    return _require_int(value, name=name)


def _duration(section: Mapping[str, Any], key: str, default: int) -> int:
    """Accept `<key>` in clock units or `<key>_days` in days, not both."""
    days_key = f"{key}_days"
    if key in section and days_key in section:
        raise ValueError(f"program: set only one of {key!r} and {days_key!r}")
    if days_key in section:
        return _require_int(section[days_key], name=days_key) * DAY
    if key in section:
        return _require_int(section[key], name=key)
    return default


def program_from_mapping(section: Mapping[str, Any]) -> ProgramParams:
    section = _require_mapping(section, name="program", allowed=_PROGRAM_KEYS)
    for key in ("admin", "reward_asset", "program_end", "fund_amount", "annual_yield_rate"):
        if key not in section:
            raise ValueError(f"program.{key} is required")

    bands = section.get("lock_policy")
    policy = DEFAULT_LOCK_POLICY if bands is None else policy_from_bands(bands)

    kwargs: dict[str, Any] = {}
    if "custody" in section:
        kwargs["custody"] = section["custody"]
    return ProgramParams(
        admin=section["admin"],
        reward_asset=section["reward_asset"],
        program_end=_to_clock(section["program_end"], name="program_end"),
        fund_amount=_require_int(section["fund_amount"], name="fund_amount"),
        annual_yield_rate=_require_int(section["annual_yield_rate"], name="annual_yield_rate"),
        reward_period=_duration(section, "reward_period", REWARD_PERIOD_DEFAULT),
        withdrawal_delay=_duration(section, "withdrawal_delay", WITHDRAWAL_DELAY_DEFAULT),
        lock_policy=policy,
        **kwargs,
    )


def _genesis_entries(genesis: Mapping[str, Any], key: str, fields: tuple[str, ...]) -> list[tuple[str, Mapping[str, Any]]]:
    entries = genesis.get(key) or []
    if not isinstance(entries, list):
        raise TypeError(f"genesis.{key} must be a list")
    out = []
    for i, raw in enumerate(entries):
        name = f"genesis.{key}[{i}]"
        e = _require_mapping(raw, name=name, allowed=set(fields))
        missing = [f for f in fields if f not in e]
        if missing:
            raise ValueError(f"{name} missing {missing}")
        out.append((name, e))
    return out


def config_from_mapping(doc: Mapping[str, Any]) -> EngineConfig:
    doc = _require_mapping(doc, name="config", allowed={"program", "engine", "genesis"})
    if "program" not in doc:
        raise ValueError("config.program is required")
    program = program_from_mapping(doc["program"])
    engine = _require_mapping(doc.get("engine"), name="engine", allowed=_ENGINE_KEYS)
    genesis = _require_mapping(doc.get("genesis"), name="genesis", allowed=_GENESIS_KEYS)

    balances = tuple(
        GenesisBalance(owner=str(e["owner"]), asset=str(e["asset"]), amount=_require_int(e["amount"], name=f"{name}.amount"))
        for name, e in _genesis_entries(genesis, "balances", ("owner", "asset", "amount"))
    )
    allowances = tuple(
        GenesisAllowance(
            owner=str(e["owner"]),
            spender=str(e["spender"]),
            asset=str(e["asset"]),
            amount=_require_int(e["amount"], name=f"{name}.amount"),
        )
        for name, e in _genesis_entries(genesis, "allowances", ("owner", "spender", "asset", "amount"))
    )

    kwargs: dict[str, Any] = {}
    if "max_event_log" in engine:
        kwargs["max_event_log"] = _require_int(engine["max_event_log"], name="max_event_log")
    return EngineConfig(program=program, genesis_balances=balances, genesis_allowances=allowances, **kwargs)


def load_config(path: Path) -> EngineConfig:
    doc = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if doc is None:
        raise ValueError(f"empty config: {path}")
    return config_from_mapping(doc)
