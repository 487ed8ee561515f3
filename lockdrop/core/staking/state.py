"""State construction and serialization for the staking engine.

`initial_state(program)` returns the canonical empty state for a program.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s` for all
valid states. Per-participant tables serialize as lists sorted by participant
so the encoding is deterministic.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .ledger import PointLedger
from .policy import policy_from_bands, policy_to_bands
from .types import ClaimRecord, ProgramParams, ReleaseRecord, Stake, StakingState

_PROGRAM_INT_FIELDS = (
    "program_end",
    "fund_amount",
    "annual_yield_rate",
    "reward_period",
    "withdrawal_delay",
)
_STAKE_FIELDS = ("amount", "lock_days", "start_time", "expected_points")
_CLAIM_FIELDS = ("points", "share", "claimed_at")
_RELEASE_FIELDS = ("reward_amount", "last_claimed_time", "released_total")


def initial_state(program: ProgramParams) -> StakingState:
    """Return the empty state for `program` (nothing configured, nothing staked)."""
    return StakingState(program=program)


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)  # normalize int subclasses


def _require_opt_str(value: Any, *, name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string or null")
    return value


def program_to_dict(program: ProgramParams) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "admin": program.admin,
        "custody": program.custody,
        "reward_asset": program.reward_asset,
        "lock_policy": policy_to_bands(program.lock_policy),
    }
    for name in _PROGRAM_INT_FIELDS:
        out[name] = getattr(program, name)
    return out


def program_from_dict(d: Mapping[str, Any]) -> ProgramParams:
    return ProgramParams(
        admin=d["admin"],
        custody=d["custody"],
        reward_asset=d["reward_asset"],
        lock_policy=policy_from_bands(d["lock_policy"]),
        **{name: _require_int(d[name], name=name) for name in _PROGRAM_INT_FIELDS},
    )


def _rows(table: Mapping[str, Any], fields: tuple[str, ...]) -> List[Dict[str, Any]]:
    return [
        {"participant": p, **{f: getattr(table[p], f) for f in fields}}
        for p in sorted(table)
    ]


def _table(rows: Any, fields: tuple[str, ...], cls: type, *, name: str) -> Dict[str, Any]:
    if not isinstance(rows, list):
        raise TypeError(f"{name} must be a list")
    out: Dict[str, Any] = {}
    for i, row in enumerate(rows):
        participant = row["participant"]
        if not isinstance(participant, str):
            raise TypeError(f"{name}[{i}].participant must be a string")
        if participant in out:
            raise ValueError(f"duplicate participant in {name}: {participant!r}")
        out[participant] = cls(**{f: _require_int(row[f], name=f"{name}[{i}].{f}") for f in fields})
    return out


def state_to_dict(state: StakingState) -> Dict[str, Any]:
    """Serialize a StakingState to a plain JSON-compatible dict."""
    return {
        "program": program_to_dict(state.program),
        "now": state.now,
        "pool_asset": state.pool_asset,
        "fund_source": state.fund_source,
        "total_points": state.ledger.total,
        "claimed_points": state.ledger.claimed,
        "points": [
            {"participant": p, "points": state.ledger.balances[p]}
            for p in sorted(state.ledger.balances)
        ],
        "stakes": _rows(state.stakes, _STAKE_FIELDS),
        "claims": _rows(state.claims, _CLAIM_FIELDS),
        "releases": _rows(state.releases, _RELEASE_FIELDS),
        "total_locked": state.total_locked,
        "reward_fund_balance": state.reward_fund_balance,
    }


def state_from_dict(d: Mapping[str, Any]) -> StakingState:
    """Deserialize a dict to a StakingState. Raises KeyError on missing fields."""
    balances: Dict[str, int] = {}
    for i, row in enumerate(d["points"]):
        participant = row["participant"]
        if not isinstance(participant, str):
            raise TypeError(f"points[{i}].participant must be a string")
        value = _require_int(row["points"], name=f"points[{i}].points")
        if value:
            balances[participant] = value

    ledger = PointLedger(
        total=_require_int(d["total_points"], name="total_points"),
        claimed=_require_int(d["claimed_points"], name="claimed_points"),
        balances=balances,
    )
    return StakingState(
        program=program_from_dict(d["program"]),
        now=_require_int(d["now"], name="now"),
        pool_asset=_require_opt_str(d["pool_asset"], name="pool_asset"),
        fund_source=_require_opt_str(d["fund_source"], name="fund_source"),
        ledger=ledger,
        stakes=_table(d["stakes"], _STAKE_FIELDS, Stake, name="stakes"),
        claims=_table(d["claims"], _CLAIM_FIELDS, ClaimRecord, name="claims"),
        releases=_table(d["releases"], _RELEASE_FIELDS, ReleaseRecord, name="releases"),
        total_locked=_require_int(d["total_locked"], name="total_locked"),
        reward_fund_balance=_require_int(d["reward_fund_balance"], name="reward_fund_balance"),
    )
