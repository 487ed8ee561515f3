"""
Staking state snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / snapshot distribution.
- Round-trippable into the functional-core `StakingState`.
- Explicit versioning.
- Fail-closed restore: a snapshot that decodes to a state violating any
  invariant is rejected.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from ..core.staking.errors import InvariantViolation
from ..core.staking.invariants import check_all
from ..core.staking.state import state_from_dict, state_to_dict
from ..core.staking.types import StakingState
from .canonical import bounded_json_size, canonical_json_bytes, domain_sep_bytes, sha256_hex


STAKING_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class StakingSnapshot:
    """
    Deterministic, versioned snapshot of `StakingState`.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("staking_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("staking_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_state(state: StakingState, *, version: int = STAKING_SNAPSHOT_VERSION) -> StakingSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    data: Dict[str, Any] = {"version": int(version), **state_to_dict(state)}
    return StakingSnapshot(version=version, data=data)


def state_from_snapshot(snapshot: Mapping[str, Any], *, max_snapshot_bytes: int = 4_000_000) -> StakingState:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    if not isinstance(max_snapshot_bytes, int) or isinstance(max_snapshot_bytes, bool) or max_snapshot_bytes <= 0:
        raise ValueError("max_snapshot_bytes must be a positive int")

    try:
        bounded_json_size(dict(snapshot), max_bytes=max_snapshot_bytes)
    except ValueError as exc:
        raise ValueError("snapshot too large") from exc

    version = snapshot.get("version", STAKING_SNAPSHOT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != STAKING_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    state = state_from_dict(snapshot)
    violations = check_all(state)
    if violations:
        raise InvariantViolation(violations)
    return state


def write_snapshot(state: StakingState, path: Path) -> str:
    """Write a pretty-printed snapshot to `path`; returns its commitment."""
    snap = snapshot_from_state(state)
    path.write_text(json.dumps(snap.data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return snap.commitment_hex()


def read_snapshot(path: Path, *, max_snapshot_bytes: int = 4_000_000) -> StakingState:
    # Pretty-printed files carry whitespace the canonical form drops.
    if path.stat().st_size > 4 * max_snapshot_bytes:
        raise ValueError("snapshot too large")
    data = json.loads(path.read_text(encoding="utf-8"))
    return state_from_snapshot(data, max_snapshot_bytes=max_snapshot_bytes)
