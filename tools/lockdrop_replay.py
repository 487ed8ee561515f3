#!/usr/bin/env python3
"""
Replay a scripted sequence of lockdrop operations against an in-memory bank.

Input:
  - a YAML deployment config (see `lockdrop.integration.config`), whose
    `genesis` section seeds the bank,
  - a JSONL file, one operation per line::

      {"op": "configure", "sender": "admin", "time": 0, "asset": "POOL"}
      {"op": "approve", "owner": "alice", "asset": "POOL", "amount": 1000, "time": 0}
      {"op": "lock", "sender": "alice", "time": 10, "amount": 1000, "lock_days": 30}
      {"op": "unlock", "sender": "alice", "time": 2592010}
      {"op": "claim", "sender": "alice", "time": 31536001}
      {"op": "release", "sender": "alice", "time": 34560001}

    `time` is the logical clock value the operation runs at. `approve` and
    `mint` act on the bank directly; `approve` defaults the spender to the
    engine custody account.

Output: one line per accepted event (and per rejection with --keep-going),
then the snapshot commitment of the final state.

Exit codes: 0 all operations accepted (or --keep-going), 1 an operation was
rejected, 2 unreadable input.

Example:
  python3 tools/lockdrop_replay.py --config lockdrop.yaml ops.jsonl
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lockdrop.core.staking.errors import StakingError
from lockdrop.core.staking.types import Effect
from lockdrop.integration.config import EngineConfig, default_config_path, load_config
from lockdrop.integration.engine import StakingEngine, bank_from_config
from lockdrop.integration.transfer import AssetBank, AssetTransferError
from lockdrop.state.snapshot import write_snapshot


logger = logging.getLogger("lockdrop.replay")

_OP_FIELDS = {
    "configure": {"sender", "asset", "fund_source"},
    "lock": {"sender", "amount", "lock_days"},
    "unlock": {"sender"},
    "claim": {"sender"},
    "release": {"sender"},
    "mint": {"owner", "asset", "amount"},
    "approve": {"owner", "spender", "asset", "amount"},
}
_OP_REQUIRED = {
    "configure": {"sender", "asset"},
    "lock": {"sender", "amount", "lock_days"},
    "unlock": {"sender"},
    "claim": {"sender"},
    "release": {"sender"},
    "mint": {"owner", "asset", "amount"},
    "approve": {"owner", "asset", "amount"},
}


class ReplayInputError(Exception):
    pass


class _ScriptedClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


@dataclass
class ReplayResult:
    engine: StakingEngine
    bank: AssetBank
    lines: List[str] = field(default_factory=list)
    rejected: int = 0


def parse_ops(lines: Iterable[str]) -> List[dict[str, Any]]:
    """Parse JSONL operations, skipping blank lines and `#` comments."""
    ops: List[dict[str, Any]] = []
    for lineno, raw in enumerate(lines, start=1):
        text = raw.strip()
        if not text or text.startswith("#"):
            continue
        try:
            op = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ReplayInputError(f"line {lineno}: {exc}") from exc
        if not isinstance(op, dict):
            raise ReplayInputError(f"line {lineno}: operation must be a JSON object")
        kind = op.get("op")
        if kind not in _OP_FIELDS:
            raise ReplayInputError(f"line {lineno}: unknown op {kind!r}")
        unknown = set(op) - _OP_FIELDS[kind] - {"op", "time"}
        if unknown:
            raise ReplayInputError(f"line {lineno}: unknown fields {sorted(unknown)}")
        missing = _OP_REQUIRED[kind] - set(op)
        if missing:
            raise ReplayInputError(f"line {lineno}: missing fields {sorted(missing)}")
        t = op.get("time", 0)
        if not isinstance(t, int) or isinstance(t, bool) or t < 0:
            raise ReplayInputError(f"line {lineno}: time must be a non-negative int")
        op["_line"] = lineno
        ops.append(op)
    return ops


def format_effect(effect: Effect) -> str:
    parts = [f"t={effect.time}", effect.event.value, effect.participant]
    for name in ("amount", "lock_days", "points", "elapsed", "share", "released_total"):
        value = getattr(effect, name)
        if value:
            parts.append(f"{name}={value}")
    return " ".join(parts)


def _apply(engine: StakingEngine, bank: AssetBank, op: dict[str, Any]) -> Optional[Effect]:
    kind = op["op"]
    if kind == "configure":
        return engine.configure_pool_asset(op["sender"], op["asset"], op.get("fund_source", ""))
    if kind == "lock":
        return engine.lock_tokens(op["sender"], op["amount"], op["lock_days"])
    if kind == "unlock":
        return engine.unlock_tokens(op["sender"])
    if kind == "claim":
        return engine.claim_distribution(op["sender"])
    if kind == "release":
        return engine.release(op["sender"])
    if kind == "mint":
        bank.mint(op["asset"], op["owner"], op["amount"])
        return None
    # approve
    bank.approve(op["asset"], op["owner"], op.get("spender", engine.program.custody), op["amount"])
    return None


def replay(config: EngineConfig, ops: Iterable[dict[str, Any]], *, keep_going: bool = False) -> ReplayResult:
    """Run `ops` in order against a fresh engine; stops at the first rejection unless `keep_going`."""
    bank = bank_from_config(config)
    clock = _ScriptedClock()
    result = ReplayResult(engine=StakingEngine(config, bank=bank, clock=clock), bank=bank)

    for op in ops:
        clock.now = op.get("time", 0)
        try:
            effect = _apply(result.engine, bank, op)
        except (StakingError, AssetTransferError) as exc:
            code = exc.code if isinstance(exc, StakingError) else "bank"
            result.rejected += 1
            result.lines.append(f"t={clock.now} REJECTED line={op['_line']} op={op['op']} code={code} {exc}")
            logger.warning("line %d: %s rejected: %s", op["_line"], op["op"], exc)
            if not keep_going:
                break
            continue
        if effect is not None:
            result.lines.append(format_effect(effect))
    return result


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay JSONL lockdrop operations and print the resulting events.")
    p.add_argument("ops", type=Path, help="Path to a JSONL file of operations")
    p.add_argument("--config", type=Path, default=None, help="Path to YAML config (default: $LOCKDROP_CONFIG)")
    p.add_argument("--keep-going", action="store_true", help="Report rejections and continue instead of stopping")
    p.add_argument("--snapshot-out", type=Path, default=None, help="Write the final state snapshot JSON here")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = p.parse_args(argv)

    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")

    config_path = args.config or default_config_path()
    if config_path is None:
        print("lockdrop_replay error: no --config given and LOCKDROP_CONFIG is unset", file=sys.stderr)
        return 2

    try:
        config = load_config(config_path)
        ops = parse_ops(args.ops.read_text(encoding="utf-8").splitlines())
    except (OSError, yaml.YAMLError, ReplayInputError, TypeError, ValueError, KeyError) as exc:
        print(f"lockdrop_replay error: {exc}", file=sys.stderr)
        return 2

    result = replay(config, ops, keep_going=bool(args.keep_going))
    for line in result.lines:
        print(line)

    state = result.engine.state
    if args.snapshot_out is not None:
        commitment = write_snapshot(state, args.snapshot_out)
    else:
        commitment = result.engine.snapshot().commitment_hex()
    print(f"commitment={commitment}")

    if result.rejected and not args.keep_going:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
