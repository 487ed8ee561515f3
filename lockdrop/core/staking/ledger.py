"""
Reward-point ledger (deterministic, integer-only).

Tracks per-participant reward points plus a running total. The ledger is an
immutable value: every mutation returns a fresh `PointLedger`.

Invariant (checked by `PointLedger.is_consistent`):
    total == sum(balances) + claimed
where `claimed` is the sum of points already moved out by `read_and_zero`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

from .errors import InvalidAmount, Overflow, Underflow


# uint256 domain, so totals stay representable by any fixed-width consumer.
MAX_POINTS: int = 2**256 - 1

Participant = str


def _require_points(n: int, *, name: str = "n") -> int:
    if not isinstance(n, int) or isinstance(n, bool):
        raise InvalidAmount(f"{name} must be an int")
    if n < 0:
        raise InvalidAmount(f"{name} must be non-negative: {n}")
    return int(n)


@dataclass(frozen=True)
class PointLedger:
    total: int = 0
    claimed: int = 0
    balances: Mapping[Participant, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, v in (("total", self.total), ("claimed", self.claimed)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.total > MAX_POINTS:
            raise ValueError("total exceeds MAX_POINTS")

    def points_of(self, participant: Participant) -> int:
        return int(self.balances.get(participant, 0))

    def holders(self) -> Tuple[Participant, ...]:
        """Participants with a non-zero balance, sorted."""
        return tuple(sorted(p for p, v in self.balances.items() if v > 0))

    def is_consistent(self) -> bool:
        return self.total == sum(self.balances.values()) + self.claimed


def _with_balance(ledger: PointLedger, participant: Participant, value: int, *, total: int, claimed: int) -> PointLedger:
    balances: Dict[Participant, int] = dict(ledger.balances)
    if value == 0:
        # Keep the table sparse.
        balances.pop(participant, None)
    else:
        balances[participant] = value
    return PointLedger(total=total, claimed=claimed, balances=balances)


def add_points(ledger: PointLedger, participant: Participant, n: int) -> PointLedger:
    """Credit `n` points to `participant` and to the running total.

    Raises:
        InvalidAmount: `n` is not a non-negative int.
        Overflow: the new total or balance would exceed `MAX_POINTS`.
    """
    n = _require_points(n)
    new_total = ledger.total + n
    new_balance = ledger.points_of(participant) + n
    if new_total > MAX_POINTS or new_balance > MAX_POINTS:
        raise Overflow(f"points overflow adding {n} for {participant!r}")
    return _with_balance(ledger, participant, new_balance, total=new_total, claimed=ledger.claimed)


def subtract_points(ledger: PointLedger, participant: Participant, n: int) -> PointLedger:
    """Revoke `n` points from `participant` and from the running total.

    Callers only revoke points they previously added, so an `Underflow` here
    means a caller bug.
    """
    n = _require_points(n)
    balance = ledger.points_of(participant)
    if balance < n or ledger.total < n:
        raise Underflow(f"cannot subtract {n} points from {participant!r} (balance {balance}, total {ledger.total})")
    return _with_balance(ledger, participant, balance - n, total=ledger.total - n, claimed=ledger.claimed)


def read_and_zero(ledger: PointLedger, participant: Participant) -> tuple[int, PointLedger]:
    """Return the participant's balance and a ledger with that balance zeroed.

    The running total is left untouched; the points move to `claimed`.
    """
    balance = ledger.points_of(participant)
    out = _with_balance(ledger, participant, 0, total=ledger.total, claimed=ledger.claimed + balance)
    return balance, out
