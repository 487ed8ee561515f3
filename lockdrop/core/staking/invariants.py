"""Invariant checkers for the staking engine.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). The engine runs
`check_all()` on every post-state and rejects the step on any violation.
"""

from __future__ import annotations

from typing import Callable

from .ledger import MAX_POINTS
from .math import distribution_share, expected_points, lock_duration
from .types import StakingState


def inv_points_conserved(s: StakingState) -> bool:
    """TotalPoints == live balances + points consumed by claims."""
    return s.ledger.is_consistent()


def inv_claimed_points_match_records(s: StakingState) -> bool:
    return s.ledger.claimed == sum(c.points for c in s.claims.values())


def inv_points_bounded(s: StakingState) -> bool:
    return 0 <= s.ledger.total <= MAX_POINTS and all(v > 0 for v in s.ledger.balances.values())


def inv_total_locked_matches_stakes(s: StakingState) -> bool:
    return s.total_locked == sum(st.amount for st in s.stakes.values())


def inv_stake_positive(s: StakingState) -> bool:
    return all(st.amount > 0 and st.expected_points > 0 for st in s.stakes.values())


def inv_stake_points_frozen(s: StakingState) -> bool:
    rate = s.program.annual_yield_rate
    return all(
        st.expected_points == expected_points(st.amount, rate, st.lock_days)
        for st in s.stakes.values()
    )


def inv_live_stake_points_held(s: StakingState) -> bool:
    """A live stake's points are still credited to its owner."""
    return all(s.ledger.points_of(p) >= st.expected_points for p, st in s.stakes.items())


def inv_stake_within_program(s: StakingState) -> bool:
    end = s.program.program_end
    return all(st.start_time + lock_duration(st.lock_days) <= end for st in s.stakes.values())


def inv_stake_not_from_future(s: StakingState) -> bool:
    return all(st.start_time <= s.now for st in s.stakes.values())


def inv_stakes_require_configuration(s: StakingState) -> bool:
    return s.configured or not s.stakes


def inv_fund_custody_conserved(s: StakingState) -> bool:
    """Fund custody + everything released == fund (once configured)."""
    released = sum(r.released_total for r in s.releases.values())
    if not s.configured:
        return s.reward_fund_balance == 0 and released == 0
    return s.reward_fund_balance + released == s.program.fund_amount


def inv_grants_covered(s: StakingState) -> bool:
    outstanding = sum(r.reward_amount for r in s.releases.values())
    return outstanding <= s.reward_fund_balance


def inv_claimed_not_live(s: StakingState) -> bool:
    """A claimed participant has no remaining points and no live stake."""
    return all(s.ledger.points_of(p) == 0 and p not in s.stakes for p in s.claims)


def inv_claim_shares_exact(s: StakingState) -> bool:
    fund, total = s.program.fund_amount, s.ledger.total
    return all(c.share == distribution_share(fund, c.points, total) for c in s.claims.values())


def inv_release_records_claimed(s: StakingState) -> bool:
    return all(p in s.claims for p in s.releases)


def inv_release_not_from_future(s: StakingState) -> bool:
    return all(r.last_claimed_time <= s.now for r in s.releases.values())


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[StakingState], bool]] = {
    "inv_points_conserved": inv_points_conserved,
    "inv_claimed_points_match_records": inv_claimed_points_match_records,
    "inv_points_bounded": inv_points_bounded,
    "inv_total_locked_matches_stakes": inv_total_locked_matches_stakes,
    "inv_stake_positive": inv_stake_positive,
    "inv_stake_points_frozen": inv_stake_points_frozen,
    "inv_live_stake_points_held": inv_live_stake_points_held,
    "inv_stake_within_program": inv_stake_within_program,
    "inv_stake_not_from_future": inv_stake_not_from_future,
    "inv_stakes_require_configuration": inv_stakes_require_configuration,
    "inv_fund_custody_conserved": inv_fund_custody_conserved,
    "inv_grants_covered": inv_grants_covered,
    "inv_claimed_not_live": inv_claimed_not_live,
    "inv_claim_shares_exact": inv_claim_shares_exact,
    "inv_release_records_claimed": inv_release_records_claimed,
    "inv_release_not_from_future": inv_release_not_from_future,
}


def check_all(state: StakingState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
