"""State transition functions for the staking engine.

One pure function per action. Each returns a new `StakingState` with the
action's updates applied. Updates evaluate against the PRE-state and assume
the action's guard already passed; per-participant tables are copied, never
mutated in place.
"""

from __future__ import annotations

from dataclasses import replace

from .ledger import add_points, read_and_zero, subtract_points
from .math import distribution_share, expected_points, is_premature
from .types import ActionParams, ClaimRecord, ReleaseRecord, Stake, StakingState


def apply_configure_pool_asset(state: StakingState, params: ActionParams) -> StakingState:
    return replace(
        state,
        now=params.now,
        pool_asset=params.asset_id,
        fund_source=params.fund_source or params.sender,
        reward_fund_balance=state.reward_fund_balance + state.program.fund_amount,
    )


def apply_lock_tokens(state: StakingState, params: ActionParams) -> StakingState:
    points = expected_points(params.amount, state.program.annual_yield_rate, params.lock_days)
    stakes = dict(state.stakes)
    stakes[params.sender] = Stake(
        amount=params.amount,
        lock_days=params.lock_days,
        start_time=params.now,
        expected_points=points,
    )
    return replace(
        state,
        now=params.now,
        ledger=add_points(state.ledger, params.sender, points),
        stakes=stakes,
        total_locked=state.total_locked + params.amount,
    )


def apply_unlock_tokens(state: StakingState, params: ActionParams) -> StakingState:
    stakes = dict(state.stakes)
    stake = stakes.pop(params.sender)

    ledger = state.ledger
    if is_premature(params.now, stake.start_time, stake.lock_days):
        ledger = subtract_points(ledger, params.sender, stake.expected_points)

    return replace(
        state,
        now=params.now,
        ledger=ledger,
        stakes=stakes,
        total_locked=state.total_locked - stake.amount,
    )


def apply_claim_distribution(state: StakingState, params: ActionParams) -> StakingState:
    # Share is computed against the total BEFORE zeroing; the total itself never moves.
    points, ledger = read_and_zero(state.ledger, params.sender)
    share = distribution_share(state.program.fund_amount, points, state.ledger.total)

    claims = dict(state.claims)
    claims[params.sender] = ClaimRecord(points=points, share=share, claimed_at=params.now)

    # Grants accumulate onto whatever is still unreleased.
    releases = dict(state.releases)
    prev = releases.get(params.sender, ReleaseRecord())
    releases[params.sender] = ReleaseRecord(
        reward_amount=prev.reward_amount + share,
        last_claimed_time=params.now,
        released_total=prev.released_total,
    )

    return replace(state, now=params.now, ledger=ledger, claims=claims, releases=releases)


def apply_release(state: StakingState, params: ActionParams) -> StakingState:
    releases = dict(state.releases)
    record = releases[params.sender]
    releases[params.sender] = ReleaseRecord(
        reward_amount=0,
        last_claimed_time=params.now,
        released_total=record.released_total + record.reward_amount,
    )
    return replace(
        state,
        now=params.now,
        releases=releases,
        reward_fund_balance=state.reward_fund_balance - record.reward_amount,
    )
