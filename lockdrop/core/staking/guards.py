"""Guard functions for the staking engine.

One pure function per action. Each returns ``None`` when the action is allowed
in the given PRE-state, or the rejection code of the first failed check. The
order of checks is part of the contract: callers see the earliest violated
precondition.
"""

from __future__ import annotations

from .ledger import MAX_POINTS
from .math import (
    distribution_share,
    expected_points,
    lock_duration,
    release_opens_at,
    release_payable_at,
)
from .types import NULL_IDENTITIES, ActionParams, StakingState


def guard_configure_pool_asset(state: StakingState, params: ActionParams) -> str | None:
    program = state.program
    if params.sender != program.admin:
        return "unauthorized"
    if state.configured:
        return "already_configured"
    if not params.asset_id:
        return "invalid_input"
    if params.fund_balance < program.fund_amount:
        return "insufficient_fund_balance"
    if params.fund_allowance < program.fund_amount:
        return "insufficient_allowance"
    return None


def guard_lock_tokens(state: StakingState, params: ActionParams) -> str | None:
    program = state.program
    if not state.configured:
        return "not_configured"
    if params.amount <= 0:
        return "invalid_amount"
    if params.now > program.program_end:
        return "program_ended"
    band = program.lock_policy.band_for(params.lock_days)
    if band is None:
        return "invalid_lock_duration"
    if params.now + lock_duration(params.lock_days) > program.program_end:
        return "lock_exceeds_program_end"
    if params.sender in state.stakes:
        return "already_locked"
    if not band.allows(params.amount):
        return "amount_exceeds_cap"

    points = expected_points(params.amount, program.annual_yield_rate, params.lock_days)
    if points == 0:
        return "zero_reward"
    if state.ledger.total + points > MAX_POINTS:
        return "overflow"
    return None


def guard_unlock_tokens(state: StakingState, params: ActionParams) -> str | None:
    stake = state.stakes.get(params.sender)
    if stake is None:
        return "not_locked"
    if params.now <= stake.start_time:
        return "same_instant_withdrawal"
    return None


def guard_claim_distribution(state: StakingState, params: ActionParams) -> str | None:
    program = state.program
    if params.now <= program.program_end:
        return "program_not_ended"
    if params.sender in NULL_IDENTITIES:
        return "invalid_recipient"
    if params.sender in state.stakes:
        return "still_locked"
    if params.sender in state.claims:
        return "already_claimed"

    points = state.ledger.points_of(params.sender)
    if points <= 0:
        return "nothing_earned"
    if distribution_share(program.fund_amount, points, state.ledger.total) == 0:
        return "zero_share"
    return None


def guard_release(state: StakingState, params: ActionParams) -> str | None:
    program = state.program
    record = state.releases.get(params.sender)
    if record is None:
        return "nothing_due"
    if params.now < release_opens_at(record.last_claimed_time, program.reward_period):
        return "too_early"
    if params.now < release_payable_at(record.last_claimed_time, program.reward_period, program.withdrawal_delay):
        return "withdrawal_delay_not_reached"
    if record.reward_amount <= 0:
        return "nothing_due"
    if record.reward_amount > state.reward_fund_balance:
        return "insufficient_fund_balance"
    return None
