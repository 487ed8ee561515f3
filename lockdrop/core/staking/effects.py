"""Effect functions for the staking engine.

One pure function per action. Each builds the ``Effect`` for an accepted step
from the PRE-state, the POST-state and the parameters. Unlock needs the
pre-state because the stake no longer exists afterwards.

The ``transfer`` field tells the shell which asset movement completes the step.
"""

from __future__ import annotations

from .math import is_premature
from .types import ActionParams, Effect, Event, StakingState, Transfer, TransferKind


def effect_configure_pool_asset(pre: StakingState, post: StakingState, params: ActionParams) -> Effect:
    amount = post.program.fund_amount
    return Effect(
        event=Event.POOL_CONFIGURED,
        participant=post.fund_source or params.sender,
        time=params.now,
        amount=amount,
        transfer=Transfer(TransferKind.PULL, post.program.reward_asset, post.fund_source or params.sender, amount),
    )


def effect_lock_tokens(pre: StakingState, post: StakingState, params: ActionParams) -> Effect:
    stake = post.stakes[params.sender]
    assert post.pool_asset is not None
    return Effect(
        event=Event.LOCK_RECORDED,
        participant=params.sender,
        time=params.now,
        amount=stake.amount,
        lock_days=stake.lock_days,
        points=stake.expected_points,
        transfer=Transfer(TransferKind.PULL, post.pool_asset, params.sender, stake.amount),
    )


def effect_unlock_tokens(pre: StakingState, post: StakingState, params: ActionParams) -> Effect:
    stake = pre.stakes[params.sender]
    premature = is_premature(params.now, stake.start_time, stake.lock_days)
    assert post.pool_asset is not None
    return Effect(
        event=Event.PREMATURE_UNLOCK if premature else Event.UNLOCKED,
        participant=params.sender,
        time=params.now,
        amount=stake.amount,
        lock_days=stake.lock_days,
        # Points forfeited on a premature unlock, points kept otherwise.
        points=stake.expected_points,
        elapsed=params.now - stake.start_time,
        transfer=Transfer(TransferKind.PUSH, post.pool_asset, params.sender, stake.amount),
    )


def effect_claim_distribution(pre: StakingState, post: StakingState, params: ActionParams) -> Effect:
    claim = post.claims[params.sender]
    return Effect(
        event=Event.DISTRIBUTION_GRANTED,
        participant=params.sender,
        time=params.now,
        points=claim.points,
        share=claim.share,
    )


def effect_release(pre: StakingState, post: StakingState, params: ActionParams) -> Effect:
    amount = pre.releases[params.sender].reward_amount
    record = post.releases[params.sender]
    return Effect(
        event=Event.VESTING_RELEASED,
        participant=params.sender,
        time=params.now,
        amount=amount,
        released_total=record.released_total,
        transfer=Transfer(TransferKind.PUSH, post.program.reward_asset, params.sender, amount),
    )
