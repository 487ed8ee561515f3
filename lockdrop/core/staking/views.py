"""Read-only queries over a `StakingState`.

Nothing here mutates state; these back status displays and the replay tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .math import (
    distribution_share,
    expected_points,
    is_premature,
    release_opens_at,
    release_payable_at,
    unlock_time,
)
from .types import ClaimRecord, Participant, ReleaseRecord, Stake, StakingState


def stake_of(state: StakingState, participant: Participant) -> Optional[Stake]:
    return state.stakes.get(participant)


def points_of(state: StakingState, participant: Participant) -> int:
    return state.ledger.points_of(participant)


def claim_record_of(state: StakingState, participant: Participant) -> Optional[ClaimRecord]:
    return state.claims.get(participant)


def release_record_of(state: StakingState, participant: Participant) -> Optional[ReleaseRecord]:
    return state.releases.get(participant)


def preview_points(state: StakingState, amount: int, lock_days: int) -> int:
    """Points a lock would earn, ignoring the lock policy."""
    return expected_points(amount, state.program.annual_yield_rate, lock_days)


def preview_share(state: StakingState, points: int) -> int:
    """Fund share `points` would convert to against the current total."""
    return distribution_share(state.program.fund_amount, points, state.ledger.total)


@dataclass(frozen=True)
class ParticipantView:
    participant: Participant
    status: str  # "locked" | "unstaked"
    staked_amount: int
    expected_points: int
    points: int
    seconds_until_unlock: int
    unlock_would_be_premature: bool
    claimed: bool
    claimable_share: int
    reward_due: int
    released_total: int
    next_release_time: Optional[int]
    releasable_now: bool


def participant_view(state: StakingState, participant: Participant, now: int) -> ParticipantView:
    """Snapshot of everything one participant can observe at time `now`."""
    program = state.program
    stake = state.stakes.get(participant)
    points = state.ledger.points_of(participant)
    claimed = participant in state.claims

    if stake is not None:
        until = max(0, unlock_time(stake.start_time, stake.lock_days) - now)
        premature = is_premature(now, stake.start_time, stake.lock_days)
    else:
        until = 0
        premature = False

    claimable = 0
    if stake is None and not claimed and now > program.program_end:
        claimable = distribution_share(program.fund_amount, points, state.ledger.total)

    record = state.releases.get(participant)
    next_release: Optional[int] = None
    releasable = False
    if record is not None and record.reward_amount > 0:
        next_release = release_payable_at(record.last_claimed_time, program.reward_period, program.withdrawal_delay)
        releasable = now >= max(next_release, release_opens_at(record.last_claimed_time, program.reward_period))

    return ParticipantView(
        participant=participant,
        status="locked" if stake is not None else "unstaked",
        staked_amount=stake.amount if stake is not None else 0,
        expected_points=stake.expected_points if stake is not None else 0,
        points=points,
        seconds_until_unlock=until,
        unlock_would_be_premature=premature,
        claimed=claimed,
        claimable_share=claimable,
        reward_due=record.reward_amount if record is not None else 0,
        released_total=record.released_total if record is not None else 0,
        next_release_time=next_release,
        releasable_now=releasable,
    )
