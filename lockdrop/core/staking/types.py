"""Data types for the staking engine.

All types are frozen dataclasses (immutable). Per-participant tables are plain
mappings that are copied, never mutated, by the update functions.

Units/conventions:
- times and durations are logical-clock units (`math.DAY` per day),
- `lock_days` is whole days,
- amounts and points are non-negative integer base units.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Mapping, Optional

from .ledger import PointLedger
from .math import MAX_AMOUNT, MAX_TIME, MAX_YIELD_RATE, REWARD_PERIOD_DEFAULT, WITHDRAWAL_DELAY_DEFAULT
from .policy import DEFAULT_LOCK_POLICY, LockPolicy

Participant = str

# Identities treated as "nobody".
NULL_IDENTITY: str = "0x" + "00" * 20
NULL_IDENTITIES = frozenset({"", NULL_IDENTITY})


@unique
class Action(Enum):
    CONFIGURE_POOL_ASSET = "configure_pool_asset"
    LOCK_TOKENS = "lock_tokens"
    UNLOCK_TOKENS = "unlock_tokens"
    CLAIM_DISTRIBUTION = "claim_distribution"
    RELEASE = "release"


@unique
class Event(Enum):
    POOL_CONFIGURED = "PoolConfigured"
    LOCK_RECORDED = "LockRecorded"
    UNLOCKED = "Unlocked"
    PREMATURE_UNLOCK = "PrematureUnlock"
    DISTRIBUTION_GRANTED = "DistributionGranted"
    VESTING_RELEASED = "VestingReleased"


@unique
class TransferKind(Enum):
    PULL = "pull"  # owner -> custody, needs allowance
    PUSH = "push"  # custody -> recipient


@dataclass(frozen=True)
class ProgramParams:
    """Immutable program parameters, fixed at construction."""

    admin: Participant
    reward_asset: str
    program_end: int
    fund_amount: int
    annual_yield_rate: int
    reward_period: int = REWARD_PERIOD_DEFAULT
    withdrawal_delay: int = WITHDRAWAL_DELAY_DEFAULT
    custody: Participant = "lockdrop.custody"
    lock_policy: LockPolicy = DEFAULT_LOCK_POLICY

    def __post_init__(self) -> None:
        for name, v in (("admin", self.admin), ("reward_asset", self.reward_asset), ("custody", self.custody)):
            if not isinstance(v, str) or not v:
                raise ValueError(f"{name} must be a non-empty string")
        if self.admin in NULL_IDENTITIES or self.custody in NULL_IDENTITIES:
            raise ValueError("admin and custody must not be the null identity")
        for name, v, hi in (
            ("program_end", self.program_end, MAX_TIME),
            ("fund_amount", self.fund_amount, MAX_AMOUNT),
            ("annual_yield_rate", self.annual_yield_rate, MAX_YIELD_RATE),
            ("reward_period", self.reward_period, MAX_TIME),
            ("withdrawal_delay", self.withdrawal_delay, MAX_TIME),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= hi):
                raise ValueError(f"{name} out of range: {v}")
        if self.fund_amount == 0:
            raise ValueError("fund_amount must be positive")
        if self.annual_yield_rate == 0:
            raise ValueError("annual_yield_rate must be positive")
        if not isinstance(self.lock_policy, LockPolicy):
            raise TypeError("lock_policy must be a LockPolicy")


@dataclass(frozen=True)
class Stake:
    amount: int
    lock_days: int
    start_time: int
    expected_points: int


@dataclass(frozen=True)
class ClaimRecord:
    """Explicit "already claimed" marker, with what the claim consumed."""

    points: int
    share: int
    claimed_at: int


@dataclass(frozen=True)
class ReleaseRecord:
    reward_amount: int = 0
    last_claimed_time: int = 0
    released_total: int = 0


@dataclass(frozen=True)
class StakingState:
    """Complete engine state."""

    program: ProgramParams

    # Latest clock value the engine has processed.
    now: int = 0

    # Pool-asset configuration (set once by the administrator).
    pool_asset: Optional[str] = None
    fund_source: Optional[Participant] = None

    # Reward points
    ledger: PointLedger = field(default_factory=PointLedger)

    # Per-participant tables
    stakes: Mapping[Participant, Stake] = field(default_factory=dict)
    claims: Mapping[Participant, ClaimRecord] = field(default_factory=dict)
    releases: Mapping[Participant, ReleaseRecord] = field(default_factory=dict)

    # Custody scalars
    total_locked: int = 0
    reward_fund_balance: int = 0

    @property
    def configured(self) -> bool:
        return self.pool_asset is not None


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields default to 0 / empty."""

    action: Action
    sender: Participant = ""
    now: int = 0
    amount: int = 0            # lock_tokens
    lock_days: int = 0         # lock_tokens
    asset_id: str = ""         # configure_pool_asset
    fund_source: str = ""      # configure_pool_asset
    fund_balance: int = 0      # configure_pool_asset (observed by the shell)
    fund_allowance: int = 0    # configure_pool_asset (observed by the shell)


@dataclass(frozen=True)
class Transfer:
    """An asset movement the shell must perform for an accepted step."""

    kind: TransferKind
    asset: str
    counterparty: Participant
    amount: int


@dataclass(frozen=True)
class Effect:
    """Observable event emitted after a successful step."""

    event: Event
    participant: Participant
    time: int
    amount: int = 0
    lock_days: int = 0
    points: int = 0
    elapsed: int = 0
    share: int = 0
    released_total: int = 0
    transfer: Optional[Transfer] = None


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: StakingState | None = None
    effect: Effect | None = None
    rejection: str | None = None
