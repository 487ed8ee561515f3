"""`staking`: pure-Python time-locked staking, reward-point and vesting kernel.

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks.

Public API:
- `initial_state(program) -> StakingState`
- `step(state, params) -> StepResult`
- `step_or_raise(state, params) -> StepResult` (raises on rejection)
"""

from .engine import raise_for_rejection, step, step_or_raise
from .errors import (
    AlreadyClaimed,
    AlreadyConfigured,
    AlreadyLocked,
    AmountExceedsCap,
    ArithmeticViolation,
    ClockRegression,
    InsufficientAllowance,
    InsufficientFundBalance,
    InsufficientFunds,
    InvalidAmount,
    InvalidInput,
    InvalidLockDuration,
    InvalidRecipient,
    InvariantViolation,
    LockExceedsProgramEnd,
    NotConfigured,
    NothingDue,
    NothingEarned,
    NotLocked,
    Overflow,
    ParamOutOfRange,
    ProgramEnded,
    ProgramNotEnded,
    ReentrantCall,
    SameInstantWithdrawal,
    StakingError,
    StateConflict,
    StillLocked,
    TimingViolation,
    TooEarly,
    TransferFailed,
    Unauthorized,
    Underflow,
    WithdrawalDelayNotReached,
    ZeroReward,
    ZeroShare,
)
from .ledger import MAX_POINTS, PointLedger, add_points, read_and_zero, subtract_points
from .policy import DEFAULT_LOCK_POLICY, LockBand, LockPolicy
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    NULL_IDENTITY,
    Action,
    ActionParams,
    ClaimRecord,
    Effect,
    Event,
    ProgramParams,
    ReleaseRecord,
    Stake,
    StakingState,
    StepResult,
    Transfer,
    TransferKind,
)

__all__ = [
    "step",
    "step_or_raise",
    "raise_for_rejection",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "PointLedger",
    "MAX_POINTS",
    "add_points",
    "subtract_points",
    "read_and_zero",
    "LockBand",
    "LockPolicy",
    "DEFAULT_LOCK_POLICY",
    "NULL_IDENTITY",
    "Action",
    "ActionParams",
    "ClaimRecord",
    "Effect",
    "Event",
    "ProgramParams",
    "ReleaseRecord",
    "Stake",
    "StakingState",
    "StepResult",
    "Transfer",
    "TransferKind",
    "StakingError",
    "InvalidInput",
    "InvalidAmount",
    "InvalidLockDuration",
    "AmountExceedsCap",
    "InvalidRecipient",
    "ParamOutOfRange",
    "StateConflict",
    "NotConfigured",
    "AlreadyConfigured",
    "AlreadyLocked",
    "NotLocked",
    "StillLocked",
    "NothingEarned",
    "AlreadyClaimed",
    "NothingDue",
    "ReentrantCall",
    "TimingViolation",
    "ProgramEnded",
    "LockExceedsProgramEnd",
    "ProgramNotEnded",
    "SameInstantWithdrawal",
    "TooEarly",
    "WithdrawalDelayNotReached",
    "ClockRegression",
    "InsufficientFunds",
    "InsufficientFundBalance",
    "InsufficientAllowance",
    "TransferFailed",
    "ArithmeticViolation",
    "Overflow",
    "Underflow",
    "ZeroReward",
    "ZeroShare",
    "Unauthorized",
    "InvariantViolation",
]
