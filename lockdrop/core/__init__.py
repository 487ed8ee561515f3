"""
Core staking algorithms (functional core)
"""

from .staking import (
    Action,
    ActionParams,
    Effect,
    Event,
    LockBand,
    LockPolicy,
    PointLedger,
    ProgramParams,
    StakingState,
    StepResult,
    initial_state,
    step,
    step_or_raise,
)

__all__ = [
    "Action",
    "ActionParams",
    "Effect",
    "Event",
    "LockBand",
    "LockPolicy",
    "PointLedger",
    "ProgramParams",
    "StakingState",
    "StepResult",
    "initial_state",
    "step",
    "step_or_raise",
]
