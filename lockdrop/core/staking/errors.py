"""Exception types for the staking engine.

Every concrete error carries a stable ``code``. ``step()`` reports rejections
as ``"guard:<code>"`` strings; ``step_or_raise()`` and the imperative shell
map those codes back to the classes below via ``error_for_code``.
"""

from __future__ import annotations


class StakingError(Exception):
    """Base class for all staking rejections."""

    code: str = "staking_error"


# -- InvalidInput ------------------------------------------------------------

class InvalidInput(StakingError):
    code = "invalid_input"


class InvalidAmount(InvalidInput):
    code = "invalid_amount"


class InvalidLockDuration(InvalidInput):
    code = "invalid_lock_duration"


class AmountExceedsCap(InvalidInput):
    code = "amount_exceeds_cap"


class InvalidRecipient(InvalidInput):
    code = "invalid_recipient"


class ParamOutOfRange(InvalidInput):
    """Raised when a parameter exceeds its domain bounds."""

    code = "param_domain"


# -- StateConflict -----------------------------------------------------------

class StateConflict(StakingError):
    code = "state_conflict"


class NotConfigured(StateConflict):
    code = "not_configured"


class AlreadyConfigured(StateConflict):
    code = "already_configured"


class AlreadyLocked(StateConflict):
    code = "already_locked"


class NotLocked(StateConflict):
    code = "not_locked"


class StillLocked(StateConflict):
    code = "still_locked"


class NothingEarned(StateConflict):
    code = "nothing_earned"


class AlreadyClaimed(NothingEarned):
    code = "already_claimed"


class NothingDue(StateConflict):
    code = "nothing_due"


class ReentrantCall(StateConflict):
    code = "reentrant_call"


# -- TimingViolation ---------------------------------------------------------

class TimingViolation(StakingError):
    code = "timing_violation"


class ProgramEnded(TimingViolation):
    code = "program_ended"


class LockExceedsProgramEnd(TimingViolation):
    code = "lock_exceeds_program_end"


class ProgramNotEnded(TimingViolation):
    code = "program_not_ended"


class SameInstantWithdrawal(TimingViolation):
    code = "same_instant_withdrawal"


class TooEarly(TimingViolation):
    code = "too_early"


class WithdrawalDelayNotReached(TimingViolation):
    code = "withdrawal_delay_not_reached"


class ClockRegression(TimingViolation):
    code = "clock_regression"


# -- InsufficientFunds -------------------------------------------------------

class InsufficientFunds(StakingError):
    code = "insufficient_funds"


class InsufficientFundBalance(InsufficientFunds):
    code = "insufficient_fund_balance"


class InsufficientAllowance(InsufficientFunds):
    code = "insufficient_allowance"


class TransferFailed(InsufficientFunds):
    code = "transfer_failed"


# -- ArithmeticViolation -----------------------------------------------------

class ArithmeticViolation(StakingError):
    code = "arithmetic_violation"


class Overflow(ArithmeticViolation):
    code = "overflow"


class Underflow(ArithmeticViolation):
    code = "underflow"


class ZeroReward(ArithmeticViolation):
    code = "zero_reward"


class ZeroShare(ArithmeticViolation):
    code = "zero_share"


# -- Unauthorized / invariants -----------------------------------------------

class Unauthorized(StakingError):
    code = "unauthorized"


class InvariantViolation(StakingError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


def _leaf_classes(root: type[StakingError]) -> list[type[StakingError]]:
    out: list[type[StakingError]] = [root]
    for sub in root.__subclasses__():
        out.extend(_leaf_classes(sub))
    return out


ERRORS_BY_CODE: dict[str, type[StakingError]] = {
    cls.code: cls for cls in _leaf_classes(StakingError) if cls is not InvariantViolation
}


def error_for_code(code: str) -> type[StakingError]:
    """Map a rejection code to its exception class (``StakingError`` if unknown)."""
    return ERRORS_BY_CODE.get(code, StakingError)
