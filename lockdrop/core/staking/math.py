"""Pure arithmetic for the staking engine.

Every function is stateless and operates on plain Python ints. Division is
always floor division (`//`); rounding loss stays with the reward fund.
"""

from __future__ import annotations

# Domain constants
DAY: int = 86_400  # logical-clock units per day
DAYS_PER_YEAR: int = 365
MAX_AMOUNT: int = 2**128 - 1
MAX_TIME: int = 2**64 - 1
MAX_YIELD_RATE: int = 1_000_000

REWARD_PERIOD_DEFAULT: int = 30 * DAY
WITHDRAWAL_DELAY_DEFAULT: int = 7 * DAY


def lock_duration(lock_days: int) -> int:
    """Lock length in clock units."""
    return lock_days * DAY


def expected_points(amount: int, annual_yield_rate: int, lock_days: int) -> int:
    """Reward points for a lock: ``amount * rate * days / 365`` (floor)."""
    return (amount * annual_yield_rate * lock_days) // DAYS_PER_YEAR


def unlock_time(start_time: int, lock_days: int) -> int:
    return start_time + lock_duration(lock_days)


def is_premature(now: int, start_time: int, lock_days: int) -> bool:
    """True when unlocking at `now` breaks the lock (strictly before maturity)."""
    return now < unlock_time(start_time, lock_days)


def distribution_share(fund_amount: int, points: int, total_points: int) -> int:
    """Pro-rata share of the fund: ``fund * points / total`` (floor).

    Returns 0 when `total_points` is 0 instead of dividing by zero.
    """
    if total_points <= 0:
        return 0
    return (fund_amount * points) // total_points


def release_opens_at(last_claimed_time: int, reward_period: int) -> int:
    """Clock value at which the next release window matures."""
    return last_claimed_time + reward_period


def release_payable_at(last_claimed_time: int, reward_period: int, withdrawal_delay: int) -> int:
    """Clock value at which a matured window becomes payable."""
    return last_claimed_time + reward_period + withdrawal_delay
