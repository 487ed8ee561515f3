"""
lockdrop: time-locked staking, reward-point accounting and vesting release.
"""

__version__ = "0.1.0"
