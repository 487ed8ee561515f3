"""
Lock-duration policy: duration bands with per-band stake caps.

A band is an inclusive `[min_days, max_days]` range with an optional cap on the
staked amount (`None` = uncapped). Bands must be sorted and non-overlapping;
gaps between bands are allowed and reject like any out-of-range duration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class LockBand:
    min_days: int
    max_days: int
    cap: Optional[int] = None

    def __post_init__(self) -> None:
        for name, v in (("min_days", self.min_days), ("max_days", self.max_days)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.min_days < 1:
            raise ValueError(f"min_days must be >= 1: {self.min_days}")
        if self.max_days < self.min_days:
            raise ValueError(f"max_days must be >= min_days: {self.max_days} < {self.min_days}")
        if self.cap is not None:
            if not isinstance(self.cap, int) or isinstance(self.cap, bool):
                raise TypeError("cap must be an int or None")
            if self.cap <= 0:
                raise ValueError(f"cap must be positive: {self.cap}")

    def contains(self, lock_days: int) -> bool:
        return self.min_days <= lock_days <= self.max_days

    def allows(self, amount: int) -> bool:
        return self.cap is None or amount <= self.cap


@dataclass(frozen=True)
class LockPolicy:
    bands: Tuple[LockBand, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.bands, tuple) or not self.bands:
            raise ValueError("bands must be a non-empty tuple")
        prev: Optional[LockBand] = None
        for band in self.bands:
            if not isinstance(band, LockBand):
                raise TypeError("bands must contain LockBand values")
            if prev is not None and band.min_days <= prev.max_days:
                raise ValueError(
                    f"bands must be sorted and non-overlapping: [{prev.min_days},{prev.max_days}] "
                    f"then [{band.min_days},{band.max_days}]"
                )
            prev = band

    @property
    def min_days(self) -> int:
        return self.bands[0].min_days

    @property
    def max_days(self) -> int:
        return self.bands[-1].max_days

    def band_for(self, lock_days: int) -> Optional[LockBand]:
        for band in self.bands:
            if band.contains(lock_days):
                return band
        return None

    def cap_for(self, lock_days: int) -> Optional[int]:
        band = self.band_for(lock_days)
        return None if band is None else band.cap


# Reference policy: short locks are uncapped, longer locks get tighter caps.
DEFAULT_LOCK_POLICY = LockPolicy(
    bands=(
        LockBand(1, 60),
        LockBand(61, 90, 1_000_000),
        LockBand(91, 180, 500_000),
        LockBand(181, 360, 250_000),
        LockBand(361, 720, 100_000),
    )
)


def policy_from_bands(items: Sequence[Mapping[str, Any]]) -> LockPolicy:
    """Build a policy from plain mappings (`{"min_days", "max_days", "cap"}`)."""
    bands = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise TypeError(f"bands[{i}] must be a mapping")
        unknown = set(item) - {"min_days", "max_days", "cap"}
        if unknown:
            raise ValueError(f"bands[{i}] has unknown keys: {sorted(unknown)}")
        bands.append(LockBand(item["min_days"], item["max_days"], item.get("cap")))
    return LockPolicy(bands=tuple(bands))


def policy_to_bands(policy: LockPolicy) -> list[dict[str, Any]]:
    return [{"min_days": b.min_days, "max_days": b.max_days, "cap": b.cap} for b in policy.bands]
