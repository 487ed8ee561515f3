"""Tests for lockdrop/core/staking/policy.py: duration bands and caps."""

import pytest

from lockdrop.core.staking.policy import (
    DEFAULT_LOCK_POLICY,
    LockBand,
    LockPolicy,
    policy_from_bands,
    policy_to_bands,
)


class TestDefaultPolicyBoundaries:
    @pytest.mark.parametrize(
        "days, cap",
        [
            (1, None),
            (60, None),
            (61, 1_000_000),
            (90, 1_000_000),
            (91, 500_000),
            (180, 500_000),
            (181, 250_000),
            (360, 250_000),
            (361, 100_000),
            (720, 100_000),
        ],
    )
    def test_band_edges(self, days, cap):
        band = DEFAULT_LOCK_POLICY.band_for(days)
        assert band is not None
        assert band.cap == cap
        assert DEFAULT_LOCK_POLICY.cap_for(days) == cap

    @pytest.mark.parametrize("days", [0, 721, -1])
    def test_outside_policy(self, days):
        assert DEFAULT_LOCK_POLICY.band_for(days) is None

    def test_span(self):
        assert DEFAULT_LOCK_POLICY.min_days == 1
        assert DEFAULT_LOCK_POLICY.max_days == 720

    def test_cap_is_inclusive(self):
        band = DEFAULT_LOCK_POLICY.band_for(61)
        assert band.allows(1_000_000)
        assert not band.allows(1_000_001)

    def test_uncapped_band_allows_anything(self):
        assert DEFAULT_LOCK_POLICY.band_for(30).allows(10**30)


class TestGappedPolicy:
    def test_gap_rejects(self):
        policy = LockPolicy(bands=(LockBand(1, 30), LockBand(60, 90, 500)))
        assert policy.band_for(30) is not None
        assert policy.band_for(45) is None
        assert policy.band_for(60).cap == 500


class TestValidation:
    def test_overlap_rejected(self):
        with pytest.raises(ValueError):
            LockPolicy(bands=(LockBand(1, 60), LockBand(60, 90)))

    def test_unsorted_rejected(self):
        with pytest.raises(ValueError):
            LockPolicy(bands=(LockBand(61, 90), LockBand(1, 60)))

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            LockPolicy(bands=())

    def test_band_min_at_least_one(self):
        with pytest.raises(ValueError):
            LockBand(0, 10)

    def test_band_inverted(self):
        with pytest.raises(ValueError):
            LockBand(10, 5)

    def test_zero_cap(self):
        with pytest.raises(ValueError):
            LockBand(1, 5, 0)

    def test_bool_days(self):
        with pytest.raises(TypeError):
            LockBand(True, 5)


class TestMappingRoundTrip:
    def test_round_trip(self):
        assert policy_from_bands(policy_to_bands(DEFAULT_LOCK_POLICY)) == DEFAULT_LOCK_POLICY

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            policy_from_bands([{"min_days": 1, "max_days": 2, "ceiling": 5}])

    def test_missing_cap_means_uncapped(self):
        policy = policy_from_bands([{"min_days": 1, "max_days": 7}])
        assert policy.cap_for(7) is None
