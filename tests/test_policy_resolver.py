"""Tests for policy resolution"""

import logging
import random

import pytest
from pydantic import ValidationError

from autoretry.application.policy_resolver import PolicyResolver
from autoretry.domain.catalog import PROFILE_CATALOG
from autoretry.domain.config.retry import RetryBinding, RetryOverrides
from autoretry.domain.models.policy import ResolvedPolicy
from autoretry.domain.models.profile import ProfileName


class SequenceRandom:
    """Random source returning predefined values"""

    def __init__(self, values):
        self.values = list(values)
        self.bounds = []

    def randrange(self, bound):
        self.bounds.append(bound)
        return self.values.pop(0)


class TestResolveWithoutBinding:
    """Tests for operations that declare no retry policy"""

    def test_defaults_to_constant(self):
        """Test default profile: 3 retries, 500 ms each, nullable"""
        policy = PolicyResolver().resolve(None)
        assert policy == ResolvedPolicy(ProfileName.CONSTANT, (500, 500, 500), True)
        assert policy.max_retries == 3

    def test_logs_missing_policy(self, caplog):
        caplog.set_level(logging.DEBUG)
        PolicyResolver().resolve(None, "Repo.load")
        assert "Repo.load > RetryPolicy is not set. Defaults to CONSTANT" in caplog.text
        assert "Repo.load > RetryPolicy(value=CONSTANT, maxRetries=3" in caplog.text


class TestResolveFixedProfiles:
    """Tests for fixed-sequence profiles"""

    def test_profile_defaults(self):
        policy = PolicyResolver().resolve(RetryBinding(profile="RAPID"))
        assert policy.delays == (10, 50, 100)
        assert policy.nullable is True

    def test_delays_override_changes_retry_count(self):
        """Test overriding delays replaces the sequence and the retry count"""
        policy = PolicyResolver().resolve(RetryBinding(profile="CONSTANT", delays=[5, 10]))
        assert policy.delays == (5, 10)
        assert policy.max_retries == 2

    def test_empty_delays_override_means_single_attempt(self):
        policy = PolicyResolver().resolve(RetryBinding(profile="SLOW", delays=[]))
        assert policy.delays == ()
        assert policy.max_retries == 0

    def test_max_retries_override_ignored_for_fixed_profiles(self):
        """Quirk: max_retries alone never changes the retry count of a fixed profile"""
        policy = PolicyResolver().resolve(RetryBinding(profile="CONSTANT", max_retries=7))
        assert policy.delays == (500, 500, 500)
        assert policy.max_retries == 3

    def test_max_retries_with_delays_uses_delays_length(self):
        policy = PolicyResolver().resolve(
            RetryBinding(profile="SLOW", max_retries=1, delays=[1, 2, 3, 4])
        )
        assert policy.max_retries == 4

    def test_nullable_override(self):
        policy = PolicyResolver().resolve(RetryBinding(profile="ONE_TIME", nullable=False))
        assert policy.nullable is False
        assert policy.delays == (1000,)

    def test_merge_without_overrides(self):
        policy = PolicyResolver().merge(PROFILE_CATALOG[ProfileName.SLOWING_DOWN])
        assert policy.max_retries == 9
        assert policy.nullable is True


class TestResolveRandomProfile:
    """Tests for the RANDOM profile"""

    def test_default_retry_count(self):
        policy = PolicyResolver().resolve(RetryBinding(profile="RANDOM"))
        assert policy.max_retries == 3
        assert all(0 <= delay < 1000 for delay in policy.delays)

    def test_max_retries_override(self):
        """Test max_retries override sets the number of sampled delays"""
        policy = PolicyResolver().resolve(RetryBinding(profile="RANDOM", max_retries=5))
        assert len(policy.delays) == 5
        assert all(0 <= delay < 1000 for delay in policy.delays)

    def test_zero_max_retries(self):
        policy = PolicyResolver().resolve(RetryBinding(profile="RANDOM", max_retries=0))
        assert policy.delays == ()

    def test_delays_override_ignored(self):
        policy = PolicyResolver(rng=SequenceRandom([1, 2, 3])).resolve(
            RetryBinding(profile="RANDOM", delays=[9, 9])
        )
        assert policy.delays == (1, 2, 3)

    def test_uses_injected_random_source(self):
        rng = SequenceRandom([999, 0, 42])
        policy = PolicyResolver(rng=rng).resolve(RetryBinding(profile="RANDOM"))
        assert policy.delays == (999, 0, 42)
        assert rng.bounds == [1000, 1000, 1000]

    def test_seeded_random_is_deterministic(self):
        expected_rng = random.Random(7)
        expected = tuple(expected_rng.randrange(1000) for _ in range(5))
        policy = PolicyResolver(rng=random.Random(7)).resolve(
            RetryBinding(profile="RANDOM", max_retries=5)
        )
        assert policy.delays == expected

    def test_delays_resampled_on_every_resolution(self):
        rng = SequenceRandom([1, 2, 3, 4, 5, 6])
        resolver = PolicyResolver(rng=rng)
        binding = RetryBinding(profile="RANDOM")
        assert resolver.resolve(binding).delays == (1, 2, 3)
        assert resolver.resolve(binding).delays == (4, 5, 6)

    def test_configured_upper_bound(self):
        rng = SequenceRandom([3, 3, 3])
        PolicyResolver(rng=rng, max_random_delay_ms=50).resolve(RetryBinding(profile="RANDOM"))
        assert rng.bounds == [50, 50, 50]

    def test_invalid_upper_bound(self):
        with pytest.raises(ValueError):
            PolicyResolver(max_random_delay_ms=0)


class TestRetryBindingValidation:
    """Tests for binding/override models"""

    def test_profile_is_required(self):
        with pytest.raises(ValidationError, match="profile"):
            RetryBinding()

    def test_profile_parsed_case_insensitively(self):
        assert RetryBinding(profile="rapid_retry").profile is ProfileName.RAPID

    def test_unknown_profile(self):
        with pytest.raises(ValidationError, match="Unknown retry profile"):
            RetryBinding(profile="NEVER")

    def test_negative_max_retries(self):
        with pytest.raises(ValidationError, match="max_retries"):
            RetryOverrides(max_retries=-1)

    def test_negative_delay(self):
        with pytest.raises(ValidationError, match="delays"):
            RetryOverrides(delays=[10, -1])

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            RetryOverrides(backoff=2)

    def test_frozen(self):
        overrides = RetryOverrides()
        with pytest.raises(ValidationError):
            overrides.nullable = False


class TestResolvedPolicy:
    """Tests for the delay lookup of a resolved policy"""

    def test_delay_for(self):
        policy = ResolvedPolicy(ProfileName.RAPID, (10, 50, 100))
        assert [policy.delay_for(i) for i in range(3)] == [10, 50, 100]

    @pytest.mark.parametrize("index", [-1, 3])
    def test_delay_for_out_of_range(self, index):
        policy = ResolvedPolicy(ProfileName.RAPID, (10, 50, 100))
        with pytest.raises(IndexError):
            policy.delay_for(index)

    def test_accepts(self):
        assert ResolvedPolicy(ProfileName.CONSTANT, (), nullable=True).accepts(None)
        assert not ResolvedPolicy(ProfileName.CONSTANT, (), nullable=False).accepts(None)
        assert ResolvedPolicy(ProfileName.CONSTANT, (), nullable=False).accepts(0)
        assert ResolvedPolicy(ProfileName.CONSTANT, (), nullable=False).accepts("")
