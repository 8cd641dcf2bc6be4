"""Policy resolver - merges retry profiles with caller overrides"""

import logging
import random
from typing import List, Optional

from autoretry.domain.catalog import DEFAULT_PROFILE, PROFILE_CATALOG, get_profile
from autoretry.domain.config.retry import RetryBinding, RetryOverrides
from autoretry.domain.models.policy import ResolvedPolicy
from autoretry.domain.models.profile import Randomized, RetryProfile

logger = logging.getLogger(__name__)


class PolicyResolver:
    """Resolves retry bindings into concrete, immutable policies

    Resolution is pure except for the RANDOM profile, whose delays are sampled
    from ``rng`` on every call.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        max_random_delay_ms: Optional[int] = None,
    ):
        """Initialize resolver

        Args:
            rng: Random source for randomized delays (a fresh Random if None)
            max_random_delay_ms: Overrides the upper bound of randomized profiles
        """
        if max_random_delay_ms is not None and max_random_delay_ms < 1:
            raise ValueError("max_random_delay_ms must be positive")
        self.rng = rng or random.Random()
        self.max_random_delay_ms = max_random_delay_ms

    def resolve(self, binding: Optional[RetryBinding], label: str = "operation") -> ResolvedPolicy:
        """Resolve the policy declared for an operation

        Args:
            binding: Declared binding, or None when the operation declares none
            label: Operation label used in log lines

        Returns:
            ResolvedPolicy for a single invocation
        """
        if binding is None:
            logger.debug(f"{label} > RetryPolicy is not set. Defaults to {DEFAULT_PROFILE.value}")
            return self.merge(PROFILE_CATALOG[DEFAULT_PROFILE], None, label)

        return self.merge(get_profile(binding.profile), binding, label)

    def merge(
        self,
        profile: RetryProfile,
        overrides: Optional[RetryOverrides] = None,
        label: str = "operation",
    ) -> ResolvedPolicy:
        """Merge profile defaults with caller overrides

        RANDOM profile: ``max_retries`` sets the number of sampled delays and
        ``delays`` is ignored. Fixed profiles: ``delays`` replaces the sequence
        and the retry count is always its length, so ``max_retries`` alone
        changes nothing.

        Args:
            profile: Catalog profile
            overrides: Optional caller overrides
            label: Operation label used in log lines

        Returns:
            ResolvedPolicy
        """
        nullable = overrides.nullable if overrides is not None else True

        if isinstance(profile.delay_mode, Randomized):
            max_retries = profile.default_max_retries
            if overrides is not None and overrides.max_retries is not None:
                max_retries = overrides.max_retries
            upper_bound = self.max_random_delay_ms or profile.delay_mode.upper_bound_ms
            delays = self._random_delays(max_retries, upper_bound)
        else:
            delays = list(profile.delay_mode.delays)
            if overrides is not None and overrides.delays is not None:
                delays = list(overrides.delays)

        policy = ResolvedPolicy(profile=profile.name, delays=tuple(delays), nullable=nullable)
        logger.debug(
            f"{label} > RetryPolicy(value={policy.profile.value}, "
            f"maxRetries={policy.max_retries}, delays={list(policy.delays)}, "
            f"nullable={policy.nullable})"
        )
        return policy

    def _random_delays(self, count: int, upper_bound: int) -> List[int]:
        """Sample ``count`` delays uniformly from [0, upper_bound)"""
        return [self.rng.randrange(upper_bound) for _ in range(count)]
