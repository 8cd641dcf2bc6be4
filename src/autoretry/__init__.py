"""autoretry - policy driven retry execution core"""

from autoretry.application.policy_resolver import PolicyResolver
from autoretry.domain.catalog import DEFAULT_PROFILE, PROFILE_CATALOG, get_profile
from autoretry.domain.config.retry import RetryBinding, RetryOverrides
from autoretry.domain.models.policy import Attempt, ResolvedPolicy
from autoretry.domain.models.profile import FixedSequence, ProfileName, Randomized, RetryProfile
from autoretry.infrastructure.retry import RetryExecutor, auto_retry, wrap_with_retry

__all__ = [
    "Attempt",
    "DEFAULT_PROFILE",
    "FixedSequence",
    "PROFILE_CATALOG",
    "PolicyResolver",
    "ProfileName",
    "Randomized",
    "ResolvedPolicy",
    "RetryBinding",
    "RetryExecutor",
    "RetryOverrides",
    "RetryProfile",
    "auto_retry",
    "get_profile",
    "wrap_with_retry",
]
