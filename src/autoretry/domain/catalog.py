"""Catalog of the built-in retry profiles"""

from types import MappingProxyType
from typing import Mapping, Union

from autoretry.domain.models.profile import FixedSequence, ProfileName, Randomized, RetryProfile

# Upper bound for randomized delays (ms)
MAX_RANDOM_DELAY_MS = 1000

DEFAULT_PROFILE = ProfileName.CONSTANT

PROFILE_CATALOG: Mapping[ProfileName, RetryProfile] = MappingProxyType(
    {
        profile.name: profile
        for profile in (
            RetryProfile(ProfileName.CUSTOM, 3, FixedSequence((500, 500, 500))),
            # retry once with constant delay
            RetryProfile(ProfileName.ONE_TIME, 1, FixedSequence((1000,))),
            RetryProfile(ProfileName.CONSTANT, 3, FixedSequence((500, 500, 500))),
            RetryProfile(ProfileName.RANDOM, 3, Randomized(MAX_RANDOM_DELAY_MS)),
            # e.g. internal API calls
            RetryProfile(ProfileName.RAPID, 3, FixedSequence((10, 50, 100))),
            # e.g. external API calls
            RetryProfile(ProfileName.SLOW, 3, FixedSequence((100, 500, 1000))),
            # 10ms out to 1 minute, e.g. database access
            RetryProfile(
                ProfileName.SLOWING_DOWN,
                9,
                FixedSequence((10, 20, 30, 100, 500, 1000, 10000, 30000, 60000)),
            ),
        )
    }
)


def get_profile(name: Union[str, ProfileName]) -> RetryProfile:
    """Look up a catalog profile by name

    Args:
        name: ProfileName member or its (case-insensitive) string form

    Returns:
        RetryProfile from the catalog

    Raises:
        ValueError: If no profile has that name
    """
    return PROFILE_CATALOG[ProfileName.parse(name)]
