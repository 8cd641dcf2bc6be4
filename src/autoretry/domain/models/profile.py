"""RetryProfile model - a named retry profile of the catalog"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class ProfileName(str, Enum):
    """Names of the retry profiles available in the catalog"""

    CUSTOM = "CUSTOM"
    ONE_TIME = "ONE_TIME"
    CONSTANT = "CONSTANT"
    RANDOM = "RANDOM"
    RAPID = "RAPID"
    SLOW = "SLOW"
    SLOWING_DOWN = "SLOWING_DOWN"

    @classmethod
    def parse(cls, value: Union[str, "ProfileName"]) -> "ProfileName":
        """Parse a profile name

        Matching is case-insensitive and accepts the legacy ``<NAME>_RETRY``
        spelling (e.g. ``CONSTANT_RETRY``).

        Args:
            value: Profile name or ProfileName member

        Returns:
            ProfileName member

        Raises:
            ValueError: If the name does not match any profile
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().upper().replace("-", "_")
        if normalized.endswith("_RETRY"):
            normalized = normalized[: -len("_RETRY")]

        try:
            return cls(normalized)
        except ValueError:
            available = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown retry profile: {value}. Available profiles: {available}"
            ) from None


@dataclass(frozen=True)
class FixedSequence:
    """Delays taken in order from a fixed sequence (milliseconds)"""

    delays: Tuple[int, ...]

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        object.__setattr__(self, "delays", tuple(self.delays))
        if any(delay < 0 for delay in self.delays):
            raise ValueError(f"delays must be non-negative: {self.delays}")


@dataclass(frozen=True)
class Randomized:
    """Delays sampled uniformly from [0, upper_bound_ms)"""

    upper_bound_ms: int = 1000

    def __post_init__(self):
        if self.upper_bound_ms < 1:
            raise ValueError(f"upper_bound_ms must be positive: {self.upper_bound_ms}")


DelayMode = Union[FixedSequence, Randomized]


@dataclass(frozen=True)
class RetryProfile:
    """Catalog entry describing default retry behaviour

    Attributes:
        name: Profile name
        default_max_retries: Number of retries when the caller does not override it
        delay_mode: Fixed delay sequence or randomized delays
    """

    name: ProfileName
    default_max_retries: int
    delay_mode: DelayMode

    def __post_init__(self):
        if self.default_max_retries < 0:
            raise ValueError(
                f"{self.name.value}: default_max_retries must be non-negative"
            )
        if (
            isinstance(self.delay_mode, FixedSequence)
            and len(self.delay_mode.delays) != self.default_max_retries
        ):
            raise ValueError(
                f"{self.name.value}: expected {self.default_max_retries} delays, "
                f"got {len(self.delay_mode.delays)}"
            )

    @property
    def is_randomized(self) -> bool:
        """Check if delays are sampled at resolution time"""
        return isinstance(self.delay_mode, Randomized)

    def describe(self) -> str:
        """Human readable summary of the profile"""
        if isinstance(self.delay_mode, Randomized):
            delays = f"random [0, {self.delay_mode.upper_bound_ms}) ms"
        elif self.delay_mode.delays:
            delays = ", ".join(str(d) for d in self.delay_mode.delays) + " ms"
        else:
            delays = "no delays"
        return f"{self.name.value}: {self.default_max_retries} retries, {delays}"
