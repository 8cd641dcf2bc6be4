"""ResolvedPolicy model - the concrete policy driving one retry session"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from autoretry.domain.models.profile import ProfileName


@dataclass(frozen=True)
class ResolvedPolicy:
    """Profile defaults merged with caller overrides

    Created fresh for every invocation and discarded once the retry loop ends.

    Attributes:
        profile: Profile the policy was resolved from
        delays: Delay before each retry in milliseconds
        nullable: Whether a None result is an acceptable success
    """

    profile: ProfileName
    delays: Tuple[int, ...]
    nullable: bool = True

    def __post_init__(self):
        object.__setattr__(self, "delays", tuple(self.delays))

    @property
    def max_retries(self) -> int:
        """Number of retries after the first attempt (0 = single attempt)"""
        return len(self.delays)

    def delay_for(self, index: int) -> int:
        """Delay in milliseconds to wait before retry number ``index + 1``

        Raises:
            IndexError: If index is outside [0, max_retries)
        """
        if not 0 <= index < len(self.delays):
            raise IndexError(
                f"No delay for attempt index {index} (max retries: {len(self.delays)})"
            )
        return self.delays[index]

    def accepts(self, result: Any) -> bool:
        """Check if a returned value ends the retry loop"""
        return result is not None or self.nullable


@dataclass(frozen=True)
class Attempt:
    """One invocation of the operation inside a retry session"""

    index: int
    result: Any = None
    error: Optional[BaseException] = None
    next_delay_ms: Optional[int] = None  # None when no further attempt follows

    @property
    def failed(self) -> bool:
        return self.error is not None
