"""Retry policy declaration models."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator

from autoretry.domain.models.profile import ProfileName


class RetryOverrides(BaseModel):
    """Caller overrides applied on top of a retry profile.

    Attributes:
        max_retries: Number of retries (honoured by the RANDOM profile only)
        delays: Delay sequence in ms (ignored by the RANDOM profile)
        nullable: Whether None is an acceptable result
    """

    max_retries: Optional[int] = Field(None, ge=0)
    delays: Optional[List[NonNegativeInt]] = None
    nullable: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")


class RetryBinding(RetryOverrides):
    """Declarative retry policy bound to an operation.

    Attributes:
        profile: Catalog profile the overrides apply to
    """

    profile: ProfileName

    @field_validator("profile", mode="before")
    @classmethod
    def _parse_profile(cls, value):
        return ProfileName.parse(value)


class RetrySettings(BaseModel):
    """Configuration for retry policies.

    Attributes:
        max_random_delay_ms: Upper bound (exclusive) for randomized delays
        bindings: Retry bindings keyed by operation label ("<Type>.<method>")
    """

    max_random_delay_ms: int = Field(1000, gt=0)
    bindings: Dict[str, RetryBinding] = Field(default_factory=dict)
