"""Configuration models with Pydantic validation."""

from autoretry.domain.config.app import AppConfig
from autoretry.domain.config.retry import RetryBinding, RetryOverrides, RetrySettings

__all__ = [
    "AppConfig",
    "RetryBinding",
    "RetryOverrides",
    "RetrySettings",
]
