"""Configuration manager for loading and validating .auto-retry.yml"""

import copy
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from autoretry.application.policy_resolver import PolicyResolver
from autoretry.domain.config import AppConfig, RetryBinding, RetrySettings

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".auto-retry.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages retry configuration from .auto-retry.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .auto-retry.yml file (searched from current directory)
    3. Environment variables (AUTORETRY_*)
    """

    DEFAULT_CONFIG = {
        "retry": {
            "max_random_delay_ms": 1000,
            "bindings": {},
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .auto-retry.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .auto-retry.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file is not valid YAML
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Failed to parse {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"{self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        if os.getenv("AUTORETRY_MAX_RANDOM_DELAY_MS"):
            # Pydantic validates and coerces the value
            config["retry"]["max_random_delay_ms"] = os.getenv("AUTORETRY_MAX_RANDOM_DELAY_MS")
        return config

    def get_retry_settings(self) -> RetrySettings:
        """Get retry configuration

        Returns:
            Retry settings model
        """
        return self.config.retry

    def get_binding(self, label: str) -> Optional[RetryBinding]:
        """Get the retry binding declared for an operation label

        Args:
            label: Operation label, e.g. "PaymentClient.charge"

        Returns:
            RetryBinding or None when the operation declares none
        """
        return self.config.retry.bindings.get(label)

    def create_resolver(self, rng: Optional[random.Random] = None) -> PolicyResolver:
        """Create a policy resolver honouring the configured random delay bound"""
        return PolicyResolver(rng=rng, max_random_delay_ms=self.config.retry.max_random_delay_ms)
