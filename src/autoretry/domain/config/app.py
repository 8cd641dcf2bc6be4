"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from autoretry.domain.config.retry import RetrySettings


class AppConfig(BaseModel):
    """Main application configuration.

    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry policy configuration
    """

    retry: RetrySettings = Field(default_factory=RetrySettings)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "max_random_delay_ms": 1000,
                    "bindings": {
                        "PaymentClient.charge": {
                            "profile": "SLOW",
                            "nullable": False,
                        },
                        "InventoryRepository.load": {
                            "profile": "RANDOM",
                            "max_retries": 5,
                        },
                    },
                },
            }
        },
    )
