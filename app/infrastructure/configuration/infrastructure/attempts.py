"""Attempt ledger infrastructure settings."""

from typing import Optional

from pydantic import Field, field_validator

from infrastructure.configuration.base import InfrastructureSettings

SUPPORTED_BACKENDS = ("memory", "dynamodb")
SUPPORTED_FAILURE_MODES = ("fail_closed", "fail_open", "raise")


class AttemptSettings(InfrastructureSettings):
    """Attempt gating configuration for retryable batch jobs.

    Controls where per-resource attempt counts are persisted and what
    happens when the ledger cannot be read. The maximum number of attempts
    is configured per job when the driver creates its context; the value
    here is only the default used by ``context_from_settings``.

    Environment Variables:
        ATTEMPTS_BACKEND: Ledger backend - 'memory' or 'dynamodb'
        ATTEMPTS_DYNAMODB_TABLE_NAME: DynamoDB table name (dynamodb backend)
        ATTEMPTS_DYNAMODB_TTL_DAYS: Optional TTL stamped on ledger rows
        ATTEMPTS_DEFAULT_MAX_ATTEMPTS: Default per-job max attempts (default: 3)
        ATTEMPTS_STORE_FAILURE_MODE: 'fail_closed' (default), 'fail_open' or 'raise'

    Store failure modes:
        - fail_closed: an unreadable ledger SKIPs the resource
        - fail_open: an unreadable ledger ALLOWs the resource (with a warning)
        - raise: StoreUnavailableError propagates to the driver

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        backend = settings.attempts.backend
        mode = settings.attempts.store_failure_mode
        ```
    """

    backend: str = Field(
        default="memory",
        alias="ATTEMPTS_BACKEND",
        description="Attempt ledger backend: 'memory' or 'dynamodb'",
    )
    dynamodb_table_name: str = Field(
        default="batch-attempt-ledger",
        alias="ATTEMPTS_DYNAMODB_TABLE_NAME",
        description="DynamoDB table name for attempt records",
    )
    dynamodb_ttl_days: Optional[int] = Field(
        default=None,
        alias="ATTEMPTS_DYNAMODB_TTL_DAYS",
        description="Days until DynamoDB expires ledger rows (unset keeps them)",
    )
    default_max_attempts: int = Field(
        default=3,
        alias="ATTEMPTS_DEFAULT_MAX_ATTEMPTS",
        description="Default maximum attempts per resource for a job",
    )
    store_failure_mode: str = Field(
        default="fail_closed",
        alias="ATTEMPTS_STORE_FAILURE_MODE",
        description="Behavior when the ledger is unavailable",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, value: str) -> str:
        """Normalize and validate the backend name."""
        value = value.strip().lower()
        if value not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unknown attempts backend: {value}. Supported: memory, dynamodb"
            )
        return value

    @field_validator("default_max_attempts")
    @classmethod
    def validate_default_max_attempts(cls, value: int) -> int:
        """Reject non-positive defaults."""
        if value < 1:
            raise ValueError("default_max_attempts must be at least 1")
        return value

    @field_validator("store_failure_mode")
    @classmethod
    def validate_store_failure_mode(cls, value: str) -> str:
        """Normalize and validate the store failure mode."""
        value = value.strip().lower()
        if value not in SUPPORTED_FAILURE_MODES:
            raise ValueError(
                f"Unknown store failure mode: {value}. "
                f"Supported: {', '.join(SUPPORTED_FAILURE_MODES)}"
            )
        return value

    @field_validator("dynamodb_ttl_days")
    @classmethod
    def validate_ttl_days(cls, value: Optional[int]) -> Optional[int]:
        """TTL, when set, must be at least one day."""
        if value is not None and value < 1:
            raise ValueError("dynamodb_ttl_days must be at least 1")
        return value
