"""Factory for creating attempt stores and policy evaluators from configuration."""

from typing import Optional

import structlog

from infrastructure.attempts.dynamodb_store import DynamoDBAttemptStore
from infrastructure.attempts.policy import RetryPolicyEvaluator, StoreFailureMode
from infrastructure.attempts.store import AttemptStore, InMemoryAttemptStore
from infrastructure.configuration import Settings
from infrastructure.services.providers import get_dynamodb_client, get_settings

logger = structlog.get_logger()


def create_attempt_store(
    backend: Optional[str] = None, settings: Optional[Settings] = None
) -> AttemptStore:
    """Create the attempt store selected by configuration.

    Args:
        backend: Optional backend override (memory, dynamodb).
                If None, uses settings.attempts.backend
        settings: Optional settings instance, defaults to get_settings()

    Returns:
        A new AttemptStore implementation

    Raises:
        ValueError: If an unknown backend is specified

    Examples:
        >>> store = create_attempt_store()  # Uses settings.attempts.backend
        >>> store = create_attempt_store(backend="memory")  # Force memory
    """
    settings = settings or get_settings()
    backend = (backend or settings.attempts.backend).strip().lower()

    if backend == "memory":
        logger.info("creating_in_memory_attempt_store")
        return InMemoryAttemptStore()

    elif backend == "dynamodb":
        logger.info(
            "creating_dynamodb_attempt_store",
            table_name=settings.attempts.dynamodb_table_name,
        )
        return DynamoDBAttemptStore(
            client=get_dynamodb_client(),
            table_name=settings.attempts.dynamodb_table_name,
            ttl_days=settings.attempts.dynamodb_ttl_days,
        )

    else:
        raise ValueError(
            f"Unknown attempts backend: {backend}. Supported: memory, dynamodb"
        )


def create_policy_evaluator(
    store: Optional[AttemptStore] = None, settings: Optional[Settings] = None
) -> RetryPolicyEvaluator:
    """Create a policy evaluator with the configured store failure mode.

    Args:
        store: Attempt store to evaluate against. Built with
            create_attempt_store() when omitted.
        settings: Optional settings instance, defaults to get_settings()
    """
    settings = settings or get_settings()
    if store is None:
        store = create_attempt_store(settings=settings)
    mode = StoreFailureMode(settings.attempts.store_failure_mode)
    logger.info(
        "creating_retry_policy_evaluator",
        store=type(store).__name__,
        store_failure_mode=mode.value,
    )
    return RetryPolicyEvaluator(store, store_failure_mode=mode)
