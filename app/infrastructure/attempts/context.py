"""Retry-aware job context.

The batch driver creates one RetryJobContext per run and passes it
explicitly to every binding and runner that operates on the job.
"""

from contextlib import contextmanager
from typing import Any, Generator, Optional

from infrastructure.attempts.models import RetryJobContext
from infrastructure.configuration import Settings
from infrastructure.logging import bind_log_context, get_module_logger

logger = get_module_logger()


def new_context(job_id: str, max_attempts: int) -> RetryJobContext:
    """Create the context for one run of a retryable batch job.

    Args:
        job_id: Stable identifier of the run
        max_attempts: Allowed attempts per resource, must be positive

    Raises:
        InvalidPolicyError: If max_attempts is not a positive integer
        InvalidKeyError: If job_id is empty
    """
    context = RetryJobContext(job_id=job_id, max_attempts=max_attempts)
    logger.info(
        "retry_job_context_created",
        job_id=context.job_id,
        max_attempts=context.max_attempts,
    )
    return context


def context_from_settings(
    job_id: str, settings: Optional[Settings] = None
) -> RetryJobContext:
    """Create a context using the configured default max attempts."""
    if settings is None:
        from infrastructure.services.providers import get_settings

        settings = get_settings()
    return new_context(job_id, settings.attempts.default_max_attempts)


@contextmanager
def bind_job_context(
    context: RetryJobContext, **extra_context: Any
) -> Generator[RetryJobContext, None, None]:
    """Bind job_id and max_attempts to every log entry within the block."""
    with bind_log_context(
        job_id=context.job_id,
        max_attempts=context.max_attempts,
        **extra_context,
    ):
        yield context
