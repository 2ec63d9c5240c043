"""Job-run context binding for structured logging.

Binds job-scoped identifiers to every log entry emitted while a batch
job is running, so attempt decisions can be correlated per run.

Usage:
    from infrastructure.logging import bind_log_context

    with bind_log_context(job_id="nightly-checkout", run_id="run-42"):
        logger.info("processing_batch")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_log_context(
    run_id: Optional[str] = None,
    job_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind run-scoped context to all logs within the context manager.

    Args:
        run_id: Unique identifier for this run. Auto-generated if not provided.
        job_id: Job identifier (if known).
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        None - context is bound to structlog's context vars for the block.
    """
    context: dict[str, Any] = {"run_id": run_id or str(uuid.uuid4())}

    if job_id is not None:
        context["job_id"] = job_id

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_run_id() -> Optional[str]:
    """Get the current run ID from the logging context."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("run_id")


def clear_log_context() -> None:
    """Clear all run-scoped context from the logging context."""
    structlog.contextvars.clear_contextvars()
