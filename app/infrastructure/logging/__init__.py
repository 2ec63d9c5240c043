"""Structured logging infrastructure.

Centralized logging configuration and utilities built on structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_logger(): Get a logger instance with a specific name
    - get_module_logger(): Get a logger for the calling module
    - bind_log_context(): Context manager for run-scoped logging
    - get_run_id(): Get current run ID from context
    - clear_log_context(): Clear all run-scoped context

Example:
    from infrastructure.logging import configure_logging, get_module_logger

    configure_logging()

    logger = get_module_logger()
    logger.info("module_initialized")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_logger,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_log_context,
    get_run_id,
    clear_log_context,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_module_logger",
    "bind_log_context",
    "get_run_id",
    "clear_log_context",
]
