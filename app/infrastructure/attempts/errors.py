"""Custom exceptions for the attempt gating system.

All attempt gate exceptions inherit from AttemptGateError so drivers can
handle engine failures separately from business-operation failures.
"""

from typing import Any, Optional


class AttemptGateError(Exception):
    """Base exception for all attempt gate errors.

    Example:
        try:
            gated_checkout(context, visit)
        except AttemptGateError as e:
            logger.error("attempt_gate_error", error=str(e))
    """

    pass


class InvalidPolicyError(AttemptGateError, ValueError):
    """Raised when a job is configured with a non-positive max attempts.

    Example:
        >>> new_context("nightly-checkout", 0)
        Traceback (most recent call last):
        ...
        InvalidPolicyError: max_attempts must be a positive integer, got 0
    """

    pass


class InvalidKeyError(AttemptGateError, ValueError):
    """Raised when a job or resource identifier is empty.

    Aborts only the call that carried the malformed key.
    """

    pass


class StoreUnavailableError(AttemptGateError):
    """Raised when the attempt ledger cannot be read or written.

    Attributes:
        message: human-friendly message
        response: the OperationResult returned by the backing client, if any
    """

    def __init__(self, message: str, response: Optional[Any] = None):
        super().__init__(message)
        self.response = response


class BindingError(AttemptGateError):
    """Raised for invalid, duplicate or unknown operation bindings."""

    pass
