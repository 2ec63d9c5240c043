"""Operation status enumeration.

Status codes returned by store backends and wrapped business operations.
The attempt engine treats anything other than SUCCESS as a failed outcome.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, throttling)
        PERMANENT_ERROR: Non-retryable error (validation, bad input)
        UNAUTHORIZED: Authentication or authorization failure
        NOT_FOUND: Resource or table not found
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
