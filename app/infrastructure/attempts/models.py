"""Attempt gating models.

Core data structures shared by the attempt store, the policy evaluator and
the interception layer. Records are immutable: every increment produces a
new AttemptRecord, so readers never observe a partially written value.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from infrastructure.attempts.errors import InvalidKeyError, InvalidPolicyError


class AttemptOutcome(Enum):
    """Outcome of the most recent attempt on a resource.

    Values:
        NONE: Resource has never been attempted
        SUCCESS: Last attempt completed successfully
        FAILURE: Last attempt failed (see AttemptRecord.last_error)
    """

    NONE = "none"
    SUCCESS = "success"
    FAILURE = "failure"


class Decision(Enum):
    """Gate decision for a single resource. Never persisted."""

    ALLOW = "allow"
    SKIP = "skip"


def validate_max_attempts(max_attempts: Any) -> int:
    """Validate a per-job max attempts threshold.

    Args:
        max_attempts: Configured threshold

    Returns:
        The threshold, unchanged

    Raises:
        InvalidPolicyError: If the value is not a positive integer
    """
    if (
        isinstance(max_attempts, bool)
        or not isinstance(max_attempts, int)
        or max_attempts <= 0
    ):
        raise InvalidPolicyError(
            f"max_attempts must be a positive integer, got {max_attempts!r}"
        )
    return max_attempts


def validate_key(value: Any, name: str) -> str:
    """Validate one half of a (job_id, resource_id) ledger key.

    Raises:
        InvalidKeyError: If the value is None, not a string, or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidKeyError(f"{name} must be a non-empty string, got {value!r}")
    return value


@dataclass(frozen=True)
class RetryJobContext:
    """One execution of a retryable batch job.

    Created once by the batch driver at job start and shared read-only with
    every intercepted call of the run.

    Fields:
        job_id: Opaque identifier, stable for the lifetime of the run
        max_attempts: Positive per-job threshold of allowed attempts
    """

    job_id: str
    max_attempts: int

    def __post_init__(self) -> None:
        validate_key(self.job_id, "job_id")
        validate_max_attempts(self.max_attempts)


@dataclass(frozen=True)
class ResourceRef:
    """Business entity being retried (a visit, a visitor record, ...).

    Fields:
        resource_id: Stable identity key, unique within a job's scope
        payload: The domain object itself, opaque to the attempt gate
    """

    resource_id: str
    payload: Any = None


def resource_id_of(resource: Any) -> str:
    """Default resource-key extractor.

    Understands ResourceRef instances, objects exposing ``resource_id``,
    mappings with a ``"resource_id"`` key and plain string identifiers.

    Raises:
        InvalidKeyError: If no non-empty identifier can be found
    """
    if isinstance(resource, str):
        resource_id = resource
    elif isinstance(resource, Mapping):
        resource_id = resource.get("resource_id")
    else:
        resource_id = getattr(resource, "resource_id", None)
    return validate_key(resource_id, "resource_id")


@dataclass(frozen=True)
class AttemptRecord:
    """Ledger entry for one (job_id, resource_id) pair.

    A missing ledger row is equivalent to ``AttemptRecord.empty(...)``.

    Fields:
        job_id: Owning job
        resource_id: Attempted resource
        attempt_count: Non-negative, never decreases
        last_outcome: Outcome of the most recent attempt
        last_error: Diagnostic detail, only when last_outcome is FAILURE
        updated_at: When the last attempt was recorded
    """

    job_id: str
    resource_id: str
    attempt_count: int = 0
    last_outcome: AttemptOutcome = AttemptOutcome.NONE
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.attempt_count < 0:
            raise ValueError("attempt_count must be non-negative")
        if self.last_error is not None and self.last_outcome != AttemptOutcome.FAILURE:
            raise ValueError("last_error is only allowed for FAILURE outcomes")

    @classmethod
    def empty(cls, job_id: str, resource_id: str) -> "AttemptRecord":
        """Zero-state record for a resource that was never attempted."""
        return cls(job_id=job_id, resource_id=resource_id)

    @property
    def key(self) -> tuple[str, str]:
        return (self.job_id, self.resource_id)
