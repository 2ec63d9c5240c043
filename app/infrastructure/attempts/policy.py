"""Retry policy evaluation.

Pure decision logic over the attempt ledger: ALLOW a resource while its
attempt count is below the job's threshold, SKIP it from then on. The only
side effect is ``record_outcome``, which delegates to the store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

from infrastructure.attempts.errors import StoreUnavailableError
from infrastructure.attempts.models import (
    AttemptOutcome,
    AttemptRecord,
    Decision,
    RetryJobContext,
    resource_id_of,
    validate_max_attempts,
)
from infrastructure.attempts.store import AttemptStore
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class StoreFailureMode(Enum):
    """What a gate check does when the ledger cannot be read.

    Values:
        FAIL_CLOSED: Treat the resource as SKIP (default, bounds retries)
        FAIL_OPEN: Treat the resource as ALLOW and log a warning
        RAISE: Propagate StoreUnavailableError to the caller
    """

    FAIL_CLOSED = "fail_closed"
    FAIL_OPEN = "fail_open"
    RAISE = "raise"


@dataclass(frozen=True)
class EligibilityPartition:
    """Result of proactive filtering; both lists keep input order."""

    eligible: List[Any] = field(default_factory=list)
    skipped: List[Any] = field(default_factory=list)


def describe_error(error: Union[BaseException, str, None]) -> Optional[str]:
    """Render a failure as ledger error detail.

    Exceptions become ``"ExceptionType: message"``; strings pass through.
    """
    if error is None or isinstance(error, str):
        return error
    message = str(error)
    if message:
        return f"{type(error).__name__}: {message}"
    return type(error).__name__


class RetryPolicyEvaluator:
    """Decides ALLOW/SKIP for resources of a job and records attempts.

    Attributes:
        store: AttemptStore holding the ledger
        store_failure_mode: Explicit policy for an unreadable ledger
        resource_key: Extracts the resource_id from a resource object
    """

    def __init__(
        self,
        store: AttemptStore,
        store_failure_mode: StoreFailureMode = StoreFailureMode.FAIL_CLOSED,
        resource_key: Callable[[Any], str] = resource_id_of,
    ) -> None:
        self.store = store
        self.store_failure_mode = StoreFailureMode(store_failure_mode)
        self.resource_key = resource_key

    def evaluate(self, context: RetryJobContext, record: AttemptRecord) -> Decision:
        """Decide whether a resource with this record may be attempted again.

        A job with max_attempts = N permits exactly N attempts: counts
        0..N-1 are ALLOW, count N and above are SKIP.

        Raises:
            InvalidPolicyError: If the context carries a non-positive threshold
            ValueError: If the record belongs to another job
        """
        max_attempts = validate_max_attempts(context.max_attempts)
        if record.job_id != context.job_id:
            raise ValueError(
                f"Record for job {record.job_id!r} evaluated under job {context.job_id!r}"
            )
        if record.attempt_count >= max_attempts:
            return Decision.SKIP
        return Decision.ALLOW

    def check_one(self, context: RetryJobContext, resource: Any) -> Decision:
        """Reactive gate for a single resource, right before it is processed."""
        resource_id = self.resource_key(resource)
        decision = self._decide(context, resource_id)
        if decision == Decision.SKIP:
            logger.info(
                "resource_skipped",
                job_id=context.job_id,
                resource_id=resource_id,
                max_attempts=context.max_attempts,
            )
        return decision

    def filter_eligible(
        self, context: RetryJobContext, resources: Iterable[Any]
    ) -> EligibilityPartition:
        """Partition a batch into eligible and skipped resources.

        Used by the proactive path, which inspects the whole collection
        before any element is processed. Relative input order is preserved
        within each partition.
        """
        validate_max_attempts(context.max_attempts)
        eligible: List[Any] = []
        skipped: List[Any] = []

        for resource in resources:
            resource_id = self.resource_key(resource)
            if self._decide(context, resource_id) == Decision.ALLOW:
                eligible.append(resource)
            else:
                skipped.append(resource)

        logger.debug(
            "resources_filtered",
            job_id=context.job_id,
            eligible_count=len(eligible),
            skipped_count=len(skipped),
        )
        return EligibilityPartition(eligible=eligible, skipped=skipped)

    def record_outcome(
        self,
        context: RetryJobContext,
        resource: Any,
        outcome: AttemptOutcome,
        error: Union[BaseException, str, None] = None,
    ) -> AttemptRecord:
        """Record one actual attempt of a resource.

        Must be called exactly once per real invocation of the wrapped
        operation and never for a skipped resource.

        Raises:
            StoreUnavailableError: Always propagated, whatever the failure mode
        """
        resource_id = self.resource_key(resource)
        error_detail = describe_error(error) if outcome == AttemptOutcome.FAILURE else None
        record = self.store.increment(
            context.job_id, resource_id, outcome, error_detail
        )

        log = logger.warning if outcome == AttemptOutcome.FAILURE else logger.info
        log(
            "attempt_recorded",
            job_id=context.job_id,
            resource_id=resource_id,
            outcome=outcome.value,
            attempt_count=record.attempt_count,
            max_attempts=context.max_attempts,
            error=error_detail,
        )
        if record.attempt_count >= context.max_attempts:
            logger.info(
                "resource_attempts_exhausted",
                job_id=context.job_id,
                resource_id=resource_id,
                attempt_count=record.attempt_count,
            )
        return record

    def get_record(self, context: RetryJobContext, resource: Any) -> AttemptRecord:
        """Current ledger record of a resource (for observability/reporting)."""
        return self.store.get(context.job_id, self.resource_key(resource))

    def _decide(self, context: RetryJobContext, resource_id: str) -> Decision:
        try:
            record = self.store.get(context.job_id, resource_id)
        except StoreUnavailableError as e:
            if self.store_failure_mode == StoreFailureMode.RAISE:
                raise
            if self.store_failure_mode == StoreFailureMode.FAIL_OPEN:
                logger.warning(
                    "store_unavailable_fail_open",
                    job_id=context.job_id,
                    resource_id=resource_id,
                    error=str(e),
                )
                return Decision.ALLOW
            logger.warning(
                "store_unavailable_fail_closed",
                job_id=context.job_id,
                resource_id=resource_id,
                error=str(e),
            )
            return Decision.SKIP
        return self.evaluate(context, record)
