"""Batch runner for retryable jobs.

Drives one run of a batch job through the interception layer: every
resource is gated reactively, processed, and its attempt recorded. The
runner is the reference driver for the attempt gate; jobs with custom call
shapes register their own OperationBinding instead.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Tuple

import structlog

from infrastructure.attempts.context import bind_job_context
from infrastructure.attempts.errors import AttemptGateError, InvalidKeyError
from infrastructure.attempts.interception import (
    ArgumentRole,
    AttemptInterceptor,
    BindingRegistry,
    InterceptionMode,
    OperationBinding,
    detect_operation_failure,
    is_skipped,
)
from infrastructure.attempts.models import RetryJobContext
from infrastructure.attempts.policy import RetryPolicyEvaluator, describe_error

logger = structlog.get_logger()

ResourceOperation = Callable[[RetryJobContext, Any], Any]

_SUCCEEDED = "succeeded"
_FAILED = "failed"
_SKIPPED = "skipped"
_REJECTED = "rejected"


@dataclass
class BatchSummary:
    """Outcome of one batch run.

    Resource ids are listed in input order. ``errors`` maps the id of every
    failed resource to its error detail. ``rejected`` counts resources
    without a usable identifier; they are never attempted or recorded.
    """

    job_id: str
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    rejected: int = 0

    def as_stats(self) -> dict:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "rejected": self.rejected,
        }


class AttemptBatchRunner:
    """Processes the resources of a job with attempt gating.

    Attributes:
        evaluator: RetryPolicyEvaluator shared by every run
        max_workers: Thread pool size; 1 processes resources sequentially
        runner_id: Identifier for this runner (for logging and its binding)
        interceptor: AttemptInterceptor holding the runner's reactive binding
    """

    def __init__(
        self,
        evaluator: RetryPolicyEvaluator,
        max_workers: int = 1,
        runner_id: str = "attempt-batch-1",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.evaluator = evaluator
        self.max_workers = max_workers
        self.runner_id = runner_id
        self.log = logger.bind(component="attempt_batch_runner", runner_id=runner_id)
        registry = BindingRegistry()
        registry.register(
            OperationBinding(
                operation_id=runner_id,
                context=ArgumentRole("context", 0),
                resource=ArgumentRole("resource", 1),
                check=InterceptionMode.REACTIVE,
                update=True,
            )
        )
        self.interceptor = AttemptInterceptor(evaluator, registry)

    def run(
        self,
        context: RetryJobContext,
        resources: Iterable[Any],
        operation: ResourceOperation,
    ) -> BatchSummary:
        """Run operation(context, resource) for every eligible resource.

        A business failure of one resource never aborts its siblings: it is
        recorded as FAILURE and reported in the summary. Ledger failures
        (StoreUnavailableError) propagate.

        Args:
            context: Job context of this run
            resources: Resources to process, any iterable
            operation: Business operation called as operation(context, resource)

        Returns:
            BatchSummary of the run
        """

        def call(job_context: RetryJobContext, resource: Any) -> Any:
            return operation(job_context, resource)

        gated = self.interceptor.wrap(self.runner_id, call)

        def process(resource: Any) -> Tuple[str, str, str]:
            try:
                resource_id = self.evaluator.resource_key(resource)
            except InvalidKeyError as e:
                self.log.warning("batch_resource_rejected", error=str(e))
                return _REJECTED, "", ""
            try:
                result = gated(context, resource)
            except AttemptGateError:
                raise
            except Exception as e:
                return _FAILED, resource_id, describe_error(e)
            if is_skipped(result):
                return _SKIPPED, resource_id, ""
            error_detail = detect_operation_failure(result)
            if error_detail is not None:
                return _FAILED, resource_id, error_detail
            return _SUCCEEDED, resource_id, ""

        summary = BatchSummary(job_id=context.job_id)
        with bind_job_context(context, runner_id=self.runner_id):
            self.log.info("attempt_batch_start", max_workers=self.max_workers)

            if self.max_workers == 1:
                outcomes = [process(resource) for resource in resources]
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    outcomes = list(executor.map(process, resources))

            for status, resource_id, error_detail in outcomes:
                if status == _REJECTED:
                    summary.rejected += 1
                    continue
                getattr(summary, status).append(resource_id)
                if status == _FAILED:
                    summary.errors[resource_id] = error_detail

            self.log.info("attempt_batch_complete", **summary.as_stats())
        return summary
