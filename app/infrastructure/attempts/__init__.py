"""Attempt gating for retryable batch jobs.

Tracks, per job and per resource, how many times an operation has been
attempted and stops re-attempting a resource once the job's max attempts
is reached. Only the failing resources of a job are re-tried on the next
run; resources that exhausted their attempts are skipped and reported.

Architecture:
- RetryJobContext: One run of a batch job (job_id, max_attempts)
- AttemptRecord: Ledger entry per (job_id, resource_id)
- AttemptStore: Ledger interface with in-memory and DynamoDB implementations
- RetryPolicyEvaluator: ALLOW/SKIP decisions and attempt recording
- AttemptInterceptor: Wraps registered operations (check -> execute -> update)
- AttemptBatchRunner: Reference driver processing a job's resources

Usage:
    from infrastructure.attempts import (
        AttemptBatchRunner,
        create_policy_evaluator,
        new_context,
    )

    evaluator = create_policy_evaluator()
    context = new_context("nightly-checkout-2024-06-01", max_attempts=3)

    runner = AttemptBatchRunner(evaluator, max_workers=4)
    summary = runner.run(context, visits, checkout_visit)
"""

from infrastructure.attempts.errors import (
    AttemptGateError,
    BindingError,
    InvalidKeyError,
    InvalidPolicyError,
    StoreUnavailableError,
)
from infrastructure.attempts.models import (
    AttemptOutcome,
    AttemptRecord,
    Decision,
    ResourceRef,
    RetryJobContext,
    resource_id_of,
)
from infrastructure.attempts.store import AttemptStore, InMemoryAttemptStore
from infrastructure.attempts.dynamodb_store import DynamoDBAttemptStore
from infrastructure.attempts.policy import (
    EligibilityPartition,
    RetryPolicyEvaluator,
    StoreFailureMode,
)
from infrastructure.attempts.interception import (
    SKIPPED,
    ArgumentRole,
    AttemptInterceptor,
    BindingRegistry,
    InterceptionMode,
    OperationBinding,
    SkipReport,
    detect_operation_failure,
    is_skipped,
)
from infrastructure.attempts.context import (
    bind_job_context,
    context_from_settings,
    new_context,
)
from infrastructure.attempts.batch import AttemptBatchRunner, BatchSummary
from infrastructure.attempts.factory import (
    create_attempt_store,
    create_policy_evaluator,
)

__all__ = [
    # Errors
    "AttemptGateError",
    "BindingError",
    "InvalidKeyError",
    "InvalidPolicyError",
    "StoreUnavailableError",
    # Models
    "AttemptOutcome",
    "AttemptRecord",
    "Decision",
    "ResourceRef",
    "RetryJobContext",
    "resource_id_of",
    # Store
    "AttemptStore",
    "InMemoryAttemptStore",
    "DynamoDBAttemptStore",
    # Policy
    "EligibilityPartition",
    "RetryPolicyEvaluator",
    "StoreFailureMode",
    # Interception
    "SKIPPED",
    "ArgumentRole",
    "AttemptInterceptor",
    "BindingRegistry",
    "InterceptionMode",
    "OperationBinding",
    "SkipReport",
    "detect_operation_failure",
    "is_skipped",
    # Context
    "bind_job_context",
    "context_from_settings",
    "new_context",
    # Runner
    "AttemptBatchRunner",
    "BatchSummary",
    # Factory
    "create_attempt_store",
    "create_policy_evaluator",
]
