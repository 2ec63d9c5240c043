"""Shared fixtures for attempt gating tests."""

from typing import Optional
from unittest.mock import MagicMock

import pytest

from infrastructure.attempts import (
    AttemptOutcome,
    AttemptRecord,
    InMemoryAttemptStore,
    ResourceRef,
    RetryJobContext,
    RetryPolicyEvaluator,
    StoreFailureMode,
)
from infrastructure.operations import OperationResult


@pytest.fixture
def job_context_factory():
    """Factory for creating RetryJobContext instances."""

    def _factory(
        job_id: str = "nightly-checkout", max_attempts: int = 3
    ) -> RetryJobContext:
        return RetryJobContext(job_id=job_id, max_attempts=max_attempts)

    return _factory


@pytest.fixture
def job_context(job_context_factory):
    return job_context_factory()


@pytest.fixture
def resource_factory():
    """Factory for creating ResourceRef instances."""

    def _factory(resource_id: str = "visit-1", payload=None) -> ResourceRef:
        if payload is None:
            payload = {"visit_id": resource_id}
        return ResourceRef(resource_id=resource_id, payload=payload)

    return _factory


@pytest.fixture
def attempt_record_factory():
    """Factory for creating AttemptRecord instances."""

    def _factory(
        job_id: str = "nightly-checkout",
        resource_id: str = "visit-1",
        attempt_count: int = 0,
        last_outcome: AttemptOutcome = AttemptOutcome.NONE,
        last_error: Optional[str] = None,
    ) -> AttemptRecord:
        return AttemptRecord(
            job_id=job_id,
            resource_id=resource_id,
            attempt_count=attempt_count,
            last_outcome=last_outcome,
            last_error=last_error,
        )

    return _factory


@pytest.fixture
def attempt_store():
    """Create a fresh InMemoryAttemptStore for testing."""
    return InMemoryAttemptStore()


@pytest.fixture
def seed_attempts(attempt_store):
    """Record a number of failed attempts for a resource."""

    def _seed(job_id: str, resource_id: str, count: int) -> None:
        for i in range(count):
            attempt_store.increment(
                job_id, resource_id, AttemptOutcome.FAILURE, f"seeded failure {i + 1}"
            )

    return _seed


@pytest.fixture
def evaluator(attempt_store):
    """Policy evaluator over the in-memory store (fail closed)."""
    return RetryPolicyEvaluator(attempt_store)


@pytest.fixture
def failing_store():
    """Store whose every call raises StoreUnavailableError."""
    from infrastructure.attempts import StoreUnavailableError

    store = MagicMock()
    store.get.side_effect = StoreUnavailableError("ledger unreachable")
    store.increment.side_effect = StoreUnavailableError("ledger unreachable")
    return store


@pytest.fixture
def evaluator_factory(attempt_store):
    """Factory for evaluators with a chosen store and failure mode."""

    def _factory(
        store=None, store_failure_mode: StoreFailureMode = StoreFailureMode.FAIL_CLOSED
    ) -> RetryPolicyEvaluator:
        return RetryPolicyEvaluator(
            store if store is not None else attempt_store,
            store_failure_mode=store_failure_mode,
        )

    return _factory


@pytest.fixture
def mock_dynamodb_client():
    """Mock DynamoDBClient returning successful OperationResults."""
    mock = MagicMock()

    mock.get_item.return_value = OperationResult.success(data={})
    mock.update_item.return_value = OperationResult.success(data={"Attributes": {}})
    mock.query.return_value = OperationResult.success(data=[])

    return mock


@pytest.fixture
def dynamodb_attempt_store(mock_dynamodb_client):
    """Create a DynamoDBAttemptStore over the mocked client."""
    from infrastructure.attempts import DynamoDBAttemptStore

    return DynamoDBAttemptStore(
        client=mock_dynamodb_client, table_name="test-attempt-ledger"
    )
