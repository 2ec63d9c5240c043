"""Unit tests for attempt store and evaluator factories."""

from unittest.mock import MagicMock

import pytest

from infrastructure.attempts import (
    DynamoDBAttemptStore,
    InMemoryAttemptStore,
    RetryPolicyEvaluator,
    StoreFailureMode,
    create_attempt_store,
    create_policy_evaluator,
)


@pytest.fixture
def settings_factory():
    """Factory for settings doubles with an attempts section."""

    def _factory(
        backend="memory",
        store_failure_mode="fail_closed",
        dynamodb_table_name="test-ledger",
        dynamodb_ttl_days=None,
    ):
        settings = MagicMock()
        settings.attempts.backend = backend
        settings.attempts.store_failure_mode = store_failure_mode
        settings.attempts.dynamodb_table_name = dynamodb_table_name
        settings.attempts.dynamodb_ttl_days = dynamodb_ttl_days
        return settings

    return _factory


class TestCreateAttemptStore:
    """Tests for create_attempt_store."""

    def test_memory_backend(self, settings_factory):
        store = create_attempt_store(settings=settings_factory())

        assert isinstance(store, InMemoryAttemptStore)

    def test_each_call_builds_new_store(self, settings_factory):
        settings = settings_factory()

        assert create_attempt_store(settings=settings) is not create_attempt_store(
            settings=settings
        )

    def test_dynamodb_backend(self, settings_factory, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(
            "infrastructure.attempts.factory.get_dynamodb_client", lambda: client
        )

        store = create_attempt_store(
            settings=settings_factory(backend="dynamodb", dynamodb_ttl_days=14)
        )

        assert isinstance(store, DynamoDBAttemptStore)
        assert store.client is client
        assert store.table_name == "test-ledger"
        assert store.ttl_days == 14

    def test_backend_override(self, settings_factory, monkeypatch):
        monkeypatch.setattr(
            "infrastructure.attempts.factory.get_dynamodb_client", MagicMock
        )

        store = create_attempt_store(
            backend="memory", settings=settings_factory(backend="dynamodb")
        )

        assert isinstance(store, InMemoryAttemptStore)

    def test_unknown_backend(self, settings_factory):
        with pytest.raises(ValueError, match="Unknown attempts backend"):
            create_attempt_store(backend="redis", settings=settings_factory())


class TestCreatePolicyEvaluator:
    """Tests for create_policy_evaluator."""

    def test_uses_configured_failure_mode(self, settings_factory):
        evaluator = create_policy_evaluator(
            settings=settings_factory(store_failure_mode="fail_open")
        )

        assert isinstance(evaluator, RetryPolicyEvaluator)
        assert isinstance(evaluator.store, InMemoryAttemptStore)
        assert evaluator.store_failure_mode == StoreFailureMode.FAIL_OPEN

    def test_uses_given_store(self, settings_factory, attempt_store):
        evaluator = create_policy_evaluator(
            store=attempt_store, settings=settings_factory()
        )

        assert evaluator.store is attempt_store
        assert evaluator.store_failure_mode == StoreFailureMode.FAIL_CLOSED
