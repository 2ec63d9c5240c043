"""Unit tests for the DynamoDB attempt store."""

import pytest

from infrastructure.attempts import (
    AttemptOutcome,
    AttemptRecord,
    DynamoDBAttemptStore,
    InvalidKeyError,
    StoreUnavailableError,
)
from infrastructure.operations import OperationResult


def _item(attempt_count=1, outcome="failure", error=None, **extra):
    item = {
        "job_id": {"S": "job"},
        "resource_id": {"S": "visit-1"},
        "attempt_count": {"N": str(attempt_count)},
        "last_outcome": {"S": outcome},
        "updated_at": {"S": "2024-06-01T02:00:00+00:00"},
    }
    if error is not None:
        item["last_error"] = {"S": error}
    item.update(extra)
    return item


class TestDynamoDBAttemptStoreGet:
    """Tests for DynamoDBAttemptStore.get."""

    def test_get_missing_item_returns_zero_state(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        record = dynamodb_attempt_store.get("job", "visit-1")

        assert record == AttemptRecord.empty("job", "visit-1")
        mock_dynamodb_client.get_item.assert_called_once_with(
            table_name="test-attempt-ledger",
            Key={"job_id": {"S": "job"}, "resource_id": {"S": "visit-1"}},
            ConsistentRead=True,
        )

    def test_get_parses_item(self, dynamodb_attempt_store, mock_dynamodb_client):
        mock_dynamodb_client.get_item.return_value = OperationResult.success(
            data={"Item": _item(attempt_count=2, error="TimeoutError: slow")}
        )

        record = dynamodb_attempt_store.get("job", "visit-1")

        assert record.attempt_count == 2
        assert record.last_outcome == AttemptOutcome.FAILURE
        assert record.last_error == "TimeoutError: slow"
        assert record.updated_at.year == 2024

    def test_get_failure_raises_store_unavailable(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        failure = OperationResult.transient_error(
            "AWS API throttled", error_code="RATE_LIMITED", retry_after=60
        )
        mock_dynamodb_client.get_item.return_value = failure

        with pytest.raises(StoreUnavailableError) as exc_info:
            dynamodb_attempt_store.get("job", "visit-1")

        assert exc_info.value.response is failure

    def test_get_rejects_malformed_key(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        with pytest.raises(InvalidKeyError):
            dynamodb_attempt_store.get("job", "")

        mock_dynamodb_client.get_item.assert_not_called()


class TestDynamoDBAttemptStoreIncrement:
    """Tests for DynamoDBAttemptStore.increment."""

    def test_increment_uses_atomic_add(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        mock_dynamodb_client.update_item.return_value = OperationResult.success(
            data={"Attributes": _item(attempt_count=3, error="boom")}
        )

        record = dynamodb_attempt_store.increment(
            "job", "visit-1", AttemptOutcome.FAILURE, "boom"
        )

        assert record.attempt_count == 3
        assert record.last_error == "boom"

        call_kwargs = mock_dynamodb_client.update_item.call_args.kwargs
        assert call_kwargs["table_name"] == "test-attempt-ledger"
        assert "ADD attempt_count :one" in call_kwargs["UpdateExpression"]
        assert "last_error = :error" in call_kwargs["UpdateExpression"]
        assert "REMOVE" not in call_kwargs["UpdateExpression"]
        assert call_kwargs["ExpressionAttributeValues"][":one"] == {"N": "1"}
        assert call_kwargs["ExpressionAttributeValues"][":error"] == {"S": "boom"}
        assert call_kwargs["ReturnValues"] == "ALL_NEW"
        assert "ExpressionAttributeNames" not in call_kwargs

    def test_success_removes_error(self, dynamodb_attempt_store, mock_dynamodb_client):
        mock_dynamodb_client.update_item.return_value = OperationResult.success(
            data={"Attributes": _item(attempt_count=2, outcome="success")}
        )

        record = dynamodb_attempt_store.increment(
            "job", "visit-1", AttemptOutcome.SUCCESS
        )

        call_kwargs = mock_dynamodb_client.update_item.call_args.kwargs
        assert call_kwargs["UpdateExpression"].endswith("REMOVE last_error")
        assert ":error" not in call_kwargs["ExpressionAttributeValues"]
        assert record.last_outcome == AttemptOutcome.SUCCESS
        assert record.last_error is None

    def test_ttl_written_when_configured(self, mock_dynamodb_client):
        store = DynamoDBAttemptStore(
            client=mock_dynamodb_client, table_name="ledger", ttl_days=30
        )

        store.increment("job", "visit-1", AttemptOutcome.SUCCESS)

        call_kwargs = mock_dynamodb_client.update_item.call_args.kwargs
        assert "#ttl = :ttl" in call_kwargs["UpdateExpression"]
        assert call_kwargs["ExpressionAttributeNames"] == {"#ttl": "ttl"}
        assert int(call_kwargs["ExpressionAttributeValues"][":ttl"]["N"]) > 0

    def test_missing_attributes_fall_back_to_key(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        mock_dynamodb_client.update_item.return_value = OperationResult.success(
            data={
                "Attributes": {
                    "attempt_count": {"N": "1"},
                    "last_outcome": {"S": "success"},
                }
            }
        )

        record = dynamodb_attempt_store.increment(
            "job", "visit-1", AttemptOutcome.SUCCESS
        )

        assert record.key == ("job", "visit-1")
        assert record.attempt_count == 1

    def test_increment_failure_raises_store_unavailable(
        self, dynamodb_attempt_store, mock_dynamodb_client
    ):
        mock_dynamodb_client.update_item.return_value = OperationResult.permanent_error(
            "AWS resource not found", error_code="NOT_FOUND"
        )

        with pytest.raises(StoreUnavailableError):
            dynamodb_attempt_store.increment("job", "visit-1", AttemptOutcome.FAILURE)

    def test_none_outcome_rejected(self, dynamodb_attempt_store, mock_dynamodb_client):
        with pytest.raises(ValueError):
            dynamodb_attempt_store.increment("job", "visit-1", AttemptOutcome.NONE)

        mock_dynamodb_client.update_item.assert_not_called()


class TestDynamoDBAttemptStoreRecordsForJob:
    """Tests for DynamoDBAttemptStore.records_for_job."""

    def test_query_by_job(self, dynamodb_attempt_store, mock_dynamodb_client):
        mock_dynamodb_client.query.return_value = OperationResult.success(
            data=[_item(attempt_count=1, outcome="success")]
        )

        records = dynamodb_attempt_store.records_for_job("job")

        assert len(records) == 1
        assert records[0].last_outcome == AttemptOutcome.SUCCESS
        call_kwargs = mock_dynamodb_client.query.call_args.kwargs
        assert call_kwargs["KeyConditionExpression"] == "job_id = :job_id"
        assert call_kwargs["ExpressionAttributeValues"] == {":job_id": {"S": "job"}}

    def test_query_failure_raises(self, dynamodb_attempt_store, mock_dynamodb_client):
        mock_dynamodb_client.query.return_value = OperationResult.transient_error(
            "AWS connection error", error_code="CONNECTION_ERROR"
        )

        with pytest.raises(StoreUnavailableError):
            dynamodb_attempt_store.records_for_job("job")
