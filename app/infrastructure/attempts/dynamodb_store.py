"""DynamoDB-backed attempt ledger for multi-instance drivers.

Table Schema:
    PK: job_id (String, HASH)
    SK: resource_id (String, RANGE)
    Attributes: attempt_count (N), last_outcome (S), last_error (S, optional),
                updated_at (S, ISO-8601), ttl (N, optional)

Increments are a single UpdateItem with ``ADD attempt_count :one``, which
DynamoDB applies atomically per item, so concurrent workers on the same
key never lose an attempt and workers on different keys never contend.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from infrastructure.attempts.errors import StoreUnavailableError
from infrastructure.attempts.models import (
    AttemptOutcome,
    AttemptRecord,
    validate_key,
)
from infrastructure.attempts.store import validate_outcome
from infrastructure.clients.aws.dynamodb import DynamoDBClient
from infrastructure.operations.result import OperationResult

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60


class DynamoDBAttemptStore:
    """DynamoDB-backed attempt store.

    This implementation provides:
    - Shared ledger across multiple worker processes/instances
    - Atomic per-key increments via UpdateItem ADD
    - Strongly consistent reads for gate decisions
    - Optional TTL so retention can be handed to DynamoDB

    Args:
        client: DynamoDBClient used for all calls
        table_name: DynamoDB table name
        ttl_days: Optional days until DynamoDB expires a ledger row
    """

    def __init__(
        self,
        client: DynamoDBClient,
        table_name: str,
        ttl_days: Optional[int] = None,
    ):
        self.client = client
        self.table_name = table_name
        self.ttl_days = ttl_days

        logger.info(
            "dynamodb_attempt_store_initialized",
            table_name=table_name,
            ttl_days=ttl_days,
        )

    @staticmethod
    def _key(job_id: str, resource_id: str) -> Dict[str, Any]:
        return {"job_id": {"S": job_id}, "resource_id": {"S": resource_id}}

    def _raise_unavailable(
        self, operation: str, job_id: str, result: OperationResult, **context: Any
    ) -> None:
        logger.error(
            "dynamodb_attempt_store_unavailable",
            operation=operation,
            table_name=self.table_name,
            job_id=job_id,
            error=result.message,
            error_code=result.error_code,
            **context,
        )
        raise StoreUnavailableError(
            f"Attempt ledger {operation} failed: {result.message}", response=result
        )

    def get(self, job_id: str, resource_id: str) -> AttemptRecord:
        """Get the attempt record for a key.

        Args:
            job_id: Job identifier
            resource_id: Resource identifier

        Returns:
            Stored record or the zero-state record when the item is absent

        Raises:
            InvalidKeyError: If either identifier is empty
            StoreUnavailableError: If DynamoDB cannot be read
        """
        validate_key(job_id, "job_id")
        validate_key(resource_id, "resource_id")

        result = self.client.get_item(
            table_name=self.table_name,
            Key=self._key(job_id, resource_id),
            ConsistentRead=True,
        )
        if not result.is_success:
            self._raise_unavailable("get", job_id, result, resource_id=resource_id)

        item = result.data.get("Item") if result.data else None
        if not item:
            return AttemptRecord.empty(job_id, resource_id)
        return self._item_to_record(item)

    def increment(
        self,
        job_id: str,
        resource_id: str,
        outcome: AttemptOutcome,
        error_detail: Optional[str] = None,
    ) -> AttemptRecord:
        """Atomically record one attempt.

        Args:
            job_id: Job identifier
            resource_id: Resource identifier
            outcome: SUCCESS or FAILURE
            error_detail: Failure detail, kept only for FAILURE outcomes

        Returns:
            The record as written by DynamoDB (ReturnValues=ALL_NEW)

        Raises:
            InvalidKeyError: If either identifier is empty
            StoreUnavailableError: If DynamoDB cannot be written
        """
        validate_key(job_id, "job_id")
        validate_key(resource_id, "resource_id")
        validate_outcome(outcome)

        set_clauses = ["last_outcome = :outcome", "updated_at = :now"]
        expr_values: Dict[str, Any] = {
            ":one": {"N": "1"},
            ":outcome": {"S": outcome.value},
            ":now": {"S": datetime.now(timezone.utc).isoformat()},
        }
        expr_names: Dict[str, str] = {}

        keep_error = outcome == AttemptOutcome.FAILURE and error_detail
        if keep_error:
            set_clauses.append("last_error = :error")
            expr_values[":error"] = {"S": error_detail}

        if self.ttl_days:
            set_clauses.append("#ttl = :ttl")
            expr_names["#ttl"] = "ttl"
            expr_values[":ttl"] = {
                "N": str(int(time.time()) + self.ttl_days * SECONDS_PER_DAY)
            }

        update_expr = "SET " + ", ".join(set_clauses) + " ADD attempt_count :one"
        if not keep_error:
            update_expr += " REMOVE last_error"

        params: Dict[str, Any] = {
            "UpdateExpression": update_expr,
            "ExpressionAttributeValues": expr_values,
            "ReturnValues": "ALL_NEW",
        }
        if expr_names:
            params["ExpressionAttributeNames"] = expr_names

        result = self.client.update_item(
            table_name=self.table_name,
            Key=self._key(job_id, resource_id),
            **params,
        )
        if not result.is_success:
            self._raise_unavailable(
                "increment", job_id, result, resource_id=resource_id
            )

        attributes = result.data.get("Attributes", {}) if result.data else {}
        record = self._item_to_record(
            {**self._key(job_id, resource_id), **attributes}
        )

        logger.debug(
            "attempt_record_incremented",
            job_id=job_id,
            resource_id=resource_id,
            attempt_count=record.attempt_count,
            outcome=outcome.value,
        )
        return record

    def records_for_job(self, job_id: str) -> List[AttemptRecord]:
        """Get all recorded attempts for a job (for reporting).

        Raises:
            StoreUnavailableError: If DynamoDB cannot be queried
        """
        validate_key(job_id, "job_id")

        result = self.client.query(
            table_name=self.table_name,
            KeyConditionExpression="job_id = :job_id",
            ExpressionAttributeValues={":job_id": {"S": job_id}},
        )
        if not result.is_success:
            self._raise_unavailable("query", job_id, result)

        items = result.data or []
        return [self._item_to_record(item) for item in items]

    def _item_to_record(self, item: Dict[str, Any]) -> AttemptRecord:
        """Convert a DynamoDB item to an AttemptRecord.

        Args:
            item: DynamoDB item dictionary (with type descriptors)

        Returns:
            AttemptRecord instance
        """

        def get_value(attr, default=None):
            if isinstance(attr, dict):
                if "S" in attr:
                    return attr["S"]
                elif "N" in attr:
                    return attr["N"]
            return default

        outcome = AttemptOutcome(
            get_value(item.get("last_outcome"), AttemptOutcome.NONE.value)
        )
        last_error = get_value(item.get("last_error"))
        updated_at_str = get_value(item.get("updated_at"))

        return AttemptRecord(
            job_id=get_value(item.get("job_id")),
            resource_id=get_value(item.get("resource_id")),
            attempt_count=int(get_value(item.get("attempt_count"), 0)),
            last_outcome=outcome,
            last_error=last_error if outcome == AttemptOutcome.FAILURE else None,
            updated_at=(
                datetime.fromisoformat(updated_at_str) if updated_at_str else None
            ),
        )
