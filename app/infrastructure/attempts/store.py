"""Attempt ledger storage.

This module provides the storage interface and the in-memory implementation
of the attempt ledger. The protocol-based design allows multiple backends
(in-memory, DynamoDB) behind the same policy evaluator.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from infrastructure.attempts.models import (
    AttemptOutcome,
    AttemptRecord,
    validate_key,
)
from infrastructure.logging import get_module_logger

logger = get_module_logger()

RECORDABLE_OUTCOMES = (AttemptOutcome.SUCCESS, AttemptOutcome.FAILURE)


class AttemptStore(Protocol):
    """Storage interface for attempt records keyed by (job_id, resource_id).

    Implementations hold no policy knowledge. They must make ``increment``
    atomic per key: concurrent increments on different keys must not block
    each other, and concurrent increments on the same key must not lose an
    update.

    Methods:
        get: Return the record for a key, or the zero-state record
        increment: Record one attempt and return the new record
    """

    def get(self, job_id: str, resource_id: str) -> AttemptRecord:
        """Return the attempt record for a key.

        Args:
            job_id: Job identifier
            resource_id: Resource identifier

        Returns:
            Stored record, or AttemptRecord.empty() when absent

        Raises:
            InvalidKeyError: If either identifier is empty
            StoreUnavailableError: If the ledger cannot be read
        """
        ...

    def increment(
        self,
        job_id: str,
        resource_id: str,
        outcome: AttemptOutcome,
        error_detail: Optional[str] = None,
    ) -> AttemptRecord:
        """Atomically bump the attempt count by one and set the outcome.

        Args:
            job_id: Job identifier
            resource_id: Resource identifier
            outcome: SUCCESS or FAILURE
            error_detail: Failure detail, kept only for FAILURE outcomes

        Returns:
            The new record

        Raises:
            InvalidKeyError: If either identifier is empty
            StoreUnavailableError: If the ledger cannot be written
        """
        ...


def validate_outcome(outcome: AttemptOutcome) -> AttemptOutcome:
    """Only real attempts (SUCCESS/FAILURE) can be recorded."""
    if outcome not in RECORDABLE_OUTCOMES:
        raise ValueError(f"Cannot record an attempt with outcome {outcome!r}")
    return outcome


class InMemoryAttemptStore:
    """In-memory implementation of AttemptStore.

    Thread-safe ledger with per-key locking:
    - Records are immutable and replaced on every increment
    - ``get`` is lock-free and always sees a complete, monotonic record
    - ``increment`` serializes per key; different keys never contend

    Suitable for single-process drivers and tests. Multi-instance drivers
    should use DynamoDBAttemptStore.
    """

    def __init__(self) -> None:
        self._records: Dict[Tuple[str, str], AttemptRecord] = {}
        self._key_locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            with self._registry_lock:
                lock = self._key_locks.setdefault(key, threading.Lock())
        return lock

    def get(self, job_id: str, resource_id: str) -> AttemptRecord:
        """Return the record for a key, or the zero-state record."""
        validate_key(job_id, "job_id")
        validate_key(resource_id, "resource_id")
        record = self._records.get((job_id, resource_id))
        if record is None:
            return AttemptRecord.empty(job_id, resource_id)
        return record

    def increment(
        self,
        job_id: str,
        resource_id: str,
        outcome: AttemptOutcome,
        error_detail: Optional[str] = None,
    ) -> AttemptRecord:
        """Record one attempt for a key."""
        validate_key(job_id, "job_id")
        validate_key(resource_id, "resource_id")
        validate_outcome(outcome)

        key = (job_id, resource_id)
        with self._lock_for(key):
            current = self._records.get(key)
            count = current.attempt_count if current else 0
            record = AttemptRecord(
                job_id=job_id,
                resource_id=resource_id,
                attempt_count=count + 1,
                last_outcome=outcome,
                last_error=error_detail if outcome == AttemptOutcome.FAILURE else None,
                updated_at=datetime.now(timezone.utc),
            )
            self._records[key] = record

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

        Returns:
            Records of the job, ordered by resource_id
        """
        validate_key(job_id, "job_id")
        records = [
            record for key, record in list(self._records.items()) if key[0] == job_id
        ]
        return sorted(records, key=lambda record: record.resource_id)

    def get_stats(self) -> dict:
        """Get ledger statistics.

        Returns:
            Dictionary with counts of jobs, records and failed records
        """
        records = list(self._records.values())
        return {
            "jobs": len({record.job_id for record in records}),
            "records": len(records),
            "failed_records": sum(
                1 for record in records if record.last_outcome == AttemptOutcome.FAILURE
            ),
        }
