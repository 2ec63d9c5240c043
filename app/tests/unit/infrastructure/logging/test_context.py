"""Unit tests for infrastructure.logging.context module.

Tests cover:
- bind_log_context() context manager
- get_run_id()
- clear_log_context()
- Context isolation and cleanup
"""

import uuid

import pytest
import structlog

from infrastructure.logging.context import (
    bind_log_context,
    clear_log_context,
    get_run_id,
)


@pytest.mark.unit
class TestBindLogContext:
    """Test suite for bind_log_context context manager."""

    def test_auto_generates_run_id(self):
        """Run ID is auto-generated if not provided."""
        with bind_log_context(job_id="nightly-checkout"):
            run_id = get_run_id()
            assert run_id is not None
            uuid.UUID(run_id)

    def test_uses_provided_run_id(self):
        with bind_log_context(run_id="run-42"):
            assert get_run_id() == "run-42"

    def test_binds_job_id_and_extra_context(self):
        with bind_log_context(job_id="nightly-checkout", max_attempts=3):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["job_id"] == "nightly-checkout"
            assert ctx["max_attempts"] == 3

    def test_skips_missing_job_id(self):
        with bind_log_context():
            assert "job_id" not in structlog.contextvars.get_contextvars()

    def test_clears_after_exit(self):
        with bind_log_context(run_id="run-42", job_id="job"):
            pass

        ctx = structlog.contextvars.get_contextvars()
        assert "run_id" not in ctx
        assert "job_id" not in ctx

    def test_clears_after_exception(self):
        with pytest.raises(RuntimeError):
            with bind_log_context(job_id="job"):
                raise RuntimeError("boom")

        assert get_run_id() is None


@pytest.mark.unit
class TestClearLogContext:
    """Test suite for clear_log_context."""

    def test_removes_all_context(self):
        structlog.contextvars.bind_contextvars(run_id="run-1", job_id="job")

        clear_log_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_get_run_id_none_when_not_set(self):
        assert get_run_id() is None
