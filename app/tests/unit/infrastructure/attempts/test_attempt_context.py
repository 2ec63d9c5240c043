"""Unit tests for retry-aware job context helpers."""

from unittest.mock import MagicMock

import pytest
import structlog

from infrastructure.attempts import (
    InvalidKeyError,
    InvalidPolicyError,
    RetryJobContext,
    bind_job_context,
    context_from_settings,
    new_context,
)


class TestNewContext:
    """Tests for new_context."""

    def test_creates_context(self):
        context = new_context("nightly-checkout", 3)

        assert context == RetryJobContext(job_id="nightly-checkout", max_attempts=3)

    def test_zero_max_attempts_rejected_before_any_record(self, attempt_store):
        with pytest.raises(InvalidPolicyError):
            new_context("nightly-checkout", 0)

        assert attempt_store.get_stats()["records"] == 0

    def test_empty_job_id_rejected(self):
        with pytest.raises(InvalidKeyError):
            new_context("", 3)

    def test_logs_creation(self, monkeypatch):
        mock_logger = MagicMock()
        monkeypatch.setattr("infrastructure.attempts.context.logger", mock_logger)

        new_context("nightly-checkout", 5)

        mock_logger.info.assert_called_once_with(
            "retry_job_context_created", job_id="nightly-checkout", max_attempts=5
        )


class TestContextFromSettings:
    """Tests for context_from_settings."""

    def test_uses_configured_default(self):
        settings = MagicMock()
        settings.attempts.default_max_attempts = 7

        context = context_from_settings("weekly-report", settings=settings)

        assert context.max_attempts == 7
        assert context.job_id == "weekly-report"

    def test_falls_back_to_provider(self, monkeypatch):
        settings = MagicMock()
        settings.attempts.default_max_attempts = 2
        monkeypatch.setattr(
            "infrastructure.services.providers.get_settings", lambda: settings
        )

        assert context_from_settings("weekly-report").max_attempts == 2


class TestBindJobContext:
    """Tests for bind_job_context."""

    def test_binds_and_unbinds(self):
        context = RetryJobContext(job_id="nightly-checkout", max_attempts=3)

        with bind_job_context(context) as bound:
            ctx = structlog.contextvars.get_contextvars()
            assert bound is context
            assert ctx["job_id"] == "nightly-checkout"
            assert ctx["max_attempts"] == 3
            assert "run_id" in ctx

        ctx = structlog.contextvars.get_contextvars()
        assert "job_id" not in ctx
        assert "max_attempts" not in ctx
