"""Tests for base handler functionality."""

from __future__ import annotations

import json
import logging
import threading
from unittest.mock import Mock, patch

import pytest

from postgresql_operator.handlers.base import BaseHandler, KeyedLocks


class TestBaseHandler:
    """Test cases for BaseHandler class."""

    def test_init(self):
        """Test handler initialization."""
        handler = BaseHandler(kind="Database")
        assert handler.kind == "Database"
        assert handler.logger is not None

    def test_resource_context_defaults(self):
        """Test that missing metadata fields fall back to placeholders."""
        handler = BaseHandler(kind="Database")

        ctx = handler._get_resource_context({})

        assert ctx == {"name": "unknown", "namespace": "default", "uid": "unknown"}

    @patch("postgresql_operator.handlers.base.emit_reconcile_started")
    @patch("postgresql_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_success(self, mock_metrics, mock_emit_started):
        """Test successful reconciliation with metrics."""
        handler = BaseHandler(kind="Database")
        body = {"metadata": {"name": "pgdb1", "namespace": "default"}}
        reconcile_fn = Mock(return_value="result")

        result = handler.reconcile_with_metrics(body, reconcile_fn)

        assert result == "result"
        reconcile_fn.assert_called_once()
        mock_emit_started.assert_called_once_with(body)
        mock_metrics.reconcile_total.labels.assert_any_call(kind="Database", result="started")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="Database", result="success")
        assert mock_metrics.reconcile_duration_seconds.labels.called

    @patch("postgresql_operator.handlers.base.emit_reconcile_failed")
    @patch("postgresql_operator.handlers.base.emit_reconcile_started")
    @patch("postgresql_operator.handlers.base.metrics")
    @patch("postgresql_operator.handlers.base.sanitize_exception")
    def test_reconcile_with_metrics_failure(
        self, mock_sanitize, mock_metrics, mock_emit_started, mock_emit_failed
    ):
        """Test failed reconciliation with metrics and error handling."""
        handler = BaseHandler(kind="Database")
        body = {"metadata": {"name": "pgdb1", "namespace": "default"}}
        test_error = ValueError("Test error")
        mock_sanitize.return_value = "Sanitized error"

        def failing_fn():
            raise test_error

        with pytest.raises(ValueError):
            handler.reconcile_with_metrics(body, failing_fn)

        # Once for log_error, once for the event message
        assert mock_sanitize.call_count == 2
        mock_sanitize.assert_any_call(test_error)

        mock_emit_started.assert_called_once_with(body)
        mock_emit_failed.assert_called_once_with(body, "Reconciliation failed: Sanitized error")

        mock_metrics.error_total.labels.assert_called_with(kind="Database", error_type="ValueError")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="Database", result="error")
        assert mock_metrics.reconcile_duration_seconds.labels.called

    def test_log_error_includes_sanitized_error(self, caplog):
        """Test that log_error adds sanitized error details."""
        handler = BaseHandler(kind="Database")
        meta = {"name": "pgdb1", "namespace": "default", "uid": "abc"}

        with caplog.at_level(logging.ERROR, logger=handler.logger.name):
            handler.log_error(meta, "Boom", error=RuntimeError("password=hunter2"))

        data = json.loads(caplog.records[-1].getMessage())
        assert data["uid"] == "abc"
        assert data["error_type"] == "RuntimeError"
        assert "hunter2" not in data["error"]

    def test_log_info_fields(self, caplog):
        """Test the structured fields of an info log line."""
        handler = BaseHandler(kind="Database")
        meta = {"name": "pgdb1", "namespace": "prod", "uid": "abc"}

        with caplog.at_level(logging.INFO, logger=handler.logger.name):
            handler.log_info(meta, "Hello", reason="Greeting", extra_field=1)

        data = json.loads(caplog.records[-1].getMessage())
        assert data["controller"] == "database-controller"
        assert data["resource"] == "Database"
        assert data["name"] == "pgdb1"
        assert data["namespace"] == "prod"
        assert data["reason"] == "Greeting"
        assert data["extra_field"] == 1


class TestKeyedLocks:
    """Test cases for per-key locking."""

    def test_lock_released_and_dropped(self):
        """Test that an idle key leaves no lock behind."""
        locks = KeyedLocks()

        with locks.hold("default/pgdb1"):
            assert len(locks) == 1

        assert len(locks) == 0

    def test_lock_dropped_after_exception(self):
        """Test that the lock is released when the body raises."""
        locks = KeyedLocks()

        with pytest.raises(RuntimeError):
            with locks.hold("default/pgdb1"):
                raise RuntimeError("boom")

        assert len(locks) == 0
        with locks.hold("default/pgdb1"):
            pass

    def test_same_key_is_serialized(self):
        """Test that a second holder of the same key waits for the first."""
        locks = KeyedLocks()
        entered = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with locks.hold("k"):
                order.append("first-in")
                entered.set()
                release.wait(timeout=5)
                order.append("first-out")

        def second():
            entered.wait(timeout=5)
            with locks.hold("k"):
                order.append("second-in")

        t1 = threading.Thread(target=first)
        t2 = threading.Thread(target=second)
        t1.start()
        t2.start()
        entered.wait(timeout=5)
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert order == ["first-in", "first-out", "second-in"]

    def test_different_keys_do_not_block(self):
        """Test that distinct keys can be held at the same time."""
        locks = KeyedLocks()

        with locks.hold("a"):
            acquired = threading.Event()

            def other():
                with locks.hold("b"):
                    acquired.set()

            thread = threading.Thread(target=other)
            thread.start()
            thread.join(timeout=5)

            assert acquired.is_set()
