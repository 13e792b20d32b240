"""Tests for structured logging, correlation ids and tracing helpers."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock, patch

from postgresql_operator import tracing
from postgresql_operator.logging import log_resource_event, sanitize_secrets
from postgresql_operator.models import ChildKind, ReconcileRequest, ReconcileResult, Stage
from postgresql_operator.tracing import reconcile_span, record_result, stage_span
from postgresql_operator.utils.context import (
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    with_correlation_id,
)

LOGGER = logging.getLogger("tests.structured")


def _emit(caplog, **kwargs):
    with caplog.at_level(logging.DEBUG, logger=LOGGER.name):
        log_resource_event(
            LOGGER,
            controller="database-controller",
            resource_kind="Database",
            resource_name="pgdb1",
            namespace="default",
            event="create",
            reason="Creating",
            message="Creating a new Deployment",
            **kwargs,
        )
    return json.loads(caplog.records[-1].getMessage())


class TestLogResourceEvent:
    """Test cases for log_resource_event."""

    def test_json_fields(self, caplog):
        """Test that the log line is JSON with resource fields."""
        data = _emit(caplog, child_kind="Deployment")

        assert data["controller"] == "database-controller"
        assert data["resource"] == "Database"
        assert data["name"] == "pgdb1"
        assert data["namespace"] == "default"
        assert data["event"] == "create"
        assert data["reason"] == "Creating"
        assert data["child_kind"] == "Deployment"

    def test_level(self, caplog):
        """Test that the requested log level is used."""
        with caplog.at_level(logging.DEBUG, logger=LOGGER.name):
            log_resource_event(
                LOGGER, "c", "Database", "pgdb1", "default", "e", "r", "m", level=logging.WARNING
            )
        assert caplog.records[-1].levelno == logging.WARNING

    def test_includes_correlation_id(self, caplog):
        """Test that the active correlation id is added to the record."""
        with with_correlation_id("abc123"):
            data = _emit(caplog)
        assert data["correlation_id"] == "abc123"

    def test_redacts_password_fields(self, caplog):
        """Test that password values never reach the log line."""
        data = _emit(caplog, password="hunter2")
        assert data["password"] == "***REDACTED***"


class TestSanitizeSecrets:
    """Test cases for sanitize_secrets."""

    def test_redacts_known_fields(self):
        """Test that every known secret field is redacted and others are kept."""
        result = sanitize_secrets({"db.password": "x", "POSTGRES_PASSWORD": "y", "seed": "z", "name": "pgdb1"})
        assert result == {
            "db.password": "***REDACTED***",
            "POSTGRES_PASSWORD": "***REDACTED***",
            "seed": "***REDACTED***",
            "name": "pgdb1",
        }

    def test_does_not_mutate_input(self):
        """Test that redaction works on a copy."""
        data = {"password": "x"}
        sanitize_secrets(data)
        assert data == {"password": "x"}


class TestCorrelationId:
    """Test cases for correlation id propagation."""

    def test_generated_when_omitted(self):
        """Test that a correlation id is generated and cleared on exit."""
        with with_correlation_id() as corr_id:
            assert len(corr_id) == 16
            assert get_correlation_id() == corr_id
        assert get_correlation_id() is None

    def test_nested_restores_outer(self):
        """Test that leaving a nested scope restores the outer id."""
        with with_correlation_id("outer"):
            with with_correlation_id("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"

    def test_unique(self):
        assert new_correlation_id() != new_correlation_id()

    def test_context_dict(self):
        assert get_context_dict() == {}
        with with_correlation_id("abc"):
            assert get_context_dict({"stage": "Done"}) == {"correlation_id": "abc", "stage": "Done"}


class TestReconcileSpans:
    """Test cases for Database reconcile spans."""

    REQUEST = ReconcileRequest(namespace="default", name="pgdb1")

    def test_noop_without_tracer(self):
        """Test that spans are no-ops when tracing is not initialized."""
        with patch.object(tracing, "_tracer", None):
            with reconcile_span(self.REQUEST) as span:
                assert span is None
            with stage_span(Stage.ENSURE_WORKLOAD, self.REQUEST) as span:
                assert span is None

    def test_reconcile_span_carries_database_identity(self):
        """Test that the pass span carries the Database namespace and name."""
        tracer = MagicMock()
        with patch.object(tracing, "_tracer", tracer):
            with reconcile_span(self.REQUEST):
                pass

        tracer.start_as_current_span.assert_called_once_with(
            "reconcile_database",
            attributes={
                "resource.kind": "Database",
                "database.namespace": "default",
                "database.name": "pgdb1",
            },
        )

    def test_stage_span_named_after_stage(self):
        """Test that stage spans are named after the stage and tagged with it."""
        tracer = MagicMock()
        with patch.object(tracing, "_tracer", tracer):
            with stage_span(Stage.ENSURE_WORKLOAD, self.REQUEST):
                pass

        name = tracer.start_as_current_span.call_args[0][0]
        attributes = tracer.start_as_current_span.call_args[1]["attributes"]
        assert name == "EnsureWorkload"
        assert attributes["reconcile.stage"] == "EnsureWorkload"
        assert attributes["database.name"] == "pgdb1"

    def test_record_result_with_created_child(self):
        """Test that the pass outcome is recorded on the span."""
        span = MagicMock()
        result = ReconcileResult(
            requeue=True, stage=Stage.ENSURE_NETWORK_ENDPOINT, created=ChildKind.NETWORK_ENDPOINT
        )

        record_result(span, result)

        span.set_attribute.assert_any_call("reconcile.requeue", True)
        span.set_attribute.assert_any_call("reconcile.stage", "EnsureNetworkEndpoint")
        span.set_attribute.assert_any_call("reconcile.created", "Service")

    def test_record_result_converged(self):
        """Test that a converged pass records no created child."""
        span = MagicMock()

        record_result(span, ReconcileResult(requeue=False, stage=Stage.DONE))

        assert span.set_attribute.call_count == 2

    def test_record_result_without_span(self):
        record_result(None, ReconcileResult())
