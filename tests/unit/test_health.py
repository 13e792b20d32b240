"""Tests for health check and metrics endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from postgresql_operator import health, metrics  # noqa: F401
from postgresql_operator.health import create_combined_wsgi_app, mark_not_ready, mark_ready


def _environ(path: str) -> dict:
    return {
        "REQUEST_METHOD": "GET",
        "PATH_INFO": path,
        "SCRIPT_NAME": "",
        "QUERY_STRING": "",
        "SERVER_NAME": "localhost",
        "SERVER_PORT": "8080",
        "wsgi.url_scheme": "http",
    }


def _call(path: str) -> tuple[str, bytes, dict]:
    app = create_combined_wsgi_app()
    start_response = MagicMock()
    body = b"".join(app(_environ(path), start_response))
    status, headers = start_response.call_args[0][:2]
    return status, body, dict(headers)


@pytest.fixture(autouse=True)
def reset_readiness():
    mark_not_ready()
    yield
    mark_not_ready()


class TestCombinedApp:
    """Test cases for the combined WSGI application."""

    def test_healthz(self):
        """Test /healthz always reports ok."""
        status, body, headers = _call("/healthz")

        assert status.startswith("200")
        assert body == b'{"status":"ok"}'
        assert headers["Content-Type"].startswith("application/json")

    def test_readyz_before_startup(self):
        """Test /readyz reports 503 until startup has finished."""
        status, body, _ = _call("/readyz")

        assert status.startswith("503")
        assert body == b'{"status":"starting"}'

    def test_readyz_after_startup(self):
        """Test /readyz reports ready once marked."""
        mark_ready()

        status, body, _ = _call("/readyz")

        assert status.startswith("200")
        assert body == b'{"status":"ready"}'

    def test_readyz_after_shutdown(self):
        """Test /readyz flips back to 503 on shutdown."""
        mark_ready()
        mark_not_ready()

        status, _, _ = _call("/readyz")

        assert status.startswith("503")

    def test_metrics_delegated_to_prometheus(self):
        """Test /metrics is served by prometheus_client."""
        status, body, _ = _call("/metrics")

        assert status.startswith("200")
        assert b"postgresql_operator_reconcile_total" in body


class TestStartMetricsServer:
    """Test cases for start_metrics_server."""

    @patch("postgresql_operator.health.make_server")
    def test_starts_daemon_thread(self, mock_make_server):
        """Test that the server runs in a daemon thread on the given port."""
        server = MagicMock()
        mock_make_server.return_value = server

        thread = health.start_metrics_server(9090)
        thread.join(timeout=5)

        args, kwargs = mock_make_server.call_args
        assert args[0] == ""
        assert args[1] == 9090
        assert kwargs["threaded"] is True
        assert thread.daemon is True
        server.serve_forever.assert_called_once()
