"""
Unit tests for the Logfire monitoring module.

This test suite covers:
- Initialization gated on LOGFIRE_ENABLED and LOGFIRE_TOKEN
- FastAPI and SQLAlchemy instrumentation flags
- Request and error reporting, which are no-ops while monitoring is off
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from fastapi import FastAPI

from crud6.core import monitoring
from crud6.server.core.config import MonitoringConfig


def monitoring_settings(**values):
    settings = Mock()
    settings.monitoring = MonitoringConfig(**values)
    return settings


@pytest.fixture(autouse=True)
def reset_state():
    monitoring._state["enabled"] = False
    yield
    monitoring._state["enabled"] = False


@pytest.fixture
def mock_logfire():
    with patch("crud6.core.monitoring.logfire") as mocked:
        yield mocked


class TestInitializeLogfire:
    def test_disabled_by_default(self, mock_logfire):
        with patch("crud6.core.monitoring.settings", monitoring_settings()):
            assert monitoring.initialize_logfire(FastAPI()) is False

        mock_logfire.configure.assert_not_called()
        assert not monitoring.is_enabled()

    def test_enabled_without_token(self, mock_logfire):
        with (
            patch("crud6.core.monitoring.settings", monitoring_settings(enabled=True)),
            patch("crud6.core.monitoring.logger") as mock_logger,
        ):
            assert monitoring.initialize_logfire() is False

        mock_logfire.configure.assert_not_called()
        mock_logger.warning.assert_called_once()

    def test_configures_and_instruments_app(self, mock_logfire):
        app = FastAPI()
        settings = monitoring_settings(enabled=True, token="tok", environment="production", sample_rate=0.25)

        with patch("crud6.core.monitoring.settings", settings):
            assert monitoring.initialize_logfire(app) is True

        kwargs = mock_logfire.configure.call_args[1]
        assert kwargs["token"] == "tok"
        assert kwargs["service_name"] == "crud6-server"
        assert kwargs["environment"] == "production"
        mock_logfire.SamplingOptions.assert_called_once_with(head=0.25)
        mock_logfire.instrument_fastapi.assert_called_once_with(app)
        assert monitoring.is_enabled()

    def test_fastapi_instrumentation_flag(self, mock_logfire):
        settings = monitoring_settings(enabled=True, token="tok", trace_fastapi=False)

        with patch("crud6.core.monitoring.settings", settings):
            monitoring.initialize_logfire(FastAPI())

        mock_logfire.instrument_fastapi.assert_not_called()

    def test_configure_failure_leaves_monitoring_off(self, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")

        with patch("crud6.core.monitoring.settings", monitoring_settings(enabled=True, token="tok")):
            assert monitoring.initialize_logfire() is False

        assert not monitoring.is_enabled()


class TestInstrumentEngine:
    def test_skipped_when_disabled(self, mock_logfire):
        monitoring.instrument_engine(MagicMock())

        mock_logfire.instrument_sqlalchemy.assert_not_called()

    def test_instruments_sync_engine(self, mock_logfire):
        engine = MagicMock()
        monitoring._state["enabled"] = True

        with patch("crud6.core.monitoring.settings", monitoring_settings(enabled=True, token="tok")):
            monitoring.instrument_engine(engine)

        mock_logfire.instrument_sqlalchemy.assert_called_once_with(engine=engine.sync_engine)

    def test_sqlalchemy_flag(self, mock_logfire):
        monitoring._state["enabled"] = True
        settings = monitoring_settings(enabled=True, token="tok", trace_sqlalchemy=False)

        with patch("crud6.core.monitoring.settings", settings):
            monitoring.instrument_engine(MagicMock())

        mock_logfire.instrument_sqlalchemy.assert_not_called()


class TestReporting:
    def test_api_request_noop_when_disabled(self, mock_logfire):
        monitoring.log_api_request("GET", "/api/crud6/users", 200, 1.5)

        mock_logfire.info.assert_not_called()

    def test_api_request_reported(self, mock_logfire):
        monitoring._state["enabled"] = True

        monitoring.log_api_request("GET", "/api/crud6/users", 200, 1.5)

        mock_logfire.info.assert_called_once_with(
            "API request completed", method="GET", path="/api/crud6/users", status_code=200, duration_ms=1.5
        )

    def test_error_reported_with_context(self, mock_logfire):
        monitoring._state["enabled"] = True

        monitoring.log_error("ValueError", "boom", {"path": "/api/crud6/users"})

        kwargs = mock_logfire.error.call_args[1]
        assert kwargs["error_type"] == "ValueError"
        assert kwargs["path"] == "/api/crud6/users"
