"""Unit tests for logging configuration."""

import logging

import pytest
import structlog

from hateoas_resource.config import LoggingConfig
from hateoas_resource.observability.logger import (
    TRACE,
    VERBOSE,
    LogContext,
    _context_processor,
    add_context,
    clear_all_context,
    clear_context,
    configure_from_config,
    configure_logging,
    get_log_level,
)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    clear_all_context()
    yield
    clear_all_context()
    structlog.reset_defaults()
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("hateoas_resource") or name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.NOTSET)
    root.setLevel(level)


class TestLoggingConfiguration:
    """Test configure_logging()."""

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_sets_root_level(self, level):
        """Test the root logger level."""
        configure_logging(level=level)

        assert logging.getLogger().level == getattr(logging, level)

    def test_custom_levels(self):
        """Test TRACE and VERBOSE."""
        configure_logging(level="TRACE")
        assert logging.getLogger().level == TRACE

        configure_logging(level="verbose")
        assert logging.getLogger().level == VERBOSE
        assert logging.getLevelName(VERBOSE) == "VERBOSE"

    def test_unknown_level_falls_back_to_info(self):
        """Test unknown level names."""
        assert get_log_level("chatty") == logging.INFO

    def test_json_logs(self):
        """Test JSON rendering."""
        configure_logging(json_logs=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_log_file(self, tmp_path):
        """Test logging to a file."""
        log_file = tmp_path / "logs" / "client.log"

        configure_logging(log_file=log_file)

        assert log_file.parent.exists()
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_log_filter_quiets_other_components(self):
        """Test log_filter."""
        logging.getLogger("hateoas_resource.http.fetcher")
        logging.getLogger("hateoas_resource.cache.store")

        configure_logging(level="DEBUG", log_filter="fetcher")

        assert logging.getLogger("hateoas_resource.cache.store").level == logging.WARNING
        assert logging.getLogger("hateoas_resource.http.fetcher").level == logging.NOTSET

    def test_transport_loggers_quiet_unless_trace(self):
        """Test httpx and httpcore levels."""
        configure_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

        configure_logging(level="TRACE")
        assert logging.getLogger("httpx").level == TRACE

    def test_configure_from_config(self, mocker):
        """Test configure_from_config."""
        configure = mocker.patch("hateoas_resource.observability.logger.configure_logging")
        config = LoggingConfig(level="DEBUG", json_logs=True)

        configure_from_config(config)
        configure_from_config(config, level="ERROR")

        assert configure.call_args_list == [
            mocker.call(level="DEBUG", json_logs=True, log_file=None),
            mocker.call(level="ERROR", json_logs=True, log_file=None),
        ]


class TestLogContext:
    """Test context binding."""

    def test_add_and_clear_context(self):
        """Test add_context and clear_context."""
        add_context(session="abc", user="alice")
        clear_context("user")

        event = _context_processor(None, "info", {"event": "x"})

        assert event == {"event": "x", "session": "abc"}

    def test_log_context_is_scoped(self):
        """Test LogContext restores fields on exit."""
        with LogContext(request_id="r1"):
            assert _context_processor(None, "info", {})["request_id"] == "r1"

        assert "request_id" not in _context_processor(None, "info", {})

    def test_nested_contexts(self):
        """Test nested LogContext blocks."""
        with LogContext(a=1):
            with LogContext(b=2):
                assert _context_processor(None, "info", {}) == {"a": 1, "b": 2}
            assert _context_processor(None, "info", {}) == {"a": 1}

    def test_event_keys_win_over_bound_fields(self):
        """Test event keys are not overridden by bound fields."""
        with LogContext(url="https://bound.example.com/"):
            event = _context_processor(None, "info", {"url": "https://event.example.com/"})

        assert event["url"] == "https://event.example.com/"
