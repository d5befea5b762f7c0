"""
Unit tests for the server entry point.

Tests cover:
- Log formatter selection and library log levels
- Configuration errors at startup
- Signal handling: SIGTERM requests shutdown, then the server is stopped
"""

import asyncio
import logging
import os
import signal

import json_log_formatter
import pytest

from bookstore.book_server import main as server_main
from bookstore.book_server.config import ObservabilityConfig, ServerConfig


@pytest.fixture
def root_logger():
    """Restore root and library logger state after the test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_grpc = logging.getLogger("grpc").level
    yield root
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    logging.getLogger("grpc").setLevel(saved_grpc)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_format(self, root_logger):
        server_main.setup_logging(ServerConfig())

        assert len(root_logger.handlers) == 1
        formatter = root_logger.handlers[0].formatter
        assert isinstance(formatter, json_log_formatter.JSONFormatter)
        assert root_logger.level == logging.INFO
        assert logging.getLogger("grpc").level == logging.WARNING

    def test_text_format(self, root_logger):
        config = ServerConfig(
            observability=ObservabilityConfig(log_level="debug", log_format="text")
        )

        server_main.setup_logging(config)

        formatter = root_logger.handlers[0].formatter
        assert type(formatter) is logging.Formatter
        assert root_logger.level == logging.DEBUG

    def test_json_record_shape(self, root_logger):
        server_main.setup_logging(ServerConfig())
        formatter = root_logger.handlers[0].formatter
        record = logging.LogRecord(
            "bookstore", logging.INFO, __file__, 1, "Book added", None, None
        )
        record.book_id = "B0"

        output = formatter.format(record)

        assert '"message": "Book added"' in output
        assert '"book_id": "B0"' in output

    def test_unknown_level_falls_back_to_info(self, root_logger):
        config = ServerConfig(observability=ObservabilityConfig(log_level="chatty"))

        server_main.setup_logging(config)

        assert root_logger.level == logging.INFO


class FakeServer:
    """Stands in for Server; its start() raises SIGTERM against this process."""

    instances = []

    def __init__(self, config):
        self.config = config
        self.shutdown_requested = asyncio.Event()
        self.stopped = False
        FakeServer.instances.append(self)

    async def start(self):
        os.kill(os.getpid(), signal.SIGTERM)
        await asyncio.wait_for(self.shutdown_requested.wait(), timeout=5.0)

    def request_shutdown(self):
        self.shutdown_requested.set()

    async def stop(self):
        self.stopped = True


class TestMain:
    """Tests for main()."""

    @pytest.fixture(autouse=True)
    def isolated(self, monkeypatch, root_logger):
        for name in ("LOG_FORMAT", "LOG_LEVEL", "BOOKSTORE_GRPC_BIND", "BOOKSTORE_TABLE_STRIPES"):
            monkeypatch.delenv(name, raising=False)
        FakeServer.instances.clear()
        yield monkeypatch
        asyncio.set_event_loop(None)

    def test_invalid_config_exits_with_status_1(self, isolated, capsys):
        isolated.setenv("LOG_FORMAT", "xml")

        with pytest.raises(SystemExit) as exc_info:
            server_main.main()

        assert exc_info.value.code == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_sigterm_requests_shutdown_then_stops(self, isolated):
        isolated.setattr(server_main, "Server", FakeServer)

        server_main.main()

        (server,) = FakeServer.instances
        assert server.shutdown_requested.is_set()
        assert server.stopped
        assert isinstance(
            logging.getLogger().handlers[0].formatter, json_log_formatter.JSONFormatter
        )
        # Closing the loop hands SIGTERM back to the default disposition.
        assert signal.getsignal(signal.SIGTERM) == signal.SIG_DFL
