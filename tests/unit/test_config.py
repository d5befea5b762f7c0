"""
Unit tests for server and client configuration.
"""

import logging

import pytest

from bookstore.book_server.config import (
    GrpcConfig,
    ObservabilityConfig,
    ServerConfig,
    StoreConfig,
)
from sdk.book_sdk.config import ClientConfig

SERVER_ENV = (
    "BOOKSTORE_GRPC_BIND",
    "BOOKSTORE_GRPC_MAX_WORKERS",
    "BOOKSTORE_GRPC_MAX_MESSAGE_SIZE",
    "BOOKSTORE_LOCK_TIMEOUT_MS",
    "BOOKSTORE_LOCK_MAX_ATTEMPTS",
    "BOOKSTORE_TABLE_STRIPES",
    "BOOKSTORE_SHUTDOWN_GRACE_SECONDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
)

CLIENT_ENV = (
    "BOOKSTORE_HOST",
    "BOOKSTORE_PORT",
    "BOOKSTORE_CALL_TIMEOUT",
    "BOOKSTORE_MAX_ATTEMPTS",
    "BOOKSTORE_INITIAL_BACKOFF_MS",
    "BOOKSTORE_MAX_BACKOFF_MS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in SERVER_ENV + CLIENT_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self, clean_env):
        config = ServerConfig.from_env()

        assert config.grpc.bind_address == "localhost:8980"
        assert config.grpc.host == "localhost"
        assert config.grpc.port == 8980
        assert config.store.lock_timeout_ms == 100
        assert config.store.lock_max_attempts == 50
        assert config.store.lock_budget_seconds == pytest.approx(5.0)
        assert config.observability.log_format == "json"
        assert config.shutdown_grace_seconds == 5.0

    def test_reads_environment(self, clean_env):
        clean_env.setenv("BOOKSTORE_GRPC_BIND", "0.0.0.0:9000")
        clean_env.setenv("BOOKSTORE_GRPC_MAX_WORKERS", "4")
        clean_env.setenv("BOOKSTORE_LOCK_TIMEOUT_MS", "20")
        clean_env.setenv("BOOKSTORE_LOCK_MAX_ATTEMPTS", "5")
        clean_env.setenv("BOOKSTORE_TABLE_STRIPES", "32")
        clean_env.setenv("BOOKSTORE_SHUTDOWN_GRACE_SECONDS", "1.5")
        clean_env.setenv("LOG_FORMAT", "TEXT")
        clean_env.setenv("LOG_LEVEL", "DEBUG")

        config = ServerConfig.from_env()

        assert config.grpc.port == 9000
        assert config.grpc.max_workers == 4
        assert config.store == StoreConfig(lock_timeout_ms=20, lock_max_attempts=5, num_stripes=32)
        assert config.observability == ObservabilityConfig(log_level="DEBUG", log_format="text")
        assert config.shutdown_grace_seconds == 1.5

    @pytest.mark.parametrize(
        "config",
        [
            ServerConfig(grpc=GrpcConfig(bind_address="localhost")),
            ServerConfig(grpc=GrpcConfig(bind_address=":8980")),
            ServerConfig(grpc=GrpcConfig(bind_address="localhost:http")),
            ServerConfig(grpc=GrpcConfig(max_workers=0)),
            ServerConfig(store=StoreConfig(lock_timeout_ms=0)),
            ServerConfig(store=StoreConfig(lock_max_attempts=0)),
            ServerConfig(store=StoreConfig(num_stripes=12)),
            ServerConfig(observability=ObservabilityConfig(log_format="xml")),
            ServerConfig(shutdown_grace_seconds=-1.0),
        ],
    )
    def test_validate_rejects(self, config):
        with pytest.raises(ValueError):
            config.validate()

    def test_from_env_validates(self, clean_env):
        clean_env.setenv("BOOKSTORE_TABLE_STRIPES", "10")

        with pytest.raises(ValueError, match="power of 2"):
            ServerConfig.from_env()

    def test_log_config(self, caplog):
        with caplog.at_level(logging.INFO, logger="bookstore.book_server.config"):
            ServerConfig().log_config()

        assert "Server configuration loaded" in caplog.text


class TestClientConfig:
    """Tests for ClientConfig."""

    def test_defaults(self, clean_env):
        config = ClientConfig.from_env()

        assert config.address == "localhost:8980"
        assert config.call_timeout == 10.0

    def test_reads_environment(self, clean_env):
        clean_env.setenv("BOOKSTORE_HOST", "books.internal")
        clean_env.setenv("BOOKSTORE_PORT", "9443")
        clean_env.setenv("BOOKSTORE_MAX_ATTEMPTS", "5")
        clean_env.setenv("BOOKSTORE_INITIAL_BACKOFF_MS", "50")
        clean_env.setenv("BOOKSTORE_MAX_BACKOFF_MS", "400")

        config = ClientConfig.from_env()

        assert config.address == "books.internal:9443"
        policy = config.retry_policy()
        assert policy.max_attempts == 5
        assert policy.initial_backoff == pytest.approx(0.05)
        assert policy.max_backoff == pytest.approx(0.4)

    def test_bad_number_raises(self, clean_env):
        clean_env.setenv("BOOKSTORE_PORT", "eighty")

        with pytest.raises(ValueError):
            ClientConfig.from_env()
