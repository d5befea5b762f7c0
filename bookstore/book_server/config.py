"""
Configuration management for the Bookstore server.

All configuration is done via environment variables - no config files.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Lock timing defaults bound every store call to 50 x 100 ms

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep the client's call timeout above the store's lock budget
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class GrpcConfig:
    """gRPC server configuration.

    Attributes:
        bind_address: Address to bind gRPC server (host:port)
        max_workers: Worker threads that run store calls
        max_message_size: Maximum message size in bytes
    """

    bind_address: str = "localhost:8980"
    max_workers: int = 10
    max_message_size: int = 4 * 1024 * 1024  # 4MB

    @classmethod
    def from_env(cls) -> GrpcConfig:
        """Load configuration from environment variables."""
        return cls(
            bind_address=os.getenv("BOOKSTORE_GRPC_BIND", "localhost:8980"),
            max_workers=int(os.getenv("BOOKSTORE_GRPC_MAX_WORKERS", "10")),
            max_message_size=int(
                os.getenv("BOOKSTORE_GRPC_MAX_MESSAGE_SIZE", str(4 * 1024 * 1024))
            ),
        )

    @property
    def host(self) -> str:
        return self.bind_address.rsplit(":", 1)[0]

    @property
    def port(self) -> int:
        return int(self.bind_address.rsplit(":", 1)[1])


@dataclass(frozen=True)
class StoreConfig:
    """Book store locking configuration.

    Attributes:
        lock_timeout_ms: Wait per lock attempt
        lock_max_attempts: Attempts before a call reports busy
        num_stripes: Lock stripes in the identifier table (power of 2)
    """

    lock_timeout_ms: int = 100
    lock_max_attempts: int = 50
    num_stripes: int = 16

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Load configuration from environment variables."""
        return cls(
            lock_timeout_ms=int(os.getenv("BOOKSTORE_LOCK_TIMEOUT_MS", "100")),
            lock_max_attempts=int(os.getenv("BOOKSTORE_LOCK_MAX_ATTEMPTS", "50")),
            num_stripes=int(os.getenv("BOOKSTORE_TABLE_STRIPES", "16")),
        )

    @property
    def lock_budget_seconds(self) -> float:
        """Worst-case lock wait for a single call."""
        return self.lock_timeout_ms * self.lock_max_attempts / 1000.0


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json").lower(),
        )


@dataclass
class ServerConfig:
    """Complete server configuration.

    Attributes:
        grpc: gRPC server configuration
        store: Book store configuration
        observability: Logging configuration
        shutdown_grace_seconds: How long in-flight calls may drain on shutdown
    """

    grpc: GrpcConfig = field(default_factory=GrpcConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    shutdown_grace_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Returns:
            ServerConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            grpc=GrpcConfig.from_env(),
            store=StoreConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
            shutdown_grace_seconds=float(os.getenv("BOOKSTORE_SHUTDOWN_GRACE_SECONDS", "5.0")),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        host, sep, port = self.grpc.bind_address.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(
                f"Invalid BOOKSTORE_GRPC_BIND '{self.grpc.bind_address}'. Expected host:port"
            )
        if self.grpc.max_workers < 1:
            raise ValueError("BOOKSTORE_GRPC_MAX_WORKERS must be at least 1")

        if self.store.lock_timeout_ms <= 0:
            raise ValueError("BOOKSTORE_LOCK_TIMEOUT_MS must be positive")
        if self.store.lock_max_attempts < 1:
            raise ValueError("BOOKSTORE_LOCK_MAX_ATTEMPTS must be at least 1")
        stripes = self.store.num_stripes
        if stripes <= 0 or (stripes & (stripes - 1)) != 0:
            raise ValueError("BOOKSTORE_TABLE_STRIPES must be a positive power of 2")

        if self.observability.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )
        if self.shutdown_grace_seconds < 0:
            raise ValueError("BOOKSTORE_SHUTDOWN_GRACE_SECONDS must not be negative")

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Server configuration loaded",
            extra={
                "grpc_bind": self.grpc.bind_address,
                "max_workers": self.grpc.max_workers,
                "lock_timeout_ms": self.store.lock_timeout_ms,
                "lock_max_attempts": self.store.lock_max_attempts,
                "num_stripes": self.store.num_stripes,
                "shutdown_grace_seconds": self.shutdown_grace_seconds,
                "log_level": self.observability.log_level,
            },
        )
