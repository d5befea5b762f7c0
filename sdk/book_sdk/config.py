"""
Client configuration for the Bookstore SDK.

Settings come from environment variables; CLI flags override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .retry import RetryPolicy


@dataclass(frozen=True)
class ClientConfig:
    """Connection and retry settings.

    Attributes:
        host: Server hostname
        port: Server port
        call_timeout: Per-attempt deadline in seconds; keep it above the
            server's lock budget (5s by default)
        max_attempts: Invocations per call, including the first
        initial_backoff_ms: Wait after the first retryable failure
        max_backoff_ms: Ceiling for the wait
    """

    host: str = "localhost"
    port: int = 8980
    call_timeout: float = 10.0
    max_attempts: int = 3
    initial_backoff_ms: int = 200
    max_backoff_ms: int = 2000

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("BOOKSTORE_HOST", "localhost"),
            port=int(os.getenv("BOOKSTORE_PORT", "8980")),
            call_timeout=float(os.getenv("BOOKSTORE_CALL_TIMEOUT", "10.0")),
            max_attempts=int(os.getenv("BOOKSTORE_MAX_ATTEMPTS", "3")),
            initial_backoff_ms=int(os.getenv("BOOKSTORE_INITIAL_BACKOFF_MS", "200")),
            max_backoff_ms=int(os.getenv("BOOKSTORE_MAX_BACKOFF_MS", "2000")),
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_backoff=self.initial_backoff_ms / 1000.0,
            max_backoff=self.max_backoff_ms / 1000.0,
        )
