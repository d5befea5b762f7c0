"""
Error types for the Bookstore SDK.

This module defines the exception types raised by the SDK:
- BookServiceError: Base exception
- NotConnectedError: Client used before connect()
- RetryInterruptedError: Backoff wait was cancelled
- InvalidRequestError: Arguments cannot be encoded as a request

gRPC failures that are fatal, or retryable but out of attempts, are not
wrapped: the original grpc.RpcError propagates so callers can inspect
code() and details().

Invariants:
    - All SDK errors inherit from BookServiceError
    - Domain outcomes (not found, busy) are never raised; they are results
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BookServiceError(Exception):
    """Base exception for all Bookstore SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "BOOKSTORE_ERROR"
        self.details = details or {}


class NotConnectedError(BookServiceError):
    """The client was used before connect() or after close()."""

    def __init__(self, address: Optional[str] = None) -> None:
        super().__init__(
            "Not connected. Call connect() first.",
            code="NOT_CONNECTED",
            details={"address": address},
        )
        self.address = address


class RetryInterruptedError(BookServiceError):
    """The wait between retry attempts was cancelled.

    Distinct from the remote failure that triggered the retry; never
    retried itself.
    """

    def __init__(self, operation: str, attempt: int) -> None:
        super().__init__(
            f"Retry interrupted for {operation}",
            code="RETRY_INTERRUPTED",
            details={"operation": operation, "attempt": attempt},
        )
        self.operation = operation
        self.attempt = attempt


class InvalidRequestError(BookServiceError):
    """Arguments could not be encoded into a request message.

    Raised before anything is sent, e.g. a publication year outside the
    int32 range of the wire field.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Invalid {operation} request: {reason}",
            code="INVALID_REQUEST",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason
