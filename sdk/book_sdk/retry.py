"""
Retrying call wrapper for Bookstore RPCs.

call_with_retry() runs one outer operation through three states:

    ATTEMPT  -> await the operation
                success                  -> DONE (return result)
                fatal error              -> DONE (raise immediately)
                retryable, last attempt  -> DONE (raise last error)
                retryable otherwise      -> BACKOFF
    BACKOFF  -> sleep, double the delay (capped), back to ATTEMPT
                sleep cancelled          -> DONE (RetryInterruptedError)

Only transport errors whose status code is in the retryable set are
retried. Responses with success=false are ordinary return values and are
never resubmitted here.

Invariants:
    - Backoff state lives in one call; nothing carries over between calls
    - At most policy.max_attempts invocations per call
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, FrozenSet, Optional, TypeVar

import grpc

from .errors import RetryInterruptedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_CODES: FrozenSet[grpc.StatusCode] = frozenset(
    {
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.DEADLINE_EXCEEDED,
        grpc.StatusCode.RESOURCE_EXHAUSTED,
        grpc.StatusCode.ABORTED,
        grpc.StatusCode.CANCELLED,
    }
)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry and backoff settings.

    Attributes:
        max_attempts: Total invocations, including the first
        initial_backoff: Seconds to wait after the first failure
        max_backoff: Ceiling for the wait
        multiplier: Growth factor applied after each wait
        retryable_codes: Status codes eligible for retry
    """

    max_attempts: int = 3
    initial_backoff: float = 0.2
    max_backoff: float = 2.0
    multiplier: float = 2.0
    retryable_codes: FrozenSet[grpc.StatusCode] = RETRYABLE_CODES

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff durations must not be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    def is_retryable(self, error: BaseException) -> bool:
        """Whether error is a gRPC failure with a retryable status code."""
        if not isinstance(error, grpc.RpcError):
            return False
        code = getattr(error, "code", None)
        if not callable(code):
            return False
        return code() in self.retryable_codes

    def next_backoff(self, current: float) -> float:
        return min(current * self.multiplier, self.max_backoff)


DEFAULT_POLICY = RetryPolicy()


def _status_name(error: BaseException) -> Optional[str]:
    code = getattr(error, "code", None)
    if callable(code):
        status = code()
        return getattr(status, "name", str(status))
    return None


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy = DEFAULT_POLICY,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Invoke operation, retrying transient gRPC failures with backoff.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        policy: Retry settings
        operation_name: Label used in logs and errors
        sleep: Awaitable delay (injectable for tests)

    Returns:
        Whatever operation returns on its first successful attempt

    Raises:
        grpc.RpcError: Fatal error, or the last retryable error once
            attempts are exhausted
        RetryInterruptedError: If a backoff wait is cancelled

    Cancellation of the calling task while it is sleeping between attempts
    is reported as RetryInterruptedError, not CancelledError. A caller that
    cancels through asyncio.timeout() or a TaskGroup sees this error in place
    of TimeoutError or CancelledError and should catch it explicitly.
    Cancellation that arrives while an attempt is in flight propagates as
    CancelledError unchanged.
    """
    backoff = min(policy.initial_backoff, policy.max_backoff)
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if not policy.is_retryable(e):
                raise
            if attempt >= policy.max_attempts:
                logger.warning(
                    f"{operation_name} failed after {attempt} attempts",
                    extra={"operation": operation_name, "status": _status_name(e)},
                )
                raise
            logger.warning(
                f"{operation_name} failed with {_status_name(e)}, retrying in {backoff:.3f}s",
                extra={
                    "operation": operation_name,
                    "attempt": attempt,
                    "backoff_seconds": backoff,
                },
            )

        try:
            await sleep(backoff)
        except asyncio.CancelledError as e:
            raise RetryInterruptedError(operation_name, attempt) from e

        backoff = policy.next_backoff(backoff)
        attempt += 1
