"""
Bookstore Python SDK - client library for the Bookstore service.

This SDK provides:
- BookClient for connecting to the server (async, grpc.aio)
- call_with_retry / RetryPolicy for retrying transient gRPC failures
- Result types (Book, BookResult, DeleteResult)

Example:
    >>> from sdk.book_sdk import BookClient
    >>>
    >>> async with BookClient("localhost", 8980) as client:
    ...     added = await client.add_book("Dune", "Frank Herbert", "978-0441013593", 1965)
    ...     fetched = await client.get_book(added.book.id)

Invariants:
    - Only UNAVAILABLE, DEADLINE_EXCEEDED, RESOURCE_EXHAUSTED, ABORTED and
      CANCELLED are retried
    - success=false responses are results, never retried automatically

Version: 1.0.0
"""

__version__ = "1.0.0"

from .client import Book, BookClient, BookResult, DeleteResult
from .config import ClientConfig
from .errors import (
    BookServiceError,
    InvalidRequestError,
    NotConnectedError,
    RetryInterruptedError,
)
from .retry import RETRYABLE_CODES, RetryPolicy, call_with_retry

__all__ = [
    "Book",
    "BookClient",
    "BookResult",
    "BookServiceError",
    "ClientConfig",
    "DeleteResult",
    "InvalidRequestError",
    "NotConnectedError",
    "RETRYABLE_CODES",
    "RetryInterruptedError",
    "RetryPolicy",
    "call_with_retry",
]
