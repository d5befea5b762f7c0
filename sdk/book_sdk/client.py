"""
Bookstore client for the Python SDK.

This module provides the main client interface:
- BookClient: async connection to the Bookstore server
- Book, BookResult, DeleteResult: results returned by the client

Example:
    >>> async with BookClient("localhost", 8980) as client:
    ...     result = await client.add_book("Dune", "Frank Herbert", "978-0441013593", 1965)
    ...     print(result.book.id)

Invariants:
    - Every RPC goes through call_with_retry
    - success=false responses are returned as-is; resubmitting a busy
      result is the caller's decision
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from grpc import aio as grpc_aio

from ._generated import (
    AddBookRequest,
    BookServiceStub,
    DeleteBookRequest,
    GetBookRequest,
    ListBooksRequest,
    UpdateBookRequest,
)
from .config import ClientConfig
from .errors import InvalidRequestError, NotConnectedError
from .retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Range of the int32 publication_year field.
YEAR_MIN = -(2**31)
YEAR_MAX = 2**31 - 1


def _build_request(operation: str, message_cls: Any, **fields: Any) -> Any:
    """Construct a request message, reporting unencodable values as InvalidRequestError."""
    try:
        return message_cls(**fields)
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(operation, str(e)) from e


@dataclass(frozen=True)
class Book:
    """A book as returned by the server.

    Attributes:
        id: Server-assigned identifier ("B0", "B1", ...)
        title: Title
        author: Author
        isbn: ISBN
        publication_year: Year of publication
    """

    id: str
    title: str
    author: str
    isbn: str
    publication_year: int

    @classmethod
    def from_message(cls, message: Any) -> Book:
        return cls(
            id=message.id,
            title=message.title,
            author=message.author,
            isbn=message.isbn,
            publication_year=message.publication_year,
        )


@dataclass(frozen=True)
class BookResult:
    """Result of add/get/update.

    Attributes:
        success: Whether the server performed the operation
        message: Server message (e.g. "Book not found")
        book: The book, when success is True
    """

    success: bool
    message: str
    book: Book | None = None


@dataclass(frozen=True)
class DeleteResult:
    """Result of delete."""

    success: bool
    message: str


class BookClient:
    """Async client for the Bookstore gRPC service.

    Example:
        >>> client = BookClient("localhost", 8980)
        >>> await client.connect()
        >>> books = await client.list_books()
        >>> await client.close()
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8980,
        *,
        policy: RetryPolicy | None = None,
        timeout: float | None = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            host: Server hostname
            port: Server port
            policy: Retry settings (defaults: 3 attempts, 200ms..2s backoff)
            timeout: Per-attempt deadline in seconds
        """
        self._host = host
        self._port = port
        self._policy = policy or RetryPolicy()
        self._timeout = timeout
        self._channel: grpc_aio.Channel | None = None
        self._stub: BookServiceStub | None = None
        self.last_list_skipped = 0

    @classmethod
    def from_config(cls, config: ClientConfig) -> BookClient:
        return cls(
            config.host,
            config.port,
            policy=config.retry_policy(),
            timeout=config.call_timeout,
        )

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    async def connect(self) -> None:
        """Open the channel to the server."""
        if self._channel is not None:
            return

        self._channel = grpc_aio.insecure_channel(self.address)
        self._stub = BookServiceStub(self._channel)
        logger.debug(f"Connected to Bookstore server at {self.address}")

    async def close(self) -> None:
        """Close the connection."""
        if self._channel:
            await self._channel.close()
            self._channel = None
            self._stub = None
            logger.debug("Disconnected from Bookstore server")

    async def __aenter__(self) -> BookClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_connected(self) -> BookServiceStub:
        if self._stub is None:
            raise NotConnectedError(self.address)
        return self._stub

    async def _call(self, name: str, rpc: Callable[..., Awaitable[T]], request: Any) -> T:
        return await call_with_retry(
            lambda: rpc(request, timeout=self._timeout),
            policy=self._policy,
            operation_name=name,
        )

    async def add_book(
        self, title: str, author: str, isbn: str, publication_year: int
    ) -> BookResult:
        """Add a book; the server assigns its identifier."""
        stub = self._ensure_connected()
        request = _build_request(
            "add book",
            AddBookRequest,
            title=title,
            author=author,
            isbn=isbn,
            publication_year=publication_year,
        )
        response = await self._call("add book", stub.AddBook, request)
        return self._book_result(response)

    async def get_book(self, book_id: str) -> BookResult:
        """Fetch one book by identifier."""
        stub = self._ensure_connected()
        response = await self._call("get book", stub.GetBook, GetBookRequest(id=book_id))
        return self._book_result(response)

    async def update_book(
        self,
        book_id: str,
        title: str,
        author: str,
        isbn: str,
        publication_year: int,
    ) -> BookResult:
        """Replace every field of a book."""
        stub = self._ensure_connected()
        request = _build_request(
            "update book",
            UpdateBookRequest,
            id=book_id,
            title=title,
            author=author,
            isbn=isbn,
            publication_year=publication_year,
        )
        response = await self._call("update book", stub.UpdateBook, request)
        return self._book_result(response)

    async def delete_book(self, book_id: str) -> DeleteResult:
        """Delete a book."""
        stub = self._ensure_connected()
        response = await self._call(
            "delete book", stub.DeleteBook, DeleteBookRequest(id=book_id)
        )
        return DeleteResult(success=response.success, message=response.message)

    async def list_books(self) -> list[Book]:
        """List books.

        The listing is best effort: books locked by a writer for longer than
        the server's lock timeout are left out. The number left out is kept
        in last_list_skipped.
        """
        stub = self._ensure_connected()
        response = await self._call("list books", stub.ListBooks, ListBooksRequest())
        self.last_list_skipped = response.skipped
        if response.skipped:
            logger.info(
                "Listing is incomplete",
                extra={"skipped": response.skipped},
            )
        return [Book.from_message(b) for b in response.books]

    @staticmethod
    def _book_result(response: Any) -> BookResult:
        book = Book.from_message(response.book) if response.HasField("book") else None
        return BookResult(success=response.success, message=response.message, book=book)
