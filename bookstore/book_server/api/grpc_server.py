"""
gRPC server implementation for the Bookstore service.

This module provides the gRPC API server that carries requests into the
BookStore. It uses grpc.aio for the transport and hands every store call
to a thread pool, because store calls may block on per-record locks.

Invariants:
    - Domain outcomes (found, not found, busy) are response values
    - Interrupted lock waits surface as CANCELLED
    - Missing required fields surface as INVALID_ARGUMENT
    - Anything else surfaces as INTERNAL and is logged with a traceback

How to change safely:
    - Add new RPCs without modifying existing ones
    - Keep blocking work off the event loop
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from concurrent import futures
from typing import Any, Callable, Optional

import grpc
from grpc import aio as grpc_aio

from ..store import Book, BookStore, LockInterruptedError, StoreResult
from ..store.book_store import MSG_ADDED
from .generated import (
    BookResponse,
    DeleteBookResponse,
    ListBooksResponse,
    add_BookServiceServicer_to_server,
)
from .generated import Book as BookMessage

logger = logging.getLogger(__name__)


def book_to_message(book: Book) -> BookMessage:
    """Convert a stored book to its wire form."""
    return BookMessage(
        id=book.id,
        title=book.title,
        author=book.author,
        isbn=book.isbn,
        publication_year=book.publication_year,
    )


def _book_response(result: StoreResult) -> BookResponse:
    response = BookResponse(success=result.success, message=result.message)
    if result.book is not None:
        response.book.CopyFrom(book_to_message(result.book))
    return response


class BookServicer:
    """gRPC service implementation for BookService.

    One object with the five RPC handlers, registered through a generic
    handler. Each handler validates field presence on the event loop, then
    runs the store call on the worker pool.

    Attributes:
        store: BookStore shared by all handlers
    """

    def __init__(self, store: BookStore, max_workers: int = 10) -> None:
        """Initialize the servicer.

        Args:
            store: BookStore instance
            max_workers: Worker threads for store calls
        """
        self.store = store
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="bookstore-worker",
        )

    async def AddBook(self, request: Any, context: grpc_aio.ServicerContext) -> BookResponse:
        await self._require(
            context, title=request.title, author=request.author, isbn=request.isbn
        )
        book = await self._invoke(
            context,
            "AddBook",
            self.store.add,
            request.title,
            request.author,
            request.isbn,
            request.publication_year,
            interruptible=False,
        )
        logger.info("AddBook succeeded", extra={"book_id": book.id})
        return BookResponse(book=book_to_message(book), success=True, message=MSG_ADDED)

    async def DeleteBook(
        self, request: Any, context: grpc_aio.ServicerContext
    ) -> DeleteBookResponse:
        await self._require(context, id=request.id)
        result = await self._invoke(context, "DeleteBook", self.store.delete, request.id)
        logger.debug(
            "DeleteBook finished",
            extra={"book_id": request.id, "outcome": result.outcome.value},
        )
        return DeleteBookResponse(success=result.success, message=result.message)

    async def GetBook(self, request: Any, context: grpc_aio.ServicerContext) -> BookResponse:
        await self._require(context, id=request.id)
        result = await self._invoke(context, "GetBook", self.store.get, request.id)
        return _book_response(result)

    async def ListBooks(
        self, request: Any, context: grpc_aio.ServicerContext
    ) -> ListBooksResponse:
        listing = await self._invoke(context, "ListBooks", self.store.scan)
        return ListBooksResponse(
            books=[book_to_message(book) for book in listing.books],
            skipped=listing.skipped,
        )

    async def UpdateBook(self, request: Any, context: grpc_aio.ServicerContext) -> BookResponse:
        await self._require(
            context,
            id=request.id,
            title=request.title,
            author=request.author,
            isbn=request.isbn,
        )
        result = await self._invoke(
            context,
            "UpdateBook",
            self.store.update,
            request.id,
            request.title,
            request.author,
            request.isbn,
            request.publication_year,
        )
        return _book_response(result)

    async def _require(self, context: grpc_aio.ServicerContext, **fields: str) -> None:
        """Abort with INVALID_ARGUMENT if any required string field is empty."""
        missing = [name for name, value in fields.items() if not value.strip()]
        if missing:
            await context.abort(
                grpc.StatusCode.INVALID_ARGUMENT,
                f"Missing required field(s): {', '.join(missing)}",
            )

    async def _invoke(
        self,
        context: grpc_aio.ServicerContext,
        rpc: str,
        fn: Callable[..., Any],
        *args: Any,
        interruptible: bool = True,
    ) -> Any:
        """Run a store call on the worker pool and map its exceptions."""
        interrupt = threading.Event()
        if interruptible:
            call = functools.partial(fn, *args, interrupt=interrupt)
        else:
            call = functools.partial(fn, *args)
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, call)
        except asyncio.CancelledError:
            # The worker keeps running; make it stop at its next lock attempt.
            interrupt.set()
            raise
        except LockInterruptedError as e:
            logger.info(
                f"{rpc} interrupted",
                extra={"book_id": e.book_id, "operation": e.operation},
            )
            await context.abort(grpc.StatusCode.CANCELLED, str(e))
        except Exception as e:
            logger.error(f"{rpc} failed: {e}", exc_info=True)
            await context.abort(grpc.StatusCode.INTERNAL, f"{rpc} failed: {e}")

    def close(self) -> None:
        """Stop the worker pool, waiting for running store calls to return."""
        self._executor.shutdown(wait=True, cancel_futures=True)


class GrpcServer:
    """gRPC server wrapper for the Bookstore service.

    This class manages the gRPC server lifecycle including:
    - Server initialization
    - Service registration
    - Graceful shutdown

    Example:
        >>> server = GrpcServer(servicer, port=8980)
        >>> await server.start()
        >>> # Server is now running
        >>> await server.stop()
    """

    def __init__(
        self,
        servicer: BookServicer,
        host: str = "localhost",
        port: int = 8980,
        max_message_size: int = 4 * 1024 * 1024,
    ) -> None:
        """Initialize the gRPC server.

        Args:
            servicer: BookServicer instance
            host: Host to bind to
            port: Port to listen on (0 picks a free port)
            max_message_size: Maximum message size in bytes
        """
        self.servicer = servicer
        self.host = host
        self.port = port
        self.max_message_size = max_message_size
        self._server: Optional[grpc_aio.Server] = None
        self._running = False

    async def start(self) -> int:
        """Start the gRPC server.

        Returns:
            The port actually bound
        """
        if self._running:
            logger.warning("Server already running")
            return self.port

        self._server = grpc_aio.server(
            options=[
                ("grpc.max_send_message_length", self.max_message_size),
                ("grpc.max_receive_message_length", self.max_message_size),
            ],
        )
        add_BookServiceServicer_to_server(self.servicer, self._server)

        address = f"{self.host}:{self.port}"
        bound_port = self._server.add_insecure_port(address)
        if bound_port == 0:
            raise RuntimeError(f"Failed to bind gRPC server to {address}")
        self.port = bound_port

        await self._server.start()
        self._running = True
        logger.info(
            f"gRPC server listening on {self.host}:{self.port}",
            extra={"host": self.host, "port": self.port},
        )
        return self.port

    async def stop(self, grace_period: float = 5.0) -> None:
        """Stop the gRPC server gracefully.

        Args:
            grace_period: Time to wait for pending RPCs to complete before
                they are cancelled
        """
        if not self._running:
            return

        logger.info("Stopping gRPC server", extra={"grace_period": grace_period})
        self._running = False

        if self._server:
            await self._server.stop(grace_period)

    async def wait_for_termination(self) -> None:
        if self._server:
            await self._server.wait_for_termination()

    @property
    def is_running(self) -> bool:
        """Whether the server is running."""
        return self._running
