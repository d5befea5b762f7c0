"""
Integration tests for the gRPC service with the SDK client.

A real grpc.aio server is started on a free local port for each test and
driven through BookClient.

Tests cover:
- Full CRUD flow over the wire
- Busy outcomes returned as responses, not errors
- Fatal status codes propagating without retry
- Retry exhaustion against an unreachable server
- Server start and graceful stop
"""

import asyncio
import time
from contextlib import asynccontextmanager

import grpc
import pytest

from bookstore.book_server.api import BookServicer, GrpcServer
from bookstore.book_server.config import GrpcConfig, ServerConfig, StoreConfig
from bookstore.book_server.main import Server
from bookstore.book_server.store import BookStore
from sdk.book_sdk import BookClient
from sdk.book_sdk.client import Book
from sdk.book_sdk.errors import NotConnectedError
from sdk.book_sdk.retry import RetryPolicy

FAST_RETRY = RetryPolicy(max_attempts=3, initial_backoff=0.01, max_backoff=0.05)


@asynccontextmanager
async def running_server(store):
    servicer = BookServicer(store, max_workers=4)
    server = GrpcServer(servicer, host="localhost", port=0)
    port = await server.start()
    try:
        yield port
    finally:
        await server.stop(grace_period=0.5)
        store.close()
        servicer.close()


@asynccontextmanager
async def connected(port, policy=FAST_RETRY):
    async with BookClient("localhost", port, policy=policy, timeout=5.0) as client:
        yield client


class TestBookService:
    """CRUD over gRPC."""

    @pytest.mark.asyncio
    async def test_full_flow(self):
        store = BookStore()
        async with running_server(store) as port, connected(port) as client:
            first = await client.add_book("Dune", "Herbert", "978-0", 1965)
            second = await client.add_book("Neuromancer", "Gibson", "978-1", 1984)

            assert first.success and first.book.id == "B0"
            assert second.book.id == "B1"

            deleted = await client.delete_book("B0")
            assert deleted.success
            assert deleted.message == "Book deleted successfully"

            missing = await client.get_book("B0")
            assert not missing.success
            assert missing.book is None
            assert missing.message == "Book not found"

            assert await client.list_books() == [
                Book("B1", "Neuromancer", "Gibson", "978-1", 1984)
            ]
            assert client.last_list_skipped == 0

    @pytest.mark.asyncio
    async def test_update(self):
        store = BookStore()
        async with running_server(store) as port, connected(port) as client:
            await client.add_book("Dune", "Herbert", "978-0", 1965)

            updated = await client.update_book("B0", "Dune Messiah", "Herbert", "978-3", 1969)
            fetched = await client.get_book("B0")

            assert updated.success
            assert updated.message == "Book updated successfully"
            assert fetched.book == Book("B0", "Dune Messiah", "Herbert", "978-3", 1969)

    @pytest.mark.asyncio
    async def test_busy_is_returned_not_retried(self):
        store = BookStore(lock_timeout=0.02, lock_max_attempts=5)
        async with running_server(store) as port, connected(port) as client:
            await client.add_book("Dune", "Herbert", "978-0", 1965)
            await client.add_book("Emma", "Austen", "978-2", 1815)
            lock = store._entries.get("B0").lock
            lock.acquire_write()
            try:
                result = await client.get_book("B0")
                listed = await client.list_books()
            finally:
                lock.release_write()

            assert not result.success
            assert result.message == "Book is currently being modified, please retry later"
            assert [book.id for book in listed] == ["B1"]
            assert client.last_list_skipped == 1
            assert (await client.get_book("B0")).success

    @pytest.mark.asyncio
    async def test_missing_field_is_invalid_argument(self):
        store = BookStore()
        async with running_server(store) as port, connected(port) as client:
            start = time.monotonic()
            with pytest.raises(grpc.RpcError) as exc_info:
                await client.add_book("", "Herbert", "978-0", 1965)
            elapsed = time.monotonic() - start

        assert exc_info.value.code() is grpc.StatusCode.INVALID_ARGUMENT
        assert "title" in exc_info.value.details()
        assert elapsed < 1.0
        assert store.ids_issued == 0


class TestRetryAgainstServer:
    """Client retry behavior on a real channel."""

    @pytest.mark.asyncio
    async def test_unreachable_server_exhausts_attempts(self):
        store = BookStore()
        async with running_server(store) as port:
            pass

        async with connected(port) as client:
            with pytest.raises(grpc.RpcError) as exc_info:
                await client.list_books()

        assert exc_info.value.code() is grpc.StatusCode.UNAVAILABLE


class TestServerLifecycle:
    """Server orchestrator start and stop."""

    @pytest.mark.asyncio
    async def test_start_serve_and_stop(self):
        config = ServerConfig(
            grpc=GrpcConfig(bind_address="localhost:0", max_workers=2),
            store=StoreConfig(lock_timeout_ms=20, lock_max_attempts=5),
            shutdown_grace_seconds=0.5,
        )
        server = Server(config)
        serving = asyncio.ensure_future(server.start())
        try:
            for _ in range(100):
                if server.is_running:
                    break
                await asyncio.sleep(0.01)
            assert server.is_running

            async with connected(server.grpc_server.port) as client:
                assert (await client.add_book("Dune", "Herbert", "978-0", 1965)).success

            server.request_shutdown()
            await asyncio.wait_for(serving, timeout=5.0)
        finally:
            await server.stop()

        assert not server.is_running
        assert server.store.closed
        # Second stop is a no-op.
        await server.stop()


class TestClientState:
    """Client use outside a connection."""

    @pytest.mark.asyncio
    async def test_call_before_connect_raises(self):
        client = BookClient("localhost", 1)

        with pytest.raises(NotConnectedError) as exc_info:
            await client.get_book("B0")

        assert exc_info.value.address == "localhost:1"
