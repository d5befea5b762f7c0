"""
Bookstore Server - Main entry point.

This module starts the Bookstore server:
- BookStore (constructed here, passed explicitly to the servicer)
- gRPC server (primary API)

Usage:
    python -m bookstore.book_server.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - The store exists before the first RPC is accepted
    - Graceful shutdown waits up to the grace period for in-flight calls,
      then cancels them and interrupts any lock waits still in progress

How to change safely:
    - Keep the shutdown order: gRPC server, store, worker pool
    - Test shutdown sequence thoroughly
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter

from .api import BookServicer, GrpcServer
from .config import ServerConfig
from .store import BookStore

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("grpc").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


class Server:
    """Bookstore server orchestrator.

    Manages the lifecycle of all server components:
    - BookStore
    - Worker pool (owned by the servicer)
    - gRPC server

    Attributes:
        config: Server configuration
        store: Book store shared by all handlers
        servicer: gRPC service implementation
        grpc_server: gRPC server wrapper

    Example:
        >>> server = Server()
        >>> await server.start()
        >>> # Server is running until request_shutdown()
        >>> await server.stop()
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        """Initialize the server.

        Args:
            config: Optional server configuration (loaded from env if not provided)
        """
        self.config = config or ServerConfig.from_env()
        self._running = False
        self._stopped = False
        self._shutdown_event = asyncio.Event()

        # Components (initialized in start())
        self.store: BookStore | None = None
        self.servicer: BookServicer | None = None
        self.grpc_server: GrpcServer | None = None

    async def start(self) -> None:
        """Start the server and serve until shutdown is requested."""
        if self._running:
            logger.warning("Server already running")
            return

        logger.info("Starting Bookstore server")
        self.config.log_config()

        try:
            self.store = BookStore.from_config(self.config.store)

            self.servicer = BookServicer(
                store=self.store,
                max_workers=self.config.grpc.max_workers,
            )

            self.grpc_server = GrpcServer(
                servicer=self.servicer,
                host=self.config.grpc.host,
                port=self.config.grpc.port,
                max_message_size=self.config.grpc.max_message_size,
            )
            await self.grpc_server.start()

            self._running = True
            logger.info("Bookstore server started successfully")

            # Wait for shutdown signal
            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Server startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the server gracefully. Safe to call more than once."""
        if self._stopped or self.store is None:
            return
        self._stopped = True

        logger.info("Stopping Bookstore server")

        if self.grpc_server:
            await self.grpc_server.stop(self.config.shutdown_grace_seconds)

        if self.store:
            self.store.close()

        if self.servicer:
            self.servicer.close()

        self._running = False
        logger.info("Bookstore server stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        return self._running


def main() -> None:
    """Main entry point."""
    # Load configuration
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config)

    # Setup signal handlers
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    # Create server
    server = Server(config)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        server.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    # Run server
    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(server.stop())
        loop.close()


if __name__ == "__main__":
    main()
