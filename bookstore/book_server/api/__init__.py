"""
API module for the Bookstore server.

This module provides the external interface:
- gRPC server exposing AddBook, DeleteBook, GetBook, ListBooks, UpdateBook

Invariants:
    - Domain outcomes travel in success/message, not status codes
    - Store calls run on worker threads, never on the event loop

How to change safely:
    - gRPC changes must be backward compatible
    - Add new RPC methods, don't modify existing ones
"""

from .grpc_server import BookServicer, GrpcServer, book_to_message

__all__ = [
    "BookServicer",
    "GrpcServer",
    "book_to_message",
]
