# mypy: ignore-errors
"""Generated protobuf code for the Bookstore SDK.

Mirrors proto/book_service.proto. Do not edit field numbers here without
updating the .proto file.

This module is internal to the SDK. Users should not import from here.
"""

from .book_service_pb2 import (
    AddBookRequest,
    Book,
    BookResponse,
    DeleteBookRequest,
    DeleteBookResponse,
    GetBookRequest,
    ListBooksRequest,
    ListBooksResponse,
    UpdateBookRequest,
)
from .book_service_pb2_grpc import (
    SERVICE_NAME,
    BookServiceStub,
    add_BookServiceServicer_to_server,
)

__all__ = [
    "Book",
    "AddBookRequest",
    "BookResponse",
    "DeleteBookRequest",
    "DeleteBookResponse",
    "GetBookRequest",
    "ListBooksRequest",
    "ListBooksResponse",
    "UpdateBookRequest",
    "SERVICE_NAME",
    "BookServiceStub",
    "add_BookServiceServicer_to_server",
]
