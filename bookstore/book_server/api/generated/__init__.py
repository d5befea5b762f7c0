# mypy: ignore-errors
"""Generated protobuf code for the Bookstore server.

The server and the SDK share one set of message classes so the descriptor
is registered in the default pool exactly once.
"""

from sdk.book_sdk._generated import (
    SERVICE_NAME,
    AddBookRequest,
    Book,
    BookResponse,
    DeleteBookRequest,
    DeleteBookResponse,
    GetBookRequest,
    ListBooksRequest,
    ListBooksResponse,
    UpdateBookRequest,
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
    "add_BookServiceServicer_to_server",
]
