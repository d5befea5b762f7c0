# mypy: ignore-errors
"""Client stub and server registration for bookservice.BookService."""

import grpc

from . import book_service_pb2

SERVICE_NAME = "bookservice.BookService"


def _method_path(method: str) -> str:
    return f"/{SERVICE_NAME}/{method}"


class BookServiceStub:
    """Client stub for BookService.

    Works with both ``grpc.Channel`` and ``grpc.aio.Channel``; with an aio
    channel each attribute returns an awaitable call.
    """

    def __init__(self, channel) -> None:
        for method, (request, response) in book_service_pb2.METHODS.items():
            request_cls = getattr(book_service_pb2, request)
            response_cls = getattr(book_service_pb2, response)
            setattr(
                self,
                method,
                channel.unary_unary(
                    _method_path(method),
                    request_serializer=request_cls.SerializeToString,
                    response_deserializer=response_cls.FromString,
                ),
            )


def add_BookServiceServicer_to_server(servicer, server) -> None:
    """Register a servicer exposing AddBook, DeleteBook, GetBook, ListBooks
    and UpdateBook on ``server``."""
    rpc_method_handlers = {}
    for method, (request, response) in book_service_pb2.METHODS.items():
        request_cls = getattr(book_service_pb2, request)
        response_cls = getattr(book_service_pb2, response)
        rpc_method_handlers[method] = grpc.unary_unary_rpc_method_handler(
            getattr(servicer, method),
            request_deserializer=request_cls.FromString,
            response_serializer=response_cls.SerializeToString,
        )
    generic_handler = grpc.method_handlers_generic_handler(SERVICE_NAME, rpc_method_handlers)
    server.add_generic_rpc_handlers((generic_handler,))
