# mypy: ignore-errors
"""Message classes for proto/book_service.proto.

The file descriptor is assembled with descriptor_pb2 and registered in the
default descriptor pool, so the resulting classes are ordinary protobuf
messages (SerializeToString, FromString, CopyFrom, ...).

Field numbers must stay in sync with proto/book_service.proto.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_F = descriptor_pb2.FieldDescriptorProto

_PACKAGE = "bookservice"


def _field(
    name: str,
    number: int,
    type_: int,
    *,
    message: str | None = None,
    repeated: bool = False,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _F(
        name=name,
        number=number,
        type=type_,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if message is not None:
        field.type_name = f".{_PACKAGE}.{message}"
    return field


_BOOK_FIELDS = (
    _field("title", 2, _F.TYPE_STRING),
    _field("author", 3, _F.TYPE_STRING),
    _field("isbn", 4, _F.TYPE_STRING),
    _field("publication_year", 5, _F.TYPE_INT32),
)

_MESSAGES = {
    "Book": (_field("id", 1, _F.TYPE_STRING),) + _BOOK_FIELDS,
    "AddBookRequest": (
        _field("title", 1, _F.TYPE_STRING),
        _field("author", 2, _F.TYPE_STRING),
        _field("isbn", 3, _F.TYPE_STRING),
        _field("publication_year", 4, _F.TYPE_INT32),
    ),
    "BookResponse": (
        _field("book", 1, _F.TYPE_MESSAGE, message="Book"),
        _field("success", 2, _F.TYPE_BOOL),
        _field("message", 3, _F.TYPE_STRING),
    ),
    "DeleteBookRequest": (_field("id", 1, _F.TYPE_STRING),),
    "DeleteBookResponse": (
        _field("success", 1, _F.TYPE_BOOL),
        _field("message", 2, _F.TYPE_STRING),
    ),
    "GetBookRequest": (_field("id", 1, _F.TYPE_STRING),),
    "ListBooksRequest": (),
    "ListBooksResponse": (
        _field("books", 1, _F.TYPE_MESSAGE, message="Book", repeated=True),
        _field("skipped", 2, _F.TYPE_INT32),
    ),
    "UpdateBookRequest": (_field("id", 1, _F.TYPE_STRING),) + _BOOK_FIELDS,
}

# rpc name -> (request message, response message)
METHODS = {
    "AddBook": ("AddBookRequest", "BookResponse"),
    "DeleteBook": ("DeleteBookRequest", "DeleteBookResponse"),
    "GetBook": ("GetBookRequest", "BookResponse"),
    "ListBooks": ("ListBooksRequest", "ListBooksResponse"),
    "UpdateBook": ("UpdateBookRequest", "BookResponse"),
}


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="book_service.proto",
        package=_PACKAGE,
        syntax="proto3",
    )
    for name, fields in _MESSAGES.items():
        message = proto.message_type.add(name=name)
        message.field.extend(fields)

    service = proto.service.add(name="BookService")
    for method, (request, response) in METHODS.items():
        service.method.add(
            name=method,
            input_type=f".{_PACKAGE}.{request}",
            output_type=f".{_PACKAGE}.{response}",
        )
    return proto


DESCRIPTOR = descriptor_pool.Default().AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(DESCRIPTOR.message_types_by_name[name])


Book = _message_class("Book")
AddBookRequest = _message_class("AddBookRequest")
BookResponse = _message_class("BookResponse")
DeleteBookRequest = _message_class("DeleteBookRequest")
DeleteBookResponse = _message_class("DeleteBookResponse")
GetBookRequest = _message_class("GetBookRequest")
ListBooksRequest = _message_class("ListBooksRequest")
ListBooksResponse = _message_class("ListBooksResponse")
UpdateBookRequest = _message_class("UpdateBookRequest")
