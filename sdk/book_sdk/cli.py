"""
Command-line client for the Bookstore service.

Commands:
- add / get / update / delete / list: one-shot calls
- menu: interactive text menu (the default when no command is given)

Usage:
    bookstore add --title "Dune" --author "Frank Herbert" --isbn 978-0441013593 --year 1965
    bookstore get B0
    bookstore list
    bookstore --host books.internal --port 8980 menu

Connection and retry settings come from BOOKSTORE_* environment variables
(see config.py); --host and --port override them.

Exit codes:
    0  the server reported success
    1  the server reported a domain failure (not found, busy)
    2  the call failed at the transport level
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import Callable, Optional, TextIO

import grpc

from .client import YEAR_MAX, YEAR_MIN, Book, BookClient
from .config import ClientConfig
from .errors import BookServiceError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DOMAIN_FAILURE = 1
EXIT_TRANSPORT_FAILURE = 2

MENU = """
=== Book Management System ===
1. Add Book
2. Delete Book
3. Get Book
4. List Books
5. Update Book
6. Exit"""


def _failure_details(error: Exception) -> str:
    if isinstance(error, grpc.RpcError):
        details = getattr(error, "details", None)
        if callable(details) and details():
            return str(details())
    return str(error)


def parse_year(raw: str) -> int:
    """Parse a publication year that fits the int32 wire field."""
    try:
        year = int(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid year '{raw.strip()}', please enter a number") from None
    if not YEAR_MIN <= year <= YEAR_MAX:
        raise ValueError(f"Year {year} is out of range ({YEAR_MIN}..{YEAR_MAX})")
    return year


def _year_arg(raw: str) -> int:
    try:
        return parse_year(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def print_book(book: Book, out: TextIO) -> None:
    print("Book Details:", file=out)
    print(f"   ID: {book.id}", file=out)
    print(f"   Title: {book.title}", file=out)
    print(f"   Author: {book.author}", file=out)
    print(f"   ISBN: {book.isbn}", file=out)
    print(f"   Year: {book.publication_year}", file=out)


class BookCommands:
    """Runs one RPC and prints its outcome.

    Every method returns an exit code. Transport failures are reported on
    the error stream as "Error <verb> book: <details>".
    """

    def __init__(
        self,
        client: BookClient,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.client = client
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def _transport_failure(self, verb: str, error: Exception) -> int:
        logger.debug(f"{verb} failed", exc_info=True)
        print(f"Error {verb} book: {_failure_details(error)}", file=self.err)
        return EXIT_TRANSPORT_FAILURE

    async def add(self, title: str, author: str, isbn: str, year: int) -> int:
        try:
            result = await self.client.add_book(title, author, isbn, year)
        except (grpc.RpcError, BookServiceError) as e:
            return self._transport_failure("adding", e)
        print(f" {result.message}", file=self.out)
        if result.success and result.book is not None:
            print(f" Book ID: {result.book.id}", file=self.out)
            return EXIT_OK
        return EXIT_DOMAIN_FAILURE

    async def delete(self, book_id: str) -> int:
        try:
            result = await self.client.delete_book(book_id)
        except (grpc.RpcError, BookServiceError) as e:
            return self._transport_failure("deleting", e)
        print(f" {result.message}", file=self.out)
        return EXIT_OK if result.success else EXIT_DOMAIN_FAILURE

    async def get(self, book_id: str) -> int:
        try:
            result = await self.client.get_book(book_id)
        except (grpc.RpcError, BookServiceError) as e:
            return self._transport_failure("getting", e)
        print(f" {result.message}", file=self.out)
        if result.success and result.book is not None:
            print_book(result.book, self.out)
            return EXIT_OK
        return EXIT_DOMAIN_FAILURE

    async def list(self) -> int:
        try:
            books = await self.client.list_books()
        except (grpc.RpcError, BookServiceError) as e:
            return self._transport_failure("listing", e)
        print(" Book List:", file=self.out)
        if not books:
            print("   No books available", file=self.out)
        for book in books:
            print(f"    {book.title} by {book.author} (ID: {book.id})", file=self.out)
        if self.client.last_list_skipped:
            print(
                f"   ({self.client.last_list_skipped} book(s) busy and not shown)",
                file=self.out,
            )
        return EXIT_OK

    async def update(self, book_id: str, title: str, author: str, isbn: str, year: int) -> int:
        try:
            result = await self.client.update_book(book_id, title, author, isbn, year)
        except (grpc.RpcError, BookServiceError) as e:
            return self._transport_failure("updating", e)
        print(f" {result.message}", file=self.out)
        return EXIT_OK if result.success else EXIT_DOMAIN_FAILURE


class BookMenu:
    """Interactive menu over BookCommands.

    Prompts are read through input_fn on a worker thread so the event loop
    that owns the gRPC channel stays free while waiting for the user.
    """

    def __init__(
        self,
        commands: BookCommands,
        input_fn: Callable[[str], str] = input,
    ) -> None:
        self.commands = commands
        self._input_fn = input_fn

    @property
    def out(self) -> TextIO:
        return self.commands.out

    async def _ask(self, prompt: str) -> str:
        return await asyncio.to_thread(self._input_fn, prompt)

    async def _ask_year(self, prompt: str) -> int:
        while True:
            try:
                return parse_year(await self._ask(prompt))
            except ValueError as e:
                print(e, file=self.out)

    async def run(self) -> None:
        """Show the menu until the user picks Exit or input ends."""
        while True:
            print(MENU, file=self.out)
            try:
                choice = (await self._ask("Choose an option: ")).strip()
            except EOFError:
                print("Exiting...", file=self.out)
                return

            try:
                if choice == "1":
                    title = await self._ask("Enter title: ")
                    author = await self._ask("Enter author: ")
                    isbn = await self._ask("Enter ISBN: ")
                    year = await self._ask_year("Enter publication year: ")
                    await self.commands.add(title, author, isbn, year)
                elif choice == "2":
                    book_id = (await self._ask("Enter book ID to delete: ")).strip()
                    await self.commands.delete(book_id)
                elif choice == "3":
                    book_id = (await self._ask("Enter book ID to get: ")).strip()
                    await self.commands.get(book_id)
                elif choice == "4":
                    await self.commands.list()
                elif choice == "5":
                    book_id = (await self._ask("Enter book ID to update: ")).strip()
                    title = await self._ask("Enter new title: ")
                    author = await self._ask("Enter new author: ")
                    isbn = await self._ask("Enter new ISBN: ")
                    year = await self._ask_year("Enter new publication year: ")
                    await self.commands.update(book_id, title, author, isbn, year)
                elif choice == "6":
                    print("Exiting...", file=self.out)
                    return
                else:
                    print("Invalid option!", file=self.out)
            except EOFError:
                print("Exiting...", file=self.out)
                return


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookstore",
        description="Bookstore service client",
    )
    parser.add_argument("--host", help="Server host (default: $BOOKSTORE_HOST or localhost)")
    parser.add_argument("--port", type=int, help="Server port (default: $BOOKSTORE_PORT or 8980)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    def add_book_fields(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--title", required=True)
        sub.add_argument("--author", required=True)
        sub.add_argument("--isbn", required=True)
        sub.add_argument("--year", type=_year_arg, required=True, help="Publication year")

    add_parser = subparsers.add_parser("add", help="Add a book")
    add_book_fields(add_parser)

    get_parser = subparsers.add_parser("get", help="Show one book")
    get_parser.add_argument("book_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a book")
    delete_parser.add_argument("book_id")

    subparsers.add_parser("list", help="List books")

    update_parser = subparsers.add_parser("update", help="Replace a book's fields")
    update_parser.add_argument("book_id")
    add_book_fields(update_parser)

    subparsers.add_parser("menu", help="Interactive menu")

    return parser


async def run(args: argparse.Namespace, config: ClientConfig) -> int:
    """Execute the parsed command against the server."""
    async with BookClient.from_config(config) as client:
        commands = BookCommands(client)

        if args.command == "add":
            return await commands.add(args.title, args.author, args.isbn, args.year)
        if args.command == "get":
            return await commands.get(args.book_id)
        if args.command == "delete":
            return await commands.delete(args.book_id)
        if args.command == "list":
            return await commands.list()
        if args.command == "update":
            return await commands.update(
                args.book_id, args.title, args.author, args.isbn, args.year
            )

        await BookMenu(commands).run()
        return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_TRANSPORT_FAILURE

    if args.host:
        config = replace(config, host=args.host)
    if args.port:
        config = replace(config, port=args.port)

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
