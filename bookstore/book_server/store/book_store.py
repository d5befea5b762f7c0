"""
In-memory book store with per-record locking.

Each book lives in its own BookEntry guarded by a ReadWriteLock. The store
never blocks indefinitely on an entry: get/update/delete make a bounded
number of timed lock attempts and report BUSY when they run out, while
list makes a single timed attempt per entry and skips what it cannot lock.

Invariants:
    - Identifiers are "B" + n, n starting at 0, advanced once per add,
      never reset and never reused
    - Books are immutable; update swaps the entry's reference
    - A deleted entry is cleared before it leaves the table, so a reader
      that found it earlier sees NOT_FOUND rather than stale data
    - Removal is compare-and-remove: only the entry that was deleted is
      unmapped
    - Domain outcomes (OK, NOT_FOUND, BUSY) are returned, never raised

How to change safely:
    - Touch an entry's book only while holding its lock
    - Keep structural table operations independent of entry locks
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from .entry_table import EntryTable
from .rwlock import ReadWriteLock

if TYPE_CHECKING:
    from ..config import StoreConfig

logger = logging.getLogger(__name__)

ID_PREFIX = "B"

MSG_ADDED = "Book added successfully"
MSG_FOUND = "Book found"
MSG_NOT_FOUND = "Book not found"
MSG_UPDATED = "Book updated successfully"
MSG_DELETED = "Book deleted successfully"
MSG_BUSY = "Book is currently being modified, please retry later"


class Outcome(Enum):
    """Domain-level result of a store operation."""

    OK = "ok"
    NOT_FOUND = "not_found"
    BUSY = "busy"


class LockInterruptedError(Exception):
    """A lock wait was interrupted by call cancellation or store shutdown.

    Attributes:
        book_id: Book being waited on (None for listings)
        operation: read, update, delete or list
    """

    def __init__(self, operation: str, book_id: Optional[str] = None) -> None:
        if operation == "list":
            message = "Interrupted while listing books"
        else:
            message = f"Interrupted while waiting to {operation} book"
        super().__init__(message)
        self.operation = operation
        self.book_id = book_id


@dataclass(frozen=True)
class Book:
    """An immutable book record."""

    id: str
    title: str
    author: str
    isbn: str
    publication_year: int

    @property
    def sequence(self) -> int:
        """Numeric suffix of the identifier."""
        return int(self.id[len(ID_PREFIX):])


@dataclass(frozen=True)
class StoreResult:
    """Outcome of get/update/delete.

    Attributes:
        outcome: OK, NOT_FOUND or BUSY
        message: Human-readable message for the caller
        book: The book read or written (None unless relevant)
    """

    outcome: Outcome
    message: str
    book: Optional[Book] = None

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.OK


@dataclass(frozen=True)
class Listing:
    """Result of a best-effort scan.

    Attributes:
        books: Books that could be read, ordered by identifier
        skipped: Entries left out because their lock was not available in time
    """

    books: Tuple[Book, ...]
    skipped: int = 0

    @property
    def complete(self) -> bool:
        return self.skipped == 0


_NOT_FOUND = StoreResult(Outcome.NOT_FOUND, MSG_NOT_FOUND)
_BUSY = StoreResult(Outcome.BUSY, MSG_BUSY)


class BookEntry:
    """One book slot plus the lock that guards it.

    snapshot() hands out the current reference without copying; replace()
    and clear() must only be called by the write-lock holder.
    """

    __slots__ = ("lock", "_book")

    def __init__(self, book: Book) -> None:
        self.lock = ReadWriteLock()
        self._book: Optional[Book] = book

    def snapshot(self) -> Optional[Book]:
        return self._book

    def replace(self, book: Book) -> None:
        self._book = book

    def clear(self) -> None:
        self._book = None


class _IdSequence:
    """Monotonic counter; next() hands out each value once."""

    def __init__(self, start: int = 0) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    @property
    def issued(self) -> int:
        with self._lock:
            return self._next


class BookStore:
    """Concurrent in-memory store for book records.

    Constructed once at server startup and passed explicitly to the
    servicer; close() is the teardown boundary.

    Attributes:
        lock_timeout: Seconds per lock attempt
        lock_max_attempts: Attempts before get/update/delete report BUSY

    Example:
        >>> store = BookStore()
        >>> book = store.add("Dune", "Herbert", "978-0", 1965)
        >>> book.id
        'B0'
        >>> store.get("B0").book.title
        'Dune'
    """

    def __init__(
        self,
        lock_timeout: float = 0.1,
        lock_max_attempts: int = 50,
        num_stripes: int = 16,
    ) -> None:
        if lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")
        if lock_max_attempts < 1:
            raise ValueError("lock_max_attempts must be at least 1")
        self.lock_timeout = lock_timeout
        self.lock_max_attempts = lock_max_attempts
        self._entries: EntryTable[str, BookEntry] = EntryTable(num_stripes)
        self._ids = _IdSequence()
        self._closed = threading.Event()

    @classmethod
    def from_config(cls, config: StoreConfig) -> BookStore:
        return cls(
            lock_timeout=config.lock_timeout_ms / 1000.0,
            lock_max_attempts=config.lock_max_attempts,
            num_stripes=config.num_stripes,
        )

    def add(self, title: str, author: str, isbn: str, publication_year: int) -> Book:
        """Create a book under a fresh identifier. Always succeeds."""
        book = Book(
            id=f"{ID_PREFIX}{self._ids.next()}",
            title=title,
            author=author,
            isbn=isbn,
            publication_year=publication_year,
        )
        # Unreachable while ids come only from _ids; guards against a reset sequence.
        if self._entries.put_if_absent(book.id, BookEntry(book)) is not None:
            raise RuntimeError(f"Identifier {book.id} is already in use")
        logger.debug("Book added", extra={"book_id": book.id})
        return book

    def get(self, book_id: str, *, interrupt: Optional[threading.Event] = None) -> StoreResult:
        """Read a book.

        Returns:
            OK with the current book, NOT_FOUND, or BUSY

        Raises:
            LockInterruptedError: If interrupted while waiting for the lock
        """
        entry = self._entries.get(book_id)
        if entry is None:
            return _NOT_FOUND

        if not self._acquire(entry.lock.acquire_read, book_id, "read", interrupt):
            return _BUSY
        try:
            book = entry.snapshot()
        finally:
            entry.lock.release_read()

        if book is None:
            return _NOT_FOUND
        return StoreResult(Outcome.OK, MSG_FOUND, book)

    def update(
        self,
        book_id: str,
        title: str,
        author: str,
        isbn: str,
        publication_year: int,
        *,
        interrupt: Optional[threading.Event] = None,
    ) -> StoreResult:
        """Replace every field of a book, keeping its identifier.

        Returns:
            OK with the new book, NOT_FOUND, or BUSY

        Raises:
            LockInterruptedError: If interrupted while waiting for the lock
        """
        entry = self._entries.get(book_id)
        if entry is None:
            return _NOT_FOUND

        if not self._acquire(entry.lock.acquire_write, book_id, "update", interrupt):
            return _BUSY
        try:
            if entry.snapshot() is None:
                # Deleted while we waited.
                return _NOT_FOUND
            book = Book(
                id=book_id,
                title=title,
                author=author,
                isbn=isbn,
                publication_year=publication_year,
            )
            entry.replace(book)
        finally:
            entry.lock.release_write()

        logger.debug("Book updated", extra={"book_id": book_id})
        return StoreResult(Outcome.OK, MSG_UPDATED, book)

    def delete(self, book_id: str, *, interrupt: Optional[threading.Event] = None) -> StoreResult:
        """Delete a book.

        Returns:
            OK, NOT_FOUND, or BUSY

        Raises:
            LockInterruptedError: If interrupted while waiting for the lock
        """
        entry = self._entries.get(book_id)
        if entry is None:
            return _NOT_FOUND

        if not self._acquire(entry.lock.acquire_write, book_id, "delete", interrupt):
            return _BUSY
        try:
            if entry.snapshot() is None:
                return _NOT_FOUND
            entry.clear()
            self._entries.remove_if_same(book_id, entry)
        finally:
            entry.lock.release_write()

        logger.debug("Book deleted", extra={"book_id": book_id})
        return StoreResult(Outcome.OK, MSG_DELETED)

    def scan(self, *, interrupt: Optional[threading.Event] = None) -> Listing:
        """Best-effort listing.

        Each entry gets exactly one timed read attempt. Entries that stay
        locked past lock_timeout are skipped and counted, never waited on
        again, so a scan never reports BUSY.

        Raises:
            LockInterruptedError: If interrupted between entries
        """
        books: List[Book] = []
        skipped = 0
        for entry in self._entries.values():
            self._check_interrupted("list", None, interrupt)
            if not entry.lock.acquire_read(self.lock_timeout):
                skipped += 1
                continue
            try:
                book = entry.snapshot()
            finally:
                entry.lock.release_read()
            if book is not None:
                books.append(book)

        books.sort(key=lambda b: b.sequence)
        if skipped:
            logger.warning(
                "Listing skipped contended entries",
                extra={"skipped": skipped, "returned": len(books)},
            )
        return Listing(books=tuple(books), skipped=skipped)

    def list(self) -> List[Book]:
        """All books whose entries could be read within one lock timeout."""
        return list(self.scan().books)

    def close(self) -> None:
        """Interrupt lock waits in progress and any that start later."""
        if not self._closed.is_set():
            self._closed.set()
            logger.info("Book store closed", extra={"books": len(self)})

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def ids_issued(self) -> int:
        """How many identifiers have been handed out so far."""
        return self._ids.issued

    def __len__(self) -> int:
        return len(self._entries)

    def _acquire(
        self,
        acquire: Callable[[Optional[float]], bool],
        book_id: str,
        operation: str,
        interrupt: Optional[threading.Event],
    ) -> bool:
        """Make up to lock_max_attempts timed attempts at acquire()."""
        for attempt in range(1, self.lock_max_attempts + 1):
            self._check_interrupted(operation, book_id, interrupt)
            if acquire(self.lock_timeout):
                if attempt > 1:
                    logger.debug(
                        "Lock acquired after retries",
                        extra={"book_id": book_id, "operation": operation, "attempts": attempt},
                    )
                return True

        logger.warning(
            "Lock attempts exhausted, reporting busy",
            extra={
                "book_id": book_id,
                "operation": operation,
                "attempts": self.lock_max_attempts,
            },
        )
        return False

    def _check_interrupted(
        self,
        operation: str,
        book_id: Optional[str],
        interrupt: Optional[threading.Event],
    ) -> None:
        if self._closed.is_set() or (interrupt is not None and interrupt.is_set()):
            raise LockInterruptedError(operation, book_id)
