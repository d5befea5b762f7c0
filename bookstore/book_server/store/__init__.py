"""
Store module for the Bookstore server.

This module provides the in-memory record store:
- ReadWriteLock: reentrant reader/writer lock with timed acquisition
- EntryTable: striped identifier-to-entry map
- BookStore: per-record locked CRUD with bounded-retry lock acquisition

Invariants:
    - Content-level exclusion is scoped to one entry; no lock covers the store
    - No lock wait is unbounded
"""

from .book_store import (
    Book,
    BookEntry,
    BookStore,
    Listing,
    LockInterruptedError,
    Outcome,
    StoreResult,
)
from .entry_table import EntryTable
from .rwlock import ReadWriteLock

__all__ = [
    "Book",
    "BookEntry",
    "BookStore",
    "EntryTable",
    "Listing",
    "LockInterruptedError",
    "Outcome",
    "ReadWriteLock",
    "StoreResult",
]
