"""
Bookstore Server - concurrent in-memory book records over gRPC.

This package implements a record store for books:
- BookStore keeps every book in its own lockable entry
- Lock waits are bounded: callers get a "busy" answer instead of blocking
- A grpc.aio front end runs store calls on a worker thread pool

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────┐
    │   Client    │────▶│    gRPC     │────▶│ BookServicer│
    │   (SDK)     │     │   Server    │     │  (handlers) │
    └─────────────┘     └─────────────┘     └──────┬──────┘
                                                   │ worker pool
                                                   ▼
                        ┌─────────────────────────────────────────┐
                        │ BookStore: EntryTable id -> BookEntry   │
                        │            (book + ReadWriteLock)       │
                        └─────────────────────────────────────────┘

Invariants:
    - Identifiers "B0", "B1", ... are never reused within a process
    - Records are immutable; updates replace them whole
    - No lock wait inside the store is unbounded

How to change safely:
    - Keep wire changes additive (new fields, new RPCs)
    - Keep per-entry locking; never add a store-wide content lock
"""

from ._version import __version__

__all__ = ["__version__"]
