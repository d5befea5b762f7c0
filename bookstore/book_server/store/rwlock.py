"""
Reentrant read-write lock with timed acquisition.

Multiple concurrent readers OR one exclusive writer. Built on a single
threading.Condition with reader/writer bookkeeping.

Invariants:
    - A writer is admitted only when no other thread holds a read share
    - Once a writer is waiting, threads without a read share block on read
      (no writer starvation); threads already holding a share may re-enter
    - The write owner may re-acquire write and may take read shares
    - Every acquire accepts a timeout and reports failure instead of raising

Usage:
    lock = ReadWriteLock()

    if lock.acquire_read(timeout=0.1):
        try:
            book = entry.snapshot()
        finally:
            lock.release_read()

    with lock.write():
        entry.replace(book)

How to change safely:
    - Keep every state change under self._cond
    - notify_all() whenever readers drop to zero or a writer leaves
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


class ReadWriteLock:
    """Reentrant read-write lock with writer preference and timeouts."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        # thread ident -> read shares held by that thread
        self._readers: Dict[int, int] = {}
        self._writer: Optional[int] = None
        self._write_depth = 0
        self._writers_waiting = 0

    @staticmethod
    def _deadline(timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            return None
        return time.monotonic() + max(timeout, 0.0)

    def _wait(self, deadline: Optional[float]) -> bool:
        """Wait on the condition; False once the deadline has passed."""
        if deadline is None:
            self._cond.wait()
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        self._cond.wait(remaining)
        return True

    def acquire_read(self, timeout: Optional[float] = None) -> bool:
        """Take a read share.

        Args:
            timeout: Seconds to wait, or None to block until acquired

        Returns:
            True if the share was taken, False on timeout
        """
        me = threading.get_ident()
        deadline = self._deadline(timeout)
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return True
            while self._writer is not None or self._writers_waiting > 0:
                if not self._wait(deadline):
                    return False
            self._readers[me] = 1
            return True

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            count = self._readers.get(me)
            if not count:
                raise RuntimeError("release_read() called without a read share")
            if count == 1:
                del self._readers[me]
            else:
                self._readers[me] = count - 1
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self, timeout: Optional[float] = None) -> bool:
        """Take the exclusive write lock.

        Args:
            timeout: Seconds to wait, or None to block until acquired

        Returns:
            True if the lock was taken, False on timeout
        """
        me = threading.get_ident()
        deadline = self._deadline(timeout)
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return True
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._has_other_readers(me):
                    if not self._wait(deadline):
                        return False
            finally:
                self._writers_waiting -= 1
                if self._writers_waiting == 0 and self._writer is None:
                    # Readers parked behind a writer that gave up.
                    self._cond.notify_all()
            self._writer = me
            self._write_depth = 1
            return True

    def release_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer != me:
                raise RuntimeError("release_write() called by a thread that does not own the lock")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    def _has_other_readers(self, me: int) -> bool:
        return any(ident != me for ident in self._readers)

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold a read share for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the write lock for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def write_held(self) -> bool:
        """Whether any thread currently owns the write lock."""
        with self._cond:
            return self._writer is not None
