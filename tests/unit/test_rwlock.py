"""
Unit tests for the reentrant read-write lock.

Tests cover:
- Concurrent readers
- Writer exclusion and writer preference
- Timed acquisition
- Reentrancy
"""

import threading
import time

import pytest

from bookstore.book_server.store.rwlock import ReadWriteLock


def _in_thread(fn):
    """Run fn in a new thread and return its result."""
    result = {}

    def target():
        result["value"] = fn()

    t = threading.Thread(target=target)
    t.start()
    t.join(timeout=5.0)
    return result.get("value")


class TestReadWriteLock:
    """Tests for ReadWriteLock."""

    @pytest.fixture
    def lock(self):
        return ReadWriteLock()

    def test_multiple_readers(self, lock):
        """Several threads hold read shares at the same time."""
        barrier = threading.Barrier(5)
        entered = []

        def reader():
            with lock.read():
                barrier.wait(timeout=5.0)
                entered.append(1)

        threads = [threading.Thread(target=reader) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)

        assert len(entered) == 5

    def test_reader_times_out_while_writer_holds(self, lock):
        """acquire_read gives up after the timeout."""
        assert lock.acquire_write()
        try:
            start = time.monotonic()
            acquired = _in_thread(lambda: lock.acquire_read(timeout=0.1))
            elapsed = time.monotonic() - start
        finally:
            lock.release_write()

        assert acquired is False
        assert elapsed >= 0.09

    def test_writer_times_out_while_reader_holds(self, lock):
        """acquire_write gives up while another thread reads."""
        assert lock.acquire_read()
        try:
            acquired = _in_thread(lambda: lock.acquire_write(timeout=0.1))
        finally:
            lock.release_read()

        assert acquired is False

    def test_writer_acquires_after_reader_releases(self, lock):
        """A waiting writer gets in once the last reader leaves."""
        lock.acquire_read()
        writer_in = threading.Event()

        def writer():
            if lock.acquire_write(timeout=5.0):
                writer_in.set()
                lock.release_write()

        t = threading.Thread(target=writer)
        t.start()
        assert not writer_in.wait(timeout=0.1)

        lock.release_read()
        assert writer_in.wait(timeout=5.0)
        t.join(timeout=5.0)

    def test_waiting_writer_blocks_new_readers(self, lock):
        """Once a writer waits, a fresh reader cannot jump ahead."""
        lock.acquire_read()
        writer_waiting = threading.Event()

        def writer():
            writer_waiting.set()
            if lock.acquire_write(timeout=5.0):
                lock.release_write()

        wt = threading.Thread(target=writer)
        wt.start()
        writer_waiting.wait(timeout=5.0)
        time.sleep(0.05)

        assert _in_thread(lambda: lock.acquire_read(timeout=0.1)) is False

        lock.release_read()
        wt.join(timeout=5.0)

    def test_abandoned_writer_releases_parked_readers(self, lock):
        """A writer that times out does not leave readers blocked."""
        lock.acquire_read()
        _in_thread(lambda: lock.acquire_write(timeout=0.05))

        def read_and_release():
            ok = lock.acquire_read(timeout=1.0)
            if ok:
                lock.release_read()
            return ok

        assert _in_thread(read_and_release) is True
        lock.release_read()

    def test_read_reentrant_while_writer_waits(self, lock):
        """A thread already holding a share can take another one."""
        lock.acquire_read()
        writer_waiting = threading.Event()

        def writer():
            writer_waiting.set()
            if lock.acquire_write(timeout=5.0):
                lock.release_write()

        wt = threading.Thread(target=writer)
        wt.start()
        writer_waiting.wait(timeout=5.0)
        time.sleep(0.05)

        assert lock.acquire_read(timeout=0.1) is True
        lock.release_read()
        lock.release_read()
        wt.join(timeout=5.0)

    def test_write_reentrant(self, lock):
        """The write owner can re-acquire write and take read shares."""
        assert lock.acquire_write(timeout=0.1)
        assert lock.acquire_write(timeout=0.1)
        assert lock.acquire_read(timeout=0.1)
        lock.release_read()
        lock.release_write()
        assert lock.write_held
        lock.release_write()
        assert not lock.write_held

    def test_release_without_holding_raises(self, lock):
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()

    def test_release_write_from_other_thread_raises(self, lock):
        lock.acquire_write()
        try:

            def release():
                try:
                    lock.release_write()
                except RuntimeError:
                    return "refused"
                return "released"

            assert _in_thread(release) == "refused"
        finally:
            lock.release_write()

    def test_write_excludes_write(self, lock):
        with lock.write():
            assert _in_thread(lambda: lock.acquire_write(timeout=0.05)) is False
        assert _in_thread(lambda: lock.acquire_write(timeout=0.05)) is True
