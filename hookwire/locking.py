"""Reader/writer lock used by the registry and its per-hook containers."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class RWLock:
    """Reader/writer lock with a re-entrant write side.

    Any number of threads may hold the read side at once; the write side is
    exclusive. The thread holding the write side may acquire it again, and may
    also take the read side, so callbacks running under a write lock can call
    back into code that locks the same object.

    Writers are not preferred over readers: a thread already holding the read
    side can always take it again. Upgrading from read to write deadlocks and
    is not supported.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._write_depth = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            while self._writer is not None:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._writer == threading.get_ident():
                self._release_write_locked()
                return
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            while self._writer is not None or self._readers:
                self._cond.wait()
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write() called by a thread that does not hold the write lock")
            self._release_write_locked()

    def _release_write_locked(self) -> None:
        self._write_depth -= 1
        if not self._write_depth:
            self._writer = None
            self._cond.notify_all()

    @property
    def write_locked(self) -> bool:
        with self._cond:
            return self._writer is not None

    @property
    def readers(self) -> int:
        with self._cond:
            return self._readers

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
