"""Exclusive access to the one ``HistoryStore`` of a session.

All handlers share a single ``SharedHistory``. Hold the lock only for store
calls; run pandas work between two short critical sections::

    with handle.lock() as store:
        df = store.get_current()
    result = transform(df)
    with handle.lock() as store:
        store.push(new_entry(op, result))

If a holder leaves the critical section with an unexpected exception the
store may be half-updated, so the handle is poisoned and every later
``lock()`` raises ``LockFailureError`` until ``clear_poison()`` is called.
``read(fn)`` runs ``fn(store)`` under the lock for one-off calls.
Domain errors (``WranglerError``) leave the store untouched and do not poison.
"""
from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from .errors import LockFailureError, WranglerError
from .history import DEFAULT_MAX_DEPTH, HistoryStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SharedHistory:
    def __init__(self, store: Optional[HistoryStore] = None, max_depth: int = DEFAULT_MAX_DEPTH,
                 timeout: Optional[float] = None):
        self._store = store if store is not None else HistoryStore(max_depth)
        self._lock = threading.Lock()
        self._poisoned = False
        self.timeout = timeout

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def clear_poison(self) -> None:
        with self._lock:
            if self._poisoned:
                logger.warning("Clearing poisoned history lock")
            self._poisoned = False

    def _acquire(self, timeout: Optional[float]) -> None:
        if timeout is None:
            self._lock.acquire()
        elif not self._lock.acquire(timeout=timeout):
            raise LockFailureError(f"timed out after {timeout}s waiting for the history store")
        if self._poisoned:
            self._lock.release()
            raise LockFailureError()

    @contextmanager
    def lock(self, timeout: Optional[float] = None) -> Iterator[HistoryStore]:
        self._acquire(self.timeout if timeout is None else timeout)
        try:
            yield self._store
        except WranglerError:
            raise
        except BaseException:
            self._poisoned = True
            logger.exception("History store holder failed; lock poisoned")
            raise
        finally:
            self._lock.release()

    def read(self, fn: Callable[[HistoryStore], T]) -> T:
        with self.lock() as store:
            return fn(store)
