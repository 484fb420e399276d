"""Per-key serialization for commands that touch contended records.

Stock levels and payment balances are read, checked and written back inside
one unit of work. Two such units running at once for the same key would both
check against the same stale read, so commands hold the lock for every key
they touch until their unit of work has committed.
"""

import threading
from contextlib import contextmanager


class KeyedLock:
    """A lock per string key, created on first use.

    Keys are always acquired in sorted order, so two callers holding
    overlapping key sets cannot deadlock each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, *keys: str):
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


ledger_lock = KeyedLock()
