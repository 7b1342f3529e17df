"""Critical sections for stock and order mutation.

``KeyedLock`` hands out one re-entrant lock per key (product id, order id).
Multiple keys are always acquired in sorted order so two callers holding
overlapping sets can never deadlock.

``store_lock`` serializes every repository read and commit. The memory
provider replaces its database snapshot on commit, so a read or commit on
one aggregate must not interleave with a commit on another. It is always
the innermost lock taken.
"""

import threading
from contextlib import contextmanager

store_lock = threading.RLock()


class KeyedLock:
    """A registry of re-entrant locks, one per key.

    An entry lives only while some caller holds or waits on it, so keys that
    are looked up once (unknown ids, closed orders) do not accumulate.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}

    def __contains__(self, key) -> bool:
        with self._guard:
            return str(key) in self._locks

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, *keys):
        """Acquire the locks for all ``keys`` for the duration of the block."""
        ordered = sorted({str(key) for key in keys})
        acquired = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append((key, lock))
            yield
        finally:
            for key, lock in reversed(acquired):
                lock.release()
                self._checkin(key)
