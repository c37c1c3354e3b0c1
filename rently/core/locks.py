import threading
from contextlib import contextmanager


class KeyedLock:
    """One mutex per aggregate key, so read-modify-write cycles on the same
    item or customer run one at a time inside this process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}
        self._users = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]
