import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterable, Tuple

SlotKey = Tuple[str, date, int]


class SlotLocks:
    """One lock per (resource, date, hour) slot.

    Keys are always acquired in sorted order so multi-hour requests cannot
    deadlock against each other.
    """

    def __init__(self):
        self._locks: Dict[SlotKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: SlotKey) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[SlotKey]):
        locks = [self._lock_for(key) for key in sorted(set(keys))]
        acquired = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
