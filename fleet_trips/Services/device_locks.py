# fleet_trips/Services/device_locks.py
"""Per-device in-process mutexes.

Stand-in for the state row lock on databases without SELECT ... FOR UPDATE
(SQLite). Locks are reference counted and dropped once no thread holds or
waits on them, so the table does not grow with the number of devices seen.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class DeviceLocks:
    """Thread-safe map of device_id -> lock."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, List] = {}  # device_id -> [lock, users]

    @contextmanager
    def hold(self, device_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(device_id)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[device_id] = entry
            entry[1] += 1

        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[device_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
