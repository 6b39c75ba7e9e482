from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class EmployeeLocks:
    """Single writer per employee inside one process.

    Check-in/out, breaks, absence marking and the leave approval cascade all
    mutate attendance rows of one employee; they serialize on this lock.
    A lock lives only while some caller holds a reference to it, so the
    registry does not grow with the number of employees ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[int, threading.RLock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, employee_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(employee_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[employee_id] = lock
            return lock

    @contextmanager
    def hold(self, employee_id: int) -> Iterator[None]:
        lock = self._lock_for(int(employee_id))
        with lock:
            yield
