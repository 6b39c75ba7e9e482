from __future__ import annotations

import gc
import threading

from hrms_attendance.common.locks import EmployeeLocks


def test_same_employee_shares_one_lock_while_held():
    locks = EmployeeLocks()
    entered = threading.Event()
    blocked = []

    def other_writer():
        entered.set()
        with locks.hold(10):
            blocked.append(False)

    with locks.hold(10):
        worker = threading.Thread(target=other_writer)
        worker.start()
        assert entered.wait(5)
        worker.join(0.2)
        assert worker.is_alive()
        assert blocked == []
        assert len(locks) == 1

    worker.join(5)
    assert blocked == [False]


def test_released_locks_are_dropped_from_registry():
    locks = EmployeeLocks()

    for employee_id in range(50):
        with locks.hold(employee_id):
            pass
    gc.collect()

    assert len(locks) == 0
