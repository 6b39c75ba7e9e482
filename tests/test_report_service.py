from __future__ import annotations

from datetime import date

import pytest

from conftest import ALICE_ID, BOB_ID, CAROL_ID, HR_ID, ist

from hrms_attendance.core.enums import AttendanceStatus, Role
from hrms_attendance.core.exceptions import AuthorizationError, ValidationError


def _work_day(container, fake_time, employee_id, day, start, end):
    fake_time.set(ist(2025, 3, day, *start))
    container.attendance_service.check_in(employee_id)
    fake_time.set(ist(2025, 3, day, *end))
    return container.attendance_service.check_out(employee_id)


def test_daily_counts_include_not_marked(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 9, 0))
    container.attendance_service.check_in(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 9, 45))
    container.attendance_service.check_in(BOB_ID)

    counts = container.report_service.daily_status_counts(current_role=Role.HR, work_date=date(2025, 3, 10))

    assert counts.total_employees == 4
    assert counts.present == 1
    assert counts.late == 1
    assert counts.not_marked == 2
    assert counts.to_dict()["notMarked"] == 2


def test_daily_counts_after_absence_run(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 9, 0))
    container.attendance_service.check_in(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 12, 30))
    container.absence_job.run()

    counts = container.report_service.daily_status_counts(current_role=Role.ADMIN)

    assert counts.absent == 3
    assert counts.not_marked == 0


def test_daily_counts_requires_manager(container):
    with pytest.raises(AuthorizationError):
        container.report_service.daily_status_counts(current_role=Role.EMPLOYEE)


def test_employee_statistics_defaults_to_month_to_date(container, fake_time):
    _work_day(container, fake_time, ALICE_ID, 3, (9, 0), (19, 0))
    _work_day(container, fake_time, ALICE_ID, 4, (9, 30), (12, 0))
    _work_day(container, fake_time, ALICE_ID, 5, (9, 0), (18, 0))
    fake_time.set(ist(2025, 3, 6, 12, 30))
    container.absence_job.run()

    stats = container.report_service.employee_statistics(ALICE_ID)

    assert stats.total_days == 4
    assert stats.present_days == 2
    assert stats.half_days == 1
    assert stats.absent_days == 1
    assert stats.total_working_hours == pytest.approx(21.5)
    assert stats.total_overtime_hours == pytest.approx(3.0)
    assert stats.to_dict()["averageProductionHours"] == pytest.approx(round(21.5 / 3, 2))


def test_employee_statistics_rejects_inverted_range(container):
    with pytest.raises(ValidationError):
        container.report_service.employee_statistics(ALICE_ID, start=date(2025, 3, 10), end=date(2025, 3, 1))


def test_recent_auto_absences_newest_first(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 12, 30))
    container.absence_job.run()
    fake_time.set(ist(2025, 3, 11, 12, 30))
    container.absence_job.run()

    recent = container.report_service.recent_auto_absences(current_role=Role.HR, limit=3)

    assert len(recent) == 3
    assert all(r.status == AttendanceStatus.ABSENT for r in recent)
    assert recent[0].work_date == date(2025, 3, 11)
    assert {r.employee_id for r in recent} <= {HR_ID, ALICE_ID, BOB_ID, CAROL_ID}
