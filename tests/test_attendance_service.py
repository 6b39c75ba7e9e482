from __future__ import annotations

import pytest

from conftest import ALICE_ID, BOB_ID, ist

from hrms_attendance.attendance.service import compute_metrics
from hrms_attendance.core.constants import AUTO_CHECKOUT_NOTE
from hrms_attendance.core.enums import AttendanceStatus, Role
from hrms_attendance.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError


def test_checkin_before_start_is_present(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 8, 55))

    record = container.attendance_service.check_in(ALICE_ID, location="HQ")

    assert record.status == AttendanceStatus.PRESENT
    assert record.late_minutes == 0
    assert record.work_date.isoformat() == "2025-03-10"
    assert record.check_in.location == "HQ"


def test_checkin_after_start_is_late_counted_from_start(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 9, 20))

    record = container.attendance_service.check_in(ALICE_ID)

    assert record.status == AttendanceStatus.LATE
    assert record.late_minutes == 20


def test_checkin_at_start_is_present(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 9, 0))

    assert container.attendance_service.check_in(ALICE_ID).status == AttendanceStatus.PRESENT


def test_checkin_ten_minutes_after_start_is_late(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 9, 10))

    record = container.attendance_service.check_in(ALICE_ID)

    assert record.status == AttendanceStatus.LATE
    assert record.late_minutes == 10


def test_checkin_uses_reference_timezone_for_the_day(container, fake_time):
    # 00:30 IST on the 11th is still the 10th in UTC.
    fake_time.set(ist(2025, 3, 11, 0, 30))

    record = container.attendance_service.check_in(ALICE_ID)

    assert record.work_date.isoformat() == "2025-03-11"


def test_second_checkin_same_day_conflicts(container, fake_time):
    container.attendance_service.check_in(ALICE_ID)
    fake_time.advance(minutes=5)

    with pytest.raises(ConflictError):
        container.attendance_service.check_in(ALICE_ID)


def test_checkin_unknown_employee(container):
    with pytest.raises(NotFoundError):
        container.attendance_service.check_in(999)


def test_checkin_rejects_out_of_range_geolocation(container, attendance_repo):
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(ALICE_ID, latitude=91.0, longitude=10.0)
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(ALICE_ID, latitude=10.0, longitude=-181.0)
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(ALICE_ID, latitude=float("nan"), longitude=10.0)

    assert attendance_repo.rows == {}


def test_checkout_math_with_break(container, fake_time):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 10))
    svc.check_in(ALICE_ID)

    fake_time.set(ist(2025, 3, 10, 13, 0))
    svc.start_break(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 13, 30))
    svc.end_break(ALICE_ID)

    fake_time.set(ist(2025, 3, 10, 18, 40))
    record = svc.check_out(ALICE_ID, latitude=12.97, longitude=77.59)

    assert record.total_working_hours == pytest.approx(9.5)
    assert record.overtime_minutes == 90
    assert record.production_hours == pytest.approx(9.0)
    assert record.total_break_minutes == 30
    assert record.status == AttendanceStatus.LATE
    assert record.late_minutes == 10
    assert record.check_out.geolocation.latitude == pytest.approx(12.97)


def test_checkout_below_half_day_threshold(container, fake_time):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 30))
    assert svc.check_in(ALICE_ID).status == AttendanceStatus.LATE

    fake_time.set(ist(2025, 3, 10, 12, 30))
    record = svc.check_out(ALICE_ID)

    assert record.status == AttendanceStatus.HALF_DAY
    assert record.late_minutes == 30
    assert record.overtime_minutes == 0


def test_checkout_keeps_late_status_for_full_day(container, fake_time):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 40))
    svc.check_in(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 18, 0))

    assert svc.check_out(ALICE_ID).status == AttendanceStatus.LATE


def test_checkout_closes_open_break(container, fake_time):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 0))
    svc.check_in(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 17, 0))
    svc.start_break(ALICE_ID)
    fake_time.set(ist(2025, 3, 10, 17, 45))

    record = svc.check_out(ALICE_ID)

    assert record.open_break is None
    assert record.total_break_minutes == 45
    assert record.production_hours == pytest.approx(8.75 - 0.75)


def test_checkout_without_record_or_twice(container, fake_time):
    svc = container.attendance_service
    with pytest.raises(NotFoundError):
        svc.check_out(ALICE_ID)

    svc.check_in(ALICE_ID)
    fake_time.advance(hours=8)
    svc.check_out(ALICE_ID)
    with pytest.raises(ConflictError):
        svc.check_out(ALICE_ID)


def test_break_rules(container, fake_time):
    svc = container.attendance_service
    with pytest.raises(NotFoundError):
        svc.start_break(ALICE_ID)

    svc.check_in(ALICE_ID)
    with pytest.raises(NotFoundError):
        svc.end_break(ALICE_ID)

    fake_time.advance(hours=2)
    svc.start_break(ALICE_ID)
    with pytest.raises(ConflictError):
        svc.start_break(ALICE_ID)

    fake_time.advance(minutes=10)
    first = svc.end_break(ALICE_ID)
    fake_time.advance(hours=1)
    svc.start_break(ALICE_ID)
    fake_time.advance(minutes=15)
    second = svc.end_break(ALICE_ID)

    assert first.total_break_minutes == 10
    assert second.total_break_minutes == 25
    assert [b.duration_minutes for b in second.breaks] == [10, 15]

    fake_time.advance(hours=5)
    svc.check_out(ALICE_ID)
    with pytest.raises(ConflictError):
        svc.start_break(ALICE_ID)


def test_stale_open_record_is_auto_checked_out(container, fake_time, attendance_repo):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 0))
    yesterday = svc.check_in(ALICE_ID)

    fake_time.set(ist(2025, 3, 11, 9, 5))
    today = svc.check_in(ALICE_ID)

    closed = attendance_repo.get_by_id(yesterday.attendance_id)
    assert closed.check_out.time == ist(2025, 3, 11, 1, 0)
    assert closed.total_working_hours == pytest.approx(16.0)
    assert closed.overtime_minutes == 8 * 60
    assert AUTO_CHECKOUT_NOTE in closed.notes
    assert today.work_date.isoformat() == "2025-03-11"


def test_recent_open_record_from_yesterday_is_left_alone(container, fake_time, attendance_repo, settings_repo):
    svc = container.attendance_service
    container.settings_service.update(current_role=Role.ADMIN, actor_id=1, changes={"autoCheckoutHours": 48})
    fake_time.set(ist(2025, 3, 10, 9, 0))
    yesterday = svc.check_in(ALICE_ID)

    fake_time.set(ist(2025, 3, 11, 9, 0))
    svc.check_in(ALICE_ID)

    assert attendance_repo.get_by_id(yesterday.attendance_id).check_out is None


def test_list_and_today(container, fake_time):
    svc = container.attendance_service
    svc.check_in(ALICE_ID)
    svc.check_in(BOB_ID)
    fake_time.set(ist(2025, 3, 11, 9, 0))
    svc.check_in(ALICE_ID)

    history = svc.list_for_employee(ALICE_ID)
    assert [r.work_date.isoformat() for r in history] == ["2025-03-11", "2025-03-10"]
    assert svc.get_today(BOB_ID) is None
    assert svc.get_today(ALICE_ID).work_date.isoformat() == "2025-03-11"

    page = svc.list_range(current_role=Role.HR, page=1, limit=2)
    assert page.total == 3
    assert len(page.records) == 2
    assert page.to_dict()["pagination"]["pages"] == 2

    with pytest.raises(AuthorizationError):
        svc.list_range(current_role=Role.EMPLOYEE)


def test_admin_update_recomputes_metrics(container, fake_time):
    svc = container.attendance_service
    fake_time.set(ist(2025, 3, 10, 9, 0))
    record = svc.check_in(ALICE_ID)

    updated = svc.admin_update(
        record.attendance_id,
        current_role=Role.ADMIN,
        changes={"checkIn": "2025-03-10T09:30:00", "checkOut": "2025-03-10T19:30:00", "status": "Late"},
    )

    assert updated.status == AttendanceStatus.LATE
    assert updated.late_minutes == 30
    assert updated.total_working_hours == pytest.approx(10.0)
    assert updated.overtime_minutes == 120


def test_admin_update_validates_invariants(container, fake_time):
    svc = container.attendance_service
    record = svc.check_in(ALICE_ID)

    with pytest.raises(ValidationError):
        svc.admin_update(
            record.attendance_id,
            current_role=Role.ADMIN,
            changes={"checkOut": "2025-03-10T08:00:00"},
        )
    with pytest.raises(ValidationError):
        svc.admin_update(record.attendance_id, current_role=Role.ADMIN, changes={"status": "Sleeping"})
    with pytest.raises(AuthorizationError):
        svc.admin_update(record.attendance_id, current_role=Role.EMPLOYEE, changes={"notes": "x"})


def test_deactivate_frees_the_day(container, fake_time):
    svc = container.attendance_service
    record = svc.check_in(ALICE_ID)

    svc.deactivate(record.attendance_id, current_role=Role.HR)

    assert svc.get_today(ALICE_ID) is None
    fake_time.advance(minutes=1)
    assert svc.check_in(ALICE_ID).attendance_id != record.attendance_id
    with pytest.raises(ConflictError):
        svc.deactivate(record.attendance_id, current_role=Role.HR)


def test_compute_metrics_never_negative():
    metrics = compute_metrics(ist(2025, 3, 10, 9, 0), ist(2025, 3, 10, 9, 30), 60)

    assert metrics.production_hours == 0.0
    assert metrics.overtime_minutes == 0
