from __future__ import annotations

from datetime import time

import pytest

from conftest import ADMIN_ID, HR_ID, ist

from hrms_attendance.core.enums import Role
from hrms_attendance.core.exceptions import AuthorizationError, ValidationError


def test_defaults_are_created_lazily(container, settings_repo):
    assert settings_repo.current is None

    settings = container.settings_service.get(actor_id=ADMIN_ID)

    assert settings_repo.current is settings
    assert settings.auto_absence_enabled is True
    assert settings.absence_marking_time == time(12, 0)
    assert settings.work_start == time(9, 0)
    assert settings.work_end == time(18, 0)
    assert settings.late_threshold_minutes == 15
    assert settings.half_day_threshold_hours == 4
    assert settings.auto_checkout_hours == 16
    assert settings.created_by == ADMIN_ID


def test_update_applies_changes_and_audits(container, fake_time):
    fake_time.set(ist(2025, 3, 10, 10, 0))

    updated = container.settings_service.update(
        current_role=Role.HR,
        actor_id=HR_ID,
        changes={
            "absenceMarkingTime": "9:45",
            "workingHours": {"startTime": "08:30", "endTime": "17:30"},
            "lateThresholdMinutes": 10,
            "halfDayThresholdHours": 5,
            "autoCheckoutHours": 12,
            "description": "  floor 3  ",
        },
    )

    assert updated.absence_marking_time == time(9, 45)
    assert updated.work_start == time(8, 30)
    assert updated.late_threshold_minutes == 10
    assert updated.half_day_threshold_hours == 5
    assert updated.auto_checkout_hours == 12
    assert updated.description == "floor 3"
    assert updated.updated_by == HR_ID
    assert updated.updated_at == ist(2025, 3, 10, 10, 0)

    data = updated.to_dict()
    assert data["absenceMarkingTime"] == "09:45"
    assert data["formattedAbsenceMarkingTime"] == "9:45 AM"
    assert data["workingHours"] == {"startTime": "08:30", "endTime": "17:30"}


@pytest.mark.parametrize(
    "changes",
    [
        {"absenceMarkingTime": "24:00"},
        {"absenceMarkingTime": "12:5"},
        {"lateThresholdMinutes": 481},
        {"halfDayThresholdHours": 0},
        {"autoCheckoutHours": 49},
        {"autoAbsenceEnabled": "yes"},
        {"workingHours": {"startTime": "18:00", "endTime": "09:00"}},
    ],
)
def test_update_rejects_invalid_values(container, settings_repo, changes):
    before = container.settings_service.get()

    with pytest.raises(ValidationError):
        container.settings_service.update(current_role=Role.ADMIN, actor_id=ADMIN_ID, changes=changes)

    assert settings_repo.current == before


def test_update_requires_manager(container):
    with pytest.raises(AuthorizationError):
        container.settings_service.update(current_role=Role.EMPLOYEE, actor_id=10, changes={})


def test_listeners_are_notified_and_failures_contained(container, caplog):
    seen = []

    def broken(settings):
        raise RuntimeError("boom")

    container.settings_service.subscribe(broken)
    container.settings_service.subscribe(seen.append)

    saved = container.settings_service.update(
        current_role=Role.ADMIN,
        actor_id=ADMIN_ID,
        changes={"absenceMarkingTime": "13:00"},
    )

    assert seen == [saved]
    assert "Settings listener" in caplog.text
