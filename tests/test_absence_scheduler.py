from __future__ import annotations

from dataclasses import replace
from datetime import time

from conftest import ADMIN_ID, IST, ist

from hrms_attendance.absence.scheduler import JOB_ID
from hrms_attendance.core.enums import Role


def _trigger_fields(job):
    return {f.name: str(f) for f in job.trigger.fields}


def test_initialize_installs_daily_cron_in_reference_zone(container):
    scheduler = container.absence_scheduler

    assert scheduler.initialize() is True

    job = scheduler.scheduled_job()
    assert job.id == JOB_ID
    assert _trigger_fields(job)["hour"] == "12"
    assert _trigger_fields(job)["minute"] == "0"
    assert str(job.trigger.timezone) == "Asia/Kolkata"

    status = scheduler.get_status()
    assert status.installed is True
    assert status.next_run.astimezone(IST).time() == time(12, 0)
    data = status.to_dict()
    assert data["markingTime"] == "12:00"
    assert data["formattedMarkingTime"] == "12:00 PM"


def test_scheduled_job_runs_absence_marking(container, fake_time):
    scheduler = container.absence_scheduler
    scheduler.initialize()
    fake_time.set(ist(2025, 3, 10, 12, 0))

    scheduler.scheduled_job().func()

    assert container.absence_job.last_result.marked == 4
    assert scheduler.get_status().to_dict()["lastResult"]["marked"] == 4


def test_scheduled_job_failure_is_logged(container, monkeypatch, caplog):
    scheduler = container.absence_scheduler
    scheduler.initialize()

    def explode():
        raise RuntimeError("storage down")

    monkeypatch.setattr(container.absence_job, "run", explode)

    scheduler.scheduled_job().func()

    assert "Scheduled absence marking failed" in caplog.text


def test_initialize_is_idempotent(container):
    scheduler = container.absence_scheduler

    assert scheduler.initialize() is True
    first = scheduler.scheduled_job()
    assert scheduler.initialize() is True

    assert scheduler.scheduled_job().id == first.id
    assert scheduler.scheduled_job().next_run_time == first.next_run_time


def test_disabled_settings_install_nothing(container):
    container.settings_service.update(current_role=Role.ADMIN, actor_id=ADMIN_ID, changes={"autoAbsenceEnabled": False})
    scheduler = container.absence_scheduler

    assert scheduler.initialize() is False
    assert scheduler.get_status().installed is False


def test_settings_update_reschedules(container):
    scheduler = container.absence_scheduler
    scheduler.initialize()

    container.settings_service.update(current_role=Role.ADMIN, actor_id=ADMIN_ID, changes={"absenceMarkingTime": "14:30"})

    status = scheduler.get_status()
    assert status.marking_time == time(14, 30)
    assert status.installed is True
    assert _trigger_fields(scheduler.scheduled_job())["hour"] == "14"
    assert _trigger_fields(scheduler.scheduled_job())["minute"] == "30"


def test_settings_update_before_initialize_installs_nothing(container):
    scheduler = container.absence_scheduler

    container.settings_service.update(current_role=Role.ADMIN, actor_id=ADMIN_ID, changes={"absenceMarkingTime": "14:30"})

    assert scheduler.update_schedule() is False
    assert scheduler.scheduled_job() is None
    assert scheduler.get_status().installed is False


def test_invalid_marking_time_is_logged_not_raised(container, settings_repo, caplog):
    settings = container.settings_service.get()
    settings_repo.save(replace(settings, absence_marking_time=None))
    scheduler = container.absence_scheduler

    assert scheduler.initialize() is False
    assert "Failed to schedule absence marking" in caplog.text
    assert scheduler.get_status().to_dict()["markingTime"] is None


def test_stop_and_restart(container):
    scheduler = container.absence_scheduler
    scheduler.initialize()

    scheduler.stop()
    assert scheduler.get_status().installed is False
    assert scheduler.get_status().next_run is None

    assert scheduler.restart() is True
    assert scheduler.get_status().installed is True
