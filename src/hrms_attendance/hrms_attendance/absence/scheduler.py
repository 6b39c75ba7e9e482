from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, time
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from apscheduler.job import Job
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from ..common.datetime_utils import Clock, format_12h, format_hhmm
from ..core.exceptions import SchedulingError
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .job import AbsenceMarkingJob, AbsenceRunResult

logger = logging.getLogger(__name__)

JOB_ID = "absence-marking"

SchedulerFactory = Callable[[ZoneInfo], BaseScheduler]


def background_scheduler(tz: ZoneInfo) -> BaseScheduler:
    return BackgroundScheduler(
        timezone=tz,
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 3600,
        },
    )


@dataclass(frozen=True)
class SchedulerStatus:
    installed: bool
    marking_time: Optional[time]
    next_run: Optional[datetime]
    last_result: Optional[AbsenceRunResult]

    def to_dict(self) -> dict:
        return {
            "isRunning": self.installed,
            "markingTime": format_hhmm(self.marking_time) if self.marking_time else None,
            "formattedMarkingTime": format_12h(self.marking_time) if self.marking_time else None,
            "nextRun": self.next_run.isoformat() if self.next_run else None,
            "lastRun": self.last_result.run_at.isoformat() if self.last_result else None,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
        }


class AbsenceScheduler:
    """Daily cron trigger for the absence marking job.

    One APScheduler background scheduler per process, in the reference
    timezone, holding a single job at the configured marking time. Nothing
    is scheduled until ``initialize()`` runs; settings updates only move an
    already initialized trigger.
    """

    def __init__(
        self,
        settings: SettingsService,
        job: AbsenceMarkingJob,
        *,
        clock: Clock,
        scheduler_factory: Optional[SchedulerFactory] = None,
    ):
        self._settings = settings
        self._job = job
        self._clock = clock
        self._scheduler_factory = scheduler_factory or background_scheduler

        self._lock = threading.Lock()
        self._initialized = False
        self._scheduler: Optional[BaseScheduler] = None
        self._marking_time: Optional[time] = None

    def initialize(self) -> bool:
        """Install the trigger from the stored settings; safe to call repeatedly."""
        with self._lock:
            if self._initialized:
                return self.scheduled_job() is not None
            try:
                settings = self._settings.get()
            except Exception:
                logger.exception("Could not read attendance settings, absence marking not scheduled")
                return False

            try:
                scheduler = self._scheduler_factory(self._clock.calendar.tz)
                scheduler.start()
            except Exception:
                logger.exception("Failed to start the absence scheduler")
                return False

            self._scheduler = scheduler
            self._initialized = True
            return self._install(settings)

    def update_schedule(self, settings: Optional[AttendanceSettings] = None) -> bool:
        with self._lock:
            if not self._initialized:
                logger.debug("Absence scheduler not initialized, settings change ignored")
                return False
            self._remove_job()
            return self._install(settings or self._settings.get())

    def stop(self) -> None:
        with self._lock:
            scheduler = self._scheduler
            if scheduler is not None and scheduler.running:
                scheduler.shutdown(wait=False)
            self._scheduler = None
            self._initialized = False
        logger.info("Absence scheduler stopped")

    def restart(self) -> bool:
        self.stop()
        return self.initialize()

    def scheduled_job(self) -> Optional[Job]:
        scheduler = self._scheduler
        return scheduler.get_job(JOB_ID) if scheduler is not None else None

    def get_status(self) -> SchedulerStatus:
        with self._lock:
            job = self.scheduled_job()
            return SchedulerStatus(
                installed=job is not None,
                marking_time=self._marking_time,
                next_run=job.next_run_time if job is not None else None,
                last_result=self._job.last_result,
            )

    def _install(self, settings: AttendanceSettings) -> bool:
        marking_time = settings.absence_marking_time
        self._marking_time = marking_time if isinstance(marking_time, time) else None
        if not settings.auto_absence_enabled:
            logger.info("Auto absence marking is disabled, no trigger installed")
            return False

        try:
            if not isinstance(marking_time, time):
                raise SchedulingError(f"Invalid absence marking time: {marking_time!r}")
            self._scheduler.add_job(
                self._run_scheduled,
                "cron",
                hour=marking_time.hour,
                minute=marking_time.minute,
                id=JOB_ID,
                name="Daily absence marking",
                replace_existing=True,
            )
        except (SchedulingError, ValueError) as exc:
            logger.error("Failed to schedule absence marking: %s", exc)
            return False

        logger.info("Absence marking scheduled daily at %s (%s)", format_hhmm(marking_time), self._clock.calendar.tz)
        return True

    def _remove_job(self) -> None:
        if self.scheduled_job() is not None:
            self._scheduler.remove_job(JOB_ID)

    def _run_scheduled(self) -> None:
        logger.info("Running scheduled absence marking")
        try:
            self._job.run()
        except Exception:
            logger.exception("Scheduled absence marking failed")
