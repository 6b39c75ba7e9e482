from __future__ import annotations

from functools import wraps

from flask import Flask, session

from ..common.web import current_role, fail, ok, query_date, query_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import MANAGER_ROLES


def register(app: Flask, container: Container) -> None:
    def manager_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", 401)
            if session.get("role") not in {r.value for r in MANAGER_ROLES}:
                return fail("You do not have permission for this action", 403)
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/attendance-settings/mark-absences", methods=["POST"], endpoint="absence_mark")
    @manager_required
    def mark_absences():
        result = container.absence_job.run()
        return ok(result.to_dict(), message="Absence marking finished")

    @app.route("/api/attendance-settings/absence-stats", methods=["GET"], endpoint="absence_stats")
    @manager_required
    def absence_stats():
        counts = container.report_service.daily_status_counts(
            current_role=current_role(),
            work_date=query_date("date"),
        )
        return ok(counts.to_dict())

    @app.route("/api/attendance-settings/scheduler-status", methods=["GET"], endpoint="absence_scheduler_status")
    @manager_required
    def scheduler_status():
        return ok(container.absence_scheduler.get_status().to_dict())

    @app.route("/api/attendance-settings/scheduler-restart", methods=["POST"], endpoint="absence_scheduler_restart")
    @manager_required
    def scheduler_restart():
        container.absence_scheduler.restart()
        return ok(container.absence_scheduler.get_status().to_dict(), message="Scheduler restarted")

    @app.route("/api/attendance-settings/auto-absence-log", methods=["GET"], endpoint="absence_log")
    @manager_required
    def auto_absence_log():
        records = container.report_service.recent_auto_absences(
            current_role=current_role(),
            limit=query_int("limit", DEFAULT_HISTORY_LIMIT),
        )
        return ok([r.to_dict() for r in records])
