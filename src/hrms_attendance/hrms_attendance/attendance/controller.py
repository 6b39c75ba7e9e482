from __future__ import annotations

import math
from functools import wraps
from typing import Optional

from flask import Flask, session

from ..common.web import (
    current_role,
    current_user_id,
    fail,
    json_body,
    ok,
    query_date,
    query_int,
    query_status,
    require_self_or_manager,
)
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import MANAGER_ROLES
from ..core.exceptions import ValidationError


def _coordinate(value, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name} value")
    if not math.isfinite(number):
        raise ValidationError(f"Invalid {name} value")
    return number


def _punch_args(data: dict) -> dict:
    geo = data.get("geolocation") or {}
    if not isinstance(geo, dict):
        raise ValidationError("geolocation must be an object with latitude and longitude")
    return {
        "location": str(data.get("location") or ""),
        "latitude": _coordinate(geo.get("latitude"), "latitude"),
        "longitude": _coordinate(geo.get("longitude"), "longitude"),
    }


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", 401)
            return view(*args, **kwargs)

        return wrapper

    def manager_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", 401)
            if session.get("role") not in {r.value for r in MANAGER_ROLES}:
                return fail("You do not have permission for this action", 403)
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @login_required
    def checkin():
        record = container.attendance_service.check_in(current_user_id(), **_punch_args(json_body()))
        return ok(record.to_dict(), status=201, message="Checked in successfully")

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="attendance_checkout")
    @login_required
    def checkout():
        record = container.attendance_service.check_out(current_user_id(), **_punch_args(json_body()))
        return ok(record.to_dict(), message="Checked out successfully")

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="attendance_break_start")
    @login_required
    def break_start():
        record = container.attendance_service.start_break(current_user_id())
        return ok(record.to_dict(), message="Break started")

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="attendance_break_end")
    @login_required
    def break_end():
        record = container.attendance_service.end_break(current_user_id())
        return ok(record.to_dict(), message="Break ended")

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="attendance_by_employee")
    @login_required
    def by_employee(employee_id: int):
        require_self_or_manager(employee_id)
        records = container.attendance_service.list_for_employee(
            employee_id,
            start=query_date("startDate"),
            end=query_date("endDate"),
            status=query_status(),
        )
        return ok([r.to_dict() for r in records])

    @app.route("/api/attendance/employee/<int:employee_id>/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today(employee_id: int):
        require_self_or_manager(employee_id)
        record = container.attendance_service.get_today(employee_id)
        return ok(record.to_dict() if record else None)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @manager_required
    def list_all():
        page = container.attendance_service.list_range(
            current_role=current_role(),
            start=query_date("startDate"),
            end=query_date("endDate"),
            employee_id=query_int("employeeId"),
            status=query_status(),
            page=query_int("page", 1),
            limit=query_int("limit", DEFAULT_PAGE_SIZE),
        )
        return ok(page.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @manager_required
    def update(attendance_id: int):
        record = container.attendance_service.admin_update(
            attendance_id,
            current_role=current_role(),
            changes=json_body(),
        )
        return ok(record.to_dict(), message="Attendance updated")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @manager_required
    def delete(attendance_id: int):
        container.attendance_service.deactivate(attendance_id, current_role=current_role())
        return ok(message="Attendance record deleted")

    @app.route("/api/attendance/statistics/<int:employee_id>", methods=["GET"], endpoint="attendance_statistics")
    @login_required
    def statistics(employee_id: int):
        require_self_or_manager(employee_id)
        stats = container.report_service.employee_statistics(
            employee_id,
            start=query_date("startDate"),
            end=query_date("endDate"),
        )
        return ok(stats.to_dict())
