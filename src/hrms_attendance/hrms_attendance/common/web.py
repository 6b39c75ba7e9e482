from __future__ import annotations

from datetime import date
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import MANAGER_ROLES, AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from .datetime_utils import parse_iso_date


def ok(data=None, *, status: int = 200, message: Optional[str] = None):
    body: dict = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    try:
        return Role(session.get("role"))
    except ValueError:
        raise AuthorizationError("Unknown role")


def require_self_or_manager(employee_id: int) -> None:
    if current_role() not in MANAGER_ROLES and current_user_id() != int(employee_id):
        raise AuthorizationError("You can only access your own records")


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_date(name: str) -> Optional[date]:
    value = request.args.get(name)
    return parse_iso_date(value) if value else None


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def query_status(name: str = "status") -> Optional[AttendanceStatus]:
    value = request.args.get(name)
    if not value:
        return None
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")
