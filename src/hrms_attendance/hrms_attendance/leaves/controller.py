from __future__ import annotations

from functools import wraps

from flask import Flask, request, session

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, current_user_id, fail, json_body, ok, query_int
from ..container import Container
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import MANAGER_ROLES
from ..core.exceptions import ValidationError


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

    @app.route("/api/leaves", methods=["POST"], endpoint="leave_create")
    @login_required
    def create():
        data = json_body()
        if not data.get("from") or not data.get("to"):
            raise ValidationError("from and to dates are required")

        leave = container.leave_service.create(
            current_role=current_role(),
            actor_id=current_user_id(),
            employee_id=int(data.get("employeeId") or current_user_id()),
            leave_type=data.get("leaveType"),
            from_date=parse_iso_date(data["from"]),
            to_date=parse_iso_date(data["to"]),
            reason=str(data.get("reason") or ""),
            no_of_days=data.get("noOfDays"),
        )
        return ok(leave.to_dict(), status=201, message="Leave request submitted")

    @app.route("/api/leaves", methods=["GET"], endpoint="leave_list")
    @manager_required
    def list_all():
        page = container.leave_service.list_leaves(
            current_role=current_role(),
            status=request.args.get("status"),
            employee_id=query_int("employeeId"),
            leave_type=request.args.get("leaveType"),
            page=query_int("page", 1),
            limit=query_int("limit", DEFAULT_PAGE_SIZE),
        )
        return ok(page.to_dict())

    @app.route("/api/leaves/<int:leave_id>", methods=["GET"], endpoint="leave_get")
    @login_required
    def get(leave_id: int):
        leave = container.leave_service.get(leave_id, current_role=current_role(), actor_id=current_user_id())
        return ok(leave.to_dict())

    @app.route("/api/leaves/employee/<int:employee_id>", methods=["GET"], endpoint="leave_by_employee")
    @login_required
    def by_employee(employee_id: int):
        leaves = container.leave_service.list_for_employee(
            employee_id,
            current_role=current_role(),
            actor_id=current_user_id(),
        )
        return ok([leave.to_dict() for leave in leaves])

    @app.route("/api/leaves/balance/<int:employee_id>", methods=["GET"], endpoint="leave_balance")
    @login_required
    def balance(employee_id: int):
        result = container.leave_service.balance(
            employee_id,
            current_role=current_role(),
            actor_id=current_user_id(),
            year=query_int("year"),
        )
        return ok(result.to_dict())

    @app.route("/api/leaves/<int:leave_id>/approve", methods=["POST"], endpoint="leave_approve")
    @manager_required
    def approve(leave_id: int):
        result = container.leave_service.approve(leave_id, current_role=current_role(), actor_id=current_user_id())
        return ok(result.to_dict(), message="Leave approved")

    @app.route("/api/leaves/<int:leave_id>/decline", methods=["POST"], endpoint="leave_decline")
    @manager_required
    def decline(leave_id: int):
        leave = container.leave_service.decline(leave_id, current_role=current_role(), actor_id=current_user_id())
        return ok(leave.to_dict(), message="Leave declined")

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["POST"], endpoint="leave_cancel")
    @login_required
    def cancel(leave_id: int):
        leave = container.leave_service.cancel(leave_id, current_role=current_role(), actor_id=current_user_id())
        return ok(leave.to_dict(), message="Leave cancelled")

    @app.route("/api/leaves/<int:leave_id>", methods=["DELETE"], endpoint="leave_delete")
    @manager_required
    def delete(leave_id: int):
        container.leave_service.delete(leave_id, current_role=current_role(), actor_id=current_user_id())
        return ok(message="Leave request deleted")
