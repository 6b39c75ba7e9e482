from __future__ import annotations

from functools import wraps

from flask import Flask, session

from ..common.web import current_role, current_user_id, fail, json_body, ok
from ..container import Container
from ..core.enums import MANAGER_ROLES


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

    @app.route("/api/attendance-settings", methods=["GET"], endpoint="settings_get")
    @manager_required
    def get_settings():
        settings = container.settings_service.get(actor_id=current_user_id())
        return ok(settings.to_dict())

    @app.route("/api/attendance-settings", methods=["PUT"], endpoint="settings_update")
    @manager_required
    def update_settings():
        settings = container.settings_service.update(
            current_role=current_role(),
            actor_id=current_user_id(),
            changes=json_body(),
        )
        return ok(settings.to_dict(), message="Attendance settings updated")

    @app.route("/api/attendance-settings/auto-checkout-hours", methods=["GET"], endpoint="settings_auto_checkout")
    @login_required
    def auto_checkout_hours():
        return ok({"autoCheckoutHours": container.settings_service.get().auto_checkout_hours})
