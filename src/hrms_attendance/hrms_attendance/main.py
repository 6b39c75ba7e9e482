from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .absence.controller import register as register_absence
from .attendance.controller import register as register_attendance
from .common.web import fail
from .container import Container, build_container
from .core.constants import (
    DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS,
    DEFAULT_TIMEZONE,
    DEFAULT_WEEKEND_DAYS,
    LEAVE_QUOTA_DAYS,
)
from .core.exceptions import DomainError, http_status
from .database.bootstrap import apply_schema, ensure_demo_employees, list_tables
from .leaves.controller import register as register_leaves
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return fail(str(error), http_status(error))

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return fail(error.description or error.name, error.code or 500)
        logger.exception("Unhandled error")
        return fail("Internal server error", 500)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_demo_employees(db_config)

        container = build_container(
            db_config=db_config,
            timezone=getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE),
            weekend_days=getattr(settings, "WEEKEND_DAYS", DEFAULT_WEEKEND_DAYS),
            leave_quota_days=getattr(settings, "LEAVE_QUOTA_DAYS", LEAVE_QUOTA_DAYS),
            absence_deadline_seconds=getattr(
                settings, "ABSENCE_RUN_DEADLINE_SECONDS", DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS
            ),
        )

    app.extensions["hrms_container"] = container
    _register_error_handlers(app)

    register_attendance(app, container)
    register_settings(app, container)
    register_absence(app, container)
    register_leaves(app, container)

    if getattr(settings, "START_SCHEDULER", False):
        container.absence_scheduler.initialize()

    return app
