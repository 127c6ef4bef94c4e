from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_BUSINESS_TIMEZONE
from .database.bootstrap import apply_schema, list_tables
from .leave.controller import register as register_leave
from .overtime.controller import register as register_overtime
from .payroll.controller import register as register_payroll
from .policies.controller import register as register_policies
from .requests.controller import register as register_requests
from .schedules.controller import register as register_schedules

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app. Tests pass a container wired to in-memory repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(
            db_config=db_config,
            timezone=getattr(settings, "BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE),
        )

    app.extensions["timepay"] = container
    register_error_handlers(app)
    register_attendance(app, container)
    register_requests(app, container)
    register_leave(app, container)
    register_overtime(app, container)
    register_payroll(app, container)
    register_schedules(app, container)
    register_policies(app, container)

    return app
