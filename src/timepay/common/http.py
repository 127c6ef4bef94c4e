"""Flask glue shared by the JSON controllers."""

from __future__ import annotations

import logging
from datetime import date, datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.context import Actor
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from .datetime_utils import parse_iso_date
from .serialization import to_jsonable

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "not_found": 404,
    "conflict": 400,
    "forbidden": 403,
    "validation_failure": 400,
}


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or "company_id" not in session:
            return jsonify({"error": "unauthenticated", "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Actor:
    """Tenant context of the signed-in user, taken from the session."""
    employee_id = session.get("employee_id")
    return Actor(
        user_id=int(session["user_id"]),
        role=Role(session["role"]),
        company_id=int(session["company_id"]),
        employee_id=int(employee_id) if employee_id is not None else None,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(value: Any, status: int = 200):
    return jsonify(to_jsonable(value)), status


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def optional_date(value: Optional[str]) -> Optional[date]:
    return parse_iso_date(value) if value else None


def optional_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = STATUS_BY_KIND.get(exc.kind, 400)
        logger.info("%s %s -> %s: %s", request.method, request.path, status, exc)
        return jsonify({"error": exc.kind, "message": str(exc)}), status
