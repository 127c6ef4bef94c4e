from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_date, optional_int
from ..core.exceptions import ValidationError


def register(app: Flask, container) -> None:
    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    def clock_in():
        data = json_body()
        record = container.attendance_service.clock_in(
            actor=current_actor(),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            notes=data.get("notes"),
        )
        return ok(record, 201)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    def clock_out():
        data = json_body()
        record = container.attendance_service.clock_out(
            actor=current_actor(),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            notes=data.get("notes"),
        )
        return ok(record)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        return ok(container.attendance_service.get_today(actor=current_actor()))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def list_attendance():
        start = optional_date(request.args.get("start"))
        end = optional_date(request.args.get("end"))
        if start is None or end is None:
            raise ValidationError("start and end are required")
        records = container.attendance_service.list_attendance(
            actor=current_actor(),
            start=start,
            end=end,
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
        )
        return ok(records)
