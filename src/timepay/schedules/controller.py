from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_date, optional_int
from ..core.exceptions import ValidationError


def register(app: Flask, container) -> None:
    @app.route("/api/schedules", methods=["GET"], endpoint="schedule_list")
    @login_required
    def list_schedules():
        schedules = container.schedule_service.list_schedules(
            actor=current_actor(),
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
            start=optional_date(request.args.get("start")),
            end=optional_date(request.args.get("end")),
        )
        return ok(schedules)

    @app.route("/api/schedules", methods=["POST"], endpoint="schedule_create")
    @login_required
    def create_schedule():
        data = json_body()
        employee_id = optional_int(data.get("employeeId"), "employeeId")
        if employee_id is None:
            raise ValidationError("employeeId is required")
        schedule = container.schedule_service.create_schedule(
            actor=current_actor(),
            employee_id=employee_id,
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            day_of_week=optional_int(data.get("dayOfWeek"), "dayOfWeek"),
            on_date=optional_date(data.get("date")),
            notes=data.get("notes"),
            is_active=bool(data.get("isActive", True)),
        )
        return ok(schedule, 201)

    @app.route("/api/schedules/<int:schedule_id>", methods=["PATCH"], endpoint="schedule_update")
    @login_required
    def update_schedule(schedule_id: int):
        data = json_body()
        schedule = container.schedule_service.update_schedule(
            actor=current_actor(),
            schedule_id=schedule_id,
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            day_of_week=optional_int(data.get("dayOfWeek"), "dayOfWeek"),
            on_date=optional_date(data.get("date")),
            notes=data.get("notes"),
            is_active=data.get("isActive"),
        )
        return ok(schedule)

    @app.route("/api/schedules/<int:schedule_id>", methods=["DELETE"], endpoint="schedule_delete")
    @login_required
    def delete_schedule(schedule_id: int):
        container.schedule_service.delete_schedule(actor=current_actor(), schedule_id=schedule_id)
        return ok({"deleted": True})
