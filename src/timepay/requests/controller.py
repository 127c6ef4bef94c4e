from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_datetime, optional_int
from ..core.exceptions import ValidationError


def register(app: Flask, container) -> None:
    @app.route("/api/attendance/adjustments", methods=["POST"], endpoint="adjustment_create")
    @login_required
    def create_adjustment():
        data = json_body()
        attendance_id = optional_int(data.get("attendanceId"), "attendanceId")
        if attendance_id is None:
            raise ValidationError("attendanceId is required")
        adj = container.adjustment_service.request_adjustment(
            actor=current_actor(),
            attendance_id=attendance_id,
            reason=data.get("reason"),
            clock_in=optional_datetime(data.get("clockIn"), "clockIn"),
            clock_out=optional_datetime(data.get("clockOut"), "clockOut"),
        )
        return ok(adj, 201)

    @app.route("/api/attendance/adjustments", methods=["GET"], endpoint="adjustment_list")
    @login_required
    def list_adjustments():
        actor = current_actor()
        employee_id = optional_int(request.args.get("employeeId"), "employeeId") or actor.employee_id
        if employee_id is None:
            raise ValidationError("employeeId is required")
        return ok(container.adjustment_service.list_adjustments(actor=actor, employee_id=employee_id))

    @app.route("/api/attendance/adjustments/<int:adjustment_id>/approve", methods=["POST"], endpoint="adjustment_approve")
    @login_required
    def approve_adjustment(adjustment_id: int):
        return ok(container.adjustment_service.approve_adjustment(actor=current_actor(), adjustment_id=adjustment_id))

    @app.route("/api/attendance/adjustments/<int:adjustment_id>/reject", methods=["POST"], endpoint="adjustment_reject")
    @login_required
    def reject_adjustment(adjustment_id: int):
        adj = container.adjustment_service.reject_adjustment(
            actor=current_actor(), adjustment_id=adjustment_id, reason=json_body().get("reason")
        )
        return ok(adj)

    @app.route("/api/attendance/adjustments/<int:adjustment_id>", methods=["PATCH"], endpoint="adjustment_update")
    @login_required
    def update_adjustment(adjustment_id: int):
        data = json_body()
        adj = container.adjustment_service.update_adjustment(
            actor=current_actor(),
            adjustment_id=adjustment_id,
            clock_in=optional_datetime(data.get("clockIn"), "clockIn"),
            clock_out=optional_datetime(data.get("clockOut"), "clockOut"),
            reason=data.get("reason"),
        )
        return ok(adj)

    @app.route("/api/attendance/adjustments/<int:adjustment_id>", methods=["DELETE"], endpoint="adjustment_delete")
    @login_required
    def delete_adjustment(adjustment_id: int):
        container.adjustment_service.delete_adjustment(actor=current_actor(), adjustment_id=adjustment_id)
        return ok({"deleted": True})
