from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_date, optional_int
from ..core.enums import CompensationType


def register(app: Flask, container) -> None:
    @app.route("/api/overtime", methods=["POST"], endpoint="overtime_create")
    @login_required
    def create_overtime():
        data = json_body()
        req = container.overtime_service.create_overtime_request(
            actor=current_actor(),
            ot_date=data.get("date"),
            duration_minutes=data.get("duration"),
            reason=data.get("reason"),
            compensation_type=data.get("compensationType") or CompensationType.PAYOUT,
            employee_id=optional_int(data.get("employeeId"), "employeeId"),
        )
        return ok(req, 201)

    @app.route("/api/overtime", methods=["GET"], endpoint="overtime_list")
    @login_required
    def list_overtime():
        requests_ = container.overtime_service.list_overtime_requests(
            actor=current_actor(),
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
            start=optional_date(request.args.get("start")),
            end=optional_date(request.args.get("end")),
        )
        return ok(requests_)

    @app.route("/api/overtime/<int:request_id>/approve", methods=["POST"], endpoint="overtime_approve")
    @login_required
    def approve_overtime(request_id: int):
        return ok(container.overtime_service.approve_overtime_request(actor=current_actor(), request_id=request_id))

    @app.route("/api/overtime/<int:request_id>/reject", methods=["POST"], endpoint="overtime_reject")
    @login_required
    def reject_overtime(request_id: int):
        req = container.overtime_service.reject_overtime_request(
            actor=current_actor(), request_id=request_id, reason=json_body().get("reason")
        )
        return ok(req)

    @app.route("/api/overtime/<int:request_id>", methods=["PATCH"], endpoint="overtime_update")
    @login_required
    def update_overtime(request_id: int):
        data = json_body()
        req = container.overtime_service.update_overtime_request(
            actor=current_actor(),
            request_id=request_id,
            ot_date=data.get("date"),
            duration_minutes=data.get("duration"),
            reason=data.get("reason"),
            compensation_type=data.get("compensationType"),
        )
        return ok(req)

    @app.route("/api/overtime/<int:request_id>", methods=["DELETE"], endpoint="overtime_delete")
    @login_required
    def delete_overtime(request_id: int):
        container.overtime_service.delete_overtime_request(actor=current_actor(), request_id=request_id)
        return ok({"deleted": True})
