from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_int
from ..core.exceptions import ValidationError
from ..policies.model import to_snake


def register(app: Flask, container) -> None:
    @app.route("/api/leave/types", methods=["GET"], endpoint="leave_type_list")
    @login_required
    def list_types():
        include_inactive = request.args.get("includeInactive", "").lower() in {"1", "true", "yes"}
        return ok(container.leave_service.list_leave_types(actor=current_actor(), include_inactive=include_inactive))

    @app.route("/api/leave/types/<int:leave_type_id>", methods=["PATCH"], endpoint="leave_type_update")
    @login_required
    def update_type(leave_type_id: int):
        changes = {to_snake(key): value for key, value in json_body().items()}
        updated = container.leave_service.update_leave_type(
            actor=current_actor(), leave_type_id=leave_type_id, changes=changes
        )
        return ok(updated)

    @app.route("/api/leave/balances/<int:leave_type_id>", methods=["GET"], endpoint="leave_balance_get")
    @login_required
    def get_balance(leave_type_id: int):
        balance = container.leave_service.get_balance(
            actor=current_actor(),
            leave_type_id=leave_type_id,
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
        )
        return ok(balance)

    @app.route("/api/leave/balances/<int:leave_type_id>/quota", methods=["PUT"], endpoint="leave_quota_set")
    @login_required
    def set_quota(leave_type_id: int):
        data = json_body()
        employee_id = optional_int(data.get("employeeId"), "employeeId")
        if employee_id is None:
            raise ValidationError("employeeId is required")
        balance = container.leave_service.set_manual_quota(
            actor=current_actor(),
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            balance=data.get("balance"),
        )
        return ok(balance)

    @app.route("/api/leave/requests", methods=["POST"], endpoint="leave_request_create")
    @login_required
    def create_request():
        data = json_body()
        leave_type_id = optional_int(data.get("leaveTypeId"), "leaveTypeId")
        if leave_type_id is None:
            raise ValidationError("leaveTypeId is required")
        req = container.leave_service.create_leave_request(
            actor=current_actor(),
            leave_type_id=leave_type_id,
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            reason=data.get("reason"),
            attachment_url=data.get("attachmentUrl"),
        )
        return ok(req, 201)

    @app.route("/api/leave/requests", methods=["GET"], endpoint="leave_request_list")
    @login_required
    def list_requests():
        requests_ = container.leave_service.list_leave_requests(
            actor=current_actor(),
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
        )
        return ok(requests_)

    @app.route("/api/leave/requests/<int:request_id>/approve", methods=["POST"], endpoint="leave_request_approve")
    @login_required
    def approve_request(request_id: int):
        return ok(container.leave_service.approve_leave_request(actor=current_actor(), request_id=request_id))

    @app.route("/api/leave/requests/<int:request_id>/reject", methods=["POST"], endpoint="leave_request_reject")
    @login_required
    def reject_request(request_id: int):
        req = container.leave_service.reject_leave_request(
            actor=current_actor(), request_id=request_id, reason=json_body().get("reason")
        )
        return ok(req)

    @app.route("/api/leave/requests/<int:request_id>", methods=["PATCH"], endpoint="leave_request_update")
    @login_required
    def update_request(request_id: int):
        data = json_body()
        req = container.leave_service.update_leave_request(
            actor=current_actor(),
            request_id=request_id,
            leave_type_id=optional_int(data.get("leaveTypeId"), "leaveTypeId"),
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
            reason=data.get("reason"),
            attachment_url=data.get("attachmentUrl"),
        )
        return ok(req)

    @app.route("/api/leave/requests/<int:request_id>", methods=["DELETE"], endpoint="leave_request_delete")
    @login_required
    def delete_request(request_id: int):
        container.leave_service.delete_leave_request(actor=current_actor(), request_id=request_id)
        return ok({"deleted": True})
