from __future__ import annotations

from flask import Flask, request

from ..common.http import current_actor, json_body, login_required, ok, optional_int
from ..core.exceptions import ValidationError
from ..policies.model import to_snake


def register(app: Flask, container) -> None:
    @app.route("/api/payroll/runs", methods=["GET"], endpoint="payroll_run_list")
    @login_required
    def list_runs():
        return ok(container.payroll_service.list_runs(actor=current_actor()))

    @app.route("/api/payroll/runs", methods=["POST"], endpoint="payroll_run_create")
    @login_required
    def create_run():
        data = json_body()
        year, month = data.get("periodYear"), data.get("periodMonth")
        if year is None or month is None:
            raise ValidationError("periodYear and periodMonth are required")
        run = container.payroll_service.create_run(
            actor=current_actor(), year=year, month=month, notes=data.get("notes")
        )
        return ok(run, 201)

    @app.route("/api/payroll/runs/<int:run_id>", methods=["GET"], endpoint="payroll_run_get")
    @login_required
    def get_run(run_id: int):
        return ok(container.payroll_service.get_run(actor=current_actor(), run_id=run_id))

    @app.route("/api/payroll/runs/<int:run_id>", methods=["PATCH"], endpoint="payroll_run_update")
    @login_required
    def update_run(run_id: int):
        data = json_body()
        run = container.payroll_service.update_run(
            actor=current_actor(),
            run_id=run_id,
            year=data.get("periodYear"),
            month=data.get("periodMonth"),
            notes=data.get("notes"),
        )
        return ok(run)

    @app.route("/api/payroll/runs/<int:run_id>", methods=["DELETE"], endpoint="payroll_run_delete")
    @login_required
    def delete_run(run_id: int):
        container.payroll_service.delete_run(actor=current_actor(), run_id=run_id)
        return ok({"deleted": True})

    @app.route("/api/payroll/runs/<int:run_id>/recalculate", methods=["POST"], endpoint="payroll_run_recalculate")
    @login_required
    def recalculate(run_id: int):
        return ok(container.payroll_service.recalculate_total(actor=current_actor(), run_id=run_id))

    @app.route("/api/payroll/runs/<int:run_id>/lock", methods=["POST"], endpoint="payroll_run_lock")
    @login_required
    def lock_run(run_id: int):
        return ok(container.payroll_service.lock_run(actor=current_actor(), run_id=run_id))

    @app.route("/api/payroll/runs/<int:run_id>/pay", methods=["POST"], endpoint="payroll_run_pay")
    @login_required
    def mark_paid(run_id: int):
        return ok(container.payroll_service.mark_paid(actor=current_actor(), run_id=run_id))

    @app.route("/api/payroll/runs/<int:run_id>/items/<int:item_id>", methods=["PATCH"], endpoint="payroll_item_update")
    @login_required
    def update_item(run_id: int, item_id: int):
        overrides = {to_snake(key): value for key, value in json_body().items()}
        item = container.payroll_service.update_item(
            actor=current_actor(), run_id=run_id, item_id=item_id, overrides=overrides
        )
        return ok(item)

    @app.route("/api/payroll/payslips", methods=["GET"], endpoint="payslip_list")
    @login_required
    def list_payslips():
        payslips = container.payroll_service.list_employee_payslips(
            actor=current_actor(),
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
        )
        return ok(payslips)

    @app.route("/api/payroll/payslips/<int:run_id>", methods=["GET"], endpoint="payslip_get")
    @login_required
    def get_payslip(run_id: int):
        payslip = container.payroll_service.get_payslip(
            actor=current_actor(),
            run_id=run_id,
            employee_id=optional_int(request.args.get("employeeId"), "employeeId"),
        )
        return ok(payslip)
