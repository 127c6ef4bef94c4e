from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from timepay.attendance.service import AttendanceService
from timepay.leave.service import LeaveService
from timepay.main import create_app
from timepay.overtime.service import OvertimeService
from timepay.payroll.service import PayrollService
from timepay.requests.service import AdjustmentService


@pytest.fixture
def leave_type(leave_repo):
    return leave_repo.add_type(code="UNPAID", name="Unpaid leave", is_paid=False)


@pytest.fixture
def app(
    monkeypatch,
    directory,
    calendar,
    audit,
    policy_service,
    schedule_service,
    attendance_repo,
    adjustment_repo,
    leave_repo,
    overtime_repo,
    payroll_repo,
):
    monkeypatch.setenv("APP_ENV", "testing")
    container = SimpleNamespace(
        policy_service=policy_service,
        schedule_service=schedule_service,
        attendance_service=AttendanceService(attendance_repo, directory, schedule_service, policy_service, calendar),
        adjustment_service=AdjustmentService(
            adjustment_repo, attendance_repo, directory, policy_service, calendar, audit=audit
        ),
        leave_service=LeaveService(leave_repo, directory, policy_service, calendar, audit=audit),
        overtime_service=OvertimeService(overtime_repo, directory, policy_service, calendar, audit=audit),
        payroll_service=PayrollService(
            payroll_repo, directory, attendance_repo, overtime_repo, policy_service, audit=audit
        ),
    )
    return create_app(container=container)


def _login(client, actor):
    with client.session_transaction() as sess:
        sess["user_id"] = actor.user_id
        sess["role"] = actor.role.value
        sess["company_id"] = actor.company_id
        sess["employee_id"] = actor.employee_id


def test_app_uses_testing_settings(app):
    assert app.config["TESTING"] is True


def test_requests_without_session_are_unauthenticated(app):
    resp = app.test_client().get("/api/leave/types")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthenticated"


def test_leave_request_round_trip(app, employee, leave_type):
    client = app.test_client()
    _login(client, employee)

    resp = client.post(
        "/api/leave/requests",
        json={"leaveTypeId": leave_type.leave_type_id, "startDate": "2025-03-04", "endDate": "2025-03-06"},
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["days"] == "3"
    assert body["status"] == "PENDING"

    resp = client.post(
        "/api/leave/requests",
        json={"leaveTypeId": leave_type.leave_type_id, "startDate": "2025-03-05", "endDate": "2025-03-05"},
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "conflict"


def test_domain_errors_map_to_status_codes(app, employee, owner, leave_type):
    client = app.test_client()
    _login(client, employee)
    resp = client.patch(f"/api/leave/types/{leave_type.leave_type_id}", json={"isPaid": True})
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "forbidden"

    resp = client.post("/api/leave/requests", json={"startDate": "2025-03-04"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_failure"

    _login(client, owner)
    resp = client.get("/api/payroll/runs/999")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_owner_runs_payroll_over_http(app, owner):
    client = app.test_client()
    _login(client, owner)

    resp = client.post("/api/payroll/runs", json={"periodYear": 2025, "periodMonth": 3})
    assert resp.status_code == 201
    run = resp.get_json()
    assert Decimal(run["total_amount"]) > 0

    resp = client.post(f"/api/payroll/runs/{run['run_id']}/lock")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "LOCKED"
