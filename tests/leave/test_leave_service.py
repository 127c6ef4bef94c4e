from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from timepay.core.enums import ApprovalStatus, AuditAction, PolicyType, Role
from timepay.core.exceptions import AuthorizationError, ConflictError, ValidationError
from timepay.leave.service import LeaveService

FIXED_DAY = date(2025, 3, 15)


@pytest.fixture
def service(leave_repo, directory, policy_service, calendar, audit):
    return LeaveService(leave_repo, directory, policy_service, calendar, audit=audit)


@pytest.fixture
def annual(leave_repo):
    return leave_repo.add_type(code="ANNUAL", name="Annual leave", accrual_rate=Decimal("1"), max_balance=Decimal("12"))


@pytest.fixture
def unpaid(leave_repo):
    return leave_repo.add_type(code="UNPAID", name="Unpaid leave", is_paid=False)


@pytest.fixture
def no_accrual(add_policy):
    add_policy(PolicyType.LEAVE_POLICY, {"accrualMethod": "NONE"})


def test_balance_read_is_idempotent(service, employee, annual):
    first = service.get_balance(actor=employee, leave_type_id=annual.leave_type_id, today=FIXED_DAY)
    second = service.get_balance(actor=employee, leave_type_id=annual.leave_type_id, today=FIXED_DAY)
    assert first == second
    assert first.balance == Decimal("1")
    assert (first.period_year, first.period_month) == (2025, 3)


def test_balance_builds_on_previous_month(service, employee, annual, leave_repo):
    service.get_balance(actor=employee, leave_type_id=annual.leave_type_id, today=date(2025, 2, 10))
    march = service.get_balance(actor=employee, leave_type_id=annual.leave_type_id, today=FIXED_DAY)
    assert march.balance == Decimal("2")


def test_insufficient_balance_blocks_paid_leave(service, employee, annual):
    with pytest.raises(ValidationError, match="Insufficient"):
        service.create_leave_request(
            actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-06"
        )


def test_unpaid_leave_skips_balance_check(service, employee, unpaid):
    req = service.create_leave_request(
        actor=employee, leave_type_id=unpaid.leave_type_id, start_date="2025-03-04", end_date="2025-03-06"
    )
    assert req.days == Decimal("3")
    assert req.status == ApprovalStatus.PENDING


def test_overlapping_requests_conflict(service, employee, annual, no_accrual):
    service.create_leave_request(
        actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-06"
    )
    with pytest.raises(ConflictError):
        service.create_leave_request(
            actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-06", end_date="2025-03-07"
        )


def test_range_without_working_days_is_rejected(service, employee, unpaid):
    # 2025-03-03 is a Monday, the weekly non-working day.
    with pytest.raises(ValidationError):
        service.create_leave_request(
            actor=employee, leave_type_id=unpaid.leave_type_id, start_date="2025-03-03", end_date="2025-03-03"
        )


def test_attachment_required_when_type_demands_it(service, employee, leave_repo):
    sick = leave_repo.add_type(code="SICK", name="Sick leave", is_paid=False, requires_attachment=True)
    with pytest.raises(ValidationError, match="attachment"):
        service.create_leave_request(
            actor=employee, leave_type_id=sick.leave_type_id, start_date="2025-03-04", end_date="2025-03-04"
        )
    req = service.create_leave_request(
        actor=employee,
        leave_type_id=sick.leave_type_id,
        start_date="2025-03-04",
        end_date="2025-03-04",
        attachment_url="https://files.example.com/note.pdf",
    )
    assert req.attachment_url == "https://files.example.com/note.pdf"


def test_approval_debits_balance(service, employee, manager, annual, no_accrual, audit_sink):
    req = service.create_leave_request(
        actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-06"
    )
    approved = service.approve_leave_request(actor=manager, request_id=req.request_id)
    assert approved.status == ApprovalStatus.APPROVED
    assert approved.approved_by == manager.user_id

    balance = service.get_balance(actor=employee, leave_type_id=annual.leave_type_id)
    assert balance.used == Decimal("3")
    assert balance.balance == Decimal("9")
    assert [e.action for e in audit_sink.events] == [AuditAction.CREATE, AuditAction.APPROVE]


def test_manager_leave_is_decided_by_owner_only(service, manager, owner, annual, no_accrual):
    req = service.create_leave_request(
        actor=manager, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-04"
    )
    assert req.requester_role == Role.MANAGER
    with pytest.raises(AuthorizationError):
        service.approve_leave_request(actor=manager, request_id=req.request_id)
    assert service.approve_leave_request(actor=owner, request_id=req.request_id).status == ApprovalStatus.APPROVED


def test_escalation_follows_role_at_filing_time(service, directory, employee, manager, unpaid):
    req = service.create_leave_request(
        actor=employee, leave_type_id=unpaid.leave_type_id, start_date="2025-03-04", end_date="2025-03-04"
    )
    promoted = dataclasses.replace(directory.employees[employee.employee_id], role=Role.MANAGER)
    directory.employees[employee.employee_id] = promoted

    assert req.requester_role == Role.EMPLOYEE
    assert service.approve_leave_request(actor=manager, request_id=req.request_id).status == ApprovalStatus.APPROVED


def test_rejection_needs_reason_and_leaves_balance_alone(service, employee, manager, annual, no_accrual):
    req = service.create_leave_request(
        actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-04"
    )
    with pytest.raises(ValidationError):
        service.reject_leave_request(actor=manager, request_id=req.request_id, reason="")
    rejected = service.reject_leave_request(actor=manager, request_id=req.request_id, reason="Peak season")
    assert rejected.rejected_reason == "Peak season"
    assert service.get_balance(actor=employee, leave_type_id=annual.leave_type_id).used == Decimal("0")
    with pytest.raises(ConflictError):
        service.approve_leave_request(actor=manager, request_id=req.request_id)


def test_requester_updates_pending_request_without_self_overlap(service, employee, manager, annual, no_accrual):
    req = service.create_leave_request(
        actor=employee, leave_type_id=annual.leave_type_id, start_date="2025-03-04", end_date="2025-03-05"
    )
    with pytest.raises(AuthorizationError):
        service.update_leave_request(actor=manager, request_id=req.request_id, end_date="2025-03-06")

    updated = service.update_leave_request(actor=employee, request_id=req.request_id, end_date="2025-03-06")
    assert updated.days == Decimal("3")

    service.delete_leave_request(actor=employee, request_id=req.request_id)
    assert service.list_leave_requests(actor=employee) == []


def test_manual_quota_is_kept_as_set(service, owner, employee, annual, add_policy):
    add_policy(PolicyType.LEAVE_POLICY, {"manualQuota": True})
    service.set_manual_quota(
        actor=owner, employee_id=employee.employee_id, leave_type_id=annual.leave_type_id, balance="5", today=FIXED_DAY
    )
    balance = service.get_balance(actor=employee, leave_type_id=annual.leave_type_id, today=FIXED_DAY)
    assert balance.balance == Decimal("5")

    with pytest.raises(AuthorizationError):
        service.set_manual_quota(
            actor=employee, employee_id=employee.employee_id, leave_type_id=annual.leave_type_id, balance="50"
        )


def test_leave_type_updates(service, owner, manager, annual):
    updated = service.update_leave_type(
        actor=owner, leave_type_id=annual.leave_type_id, changes={"max_balance": "20", "name": "Holiday"}
    )
    assert updated.max_balance == Decimal("20")
    assert updated.name == "Holiday"

    with pytest.raises(ValidationError):
        service.update_leave_type(actor=owner, leave_type_id=annual.leave_type_id, changes={"code": "X"})
    with pytest.raises(AuthorizationError):
        service.update_leave_type(actor=manager, leave_type_id=annual.leave_type_id, changes={"name": "X"})


def test_inactive_types_are_hidden_and_not_bookable(service, owner, employee, unpaid):
    service.update_leave_type(actor=owner, leave_type_id=unpaid.leave_type_id, changes={"is_active": False})
    assert service.list_leave_types(actor=employee) == []
    assert len(service.list_leave_types(actor=employee, include_inactive=True)) == 1
    with pytest.raises(ValidationError):
        service.create_leave_request(
            actor=employee, leave_type_id=unpaid.leave_type_id, start_date="2025-03-04", end_date="2025-03-04"
        )
