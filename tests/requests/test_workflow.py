import pytest

from timepay.core.context import Actor
from timepay.core.enums import ApprovalStatus, Role
from timepay.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from timepay.employees.model import Employee
from timepay.requests.workflow import authorize_decision, ensure_can_view, ensure_pending, ensure_requester

REPORT = Employee(employee_id=3, company_id=1, user_id=3, full_name="Erin", role=Role.EMPLOYEE, manager_id=2)
MANAGER = Actor(user_id=2, role=Role.MANAGER, company_id=1, employee_id=2)
OTHER_MANAGER = Actor(user_id=5, role=Role.MANAGER, company_id=1, employee_id=5)
OWNER = Actor(user_id=1, role=Role.OWNER, company_id=1, employee_id=1)
FOREIGN_OWNER = Actor(user_id=9, role=Role.OWNER, company_id=2, employee_id=9)


def test_direct_manager_decides_employee_requests():
    authorize_decision(MANAGER, subject=REPORT, requester_role=Role.EMPLOYEE)
    with pytest.raises(AuthorizationError):
        authorize_decision(OTHER_MANAGER, subject=REPORT, requester_role=Role.EMPLOYEE)


def test_manager_requests_are_owner_only():
    with pytest.raises(AuthorizationError):
        authorize_decision(MANAGER, subject=REPORT, requester_role=Role.MANAGER)
    authorize_decision(OWNER, subject=REPORT, requester_role=Role.MANAGER)


def test_other_company_looks_like_missing():
    with pytest.raises(NotFoundError):
        authorize_decision(FOREIGN_OWNER, subject=REPORT, requester_role=Role.EMPLOYEE)
    with pytest.raises(NotFoundError):
        ensure_can_view(FOREIGN_OWNER, REPORT)


def test_view_access():
    assert ensure_can_view(OWNER, REPORT) is REPORT
    assert ensure_can_view(MANAGER, REPORT) is REPORT
    with pytest.raises(AuthorizationError):
        ensure_can_view(OTHER_MANAGER, REPORT)


def test_pending_and_requester_guards():
    ensure_pending(ApprovalStatus.PENDING)
    with pytest.raises(ConflictError):
        ensure_pending(ApprovalStatus.APPROVED, "update")
    ensure_requester(MANAGER, 2)
    with pytest.raises(AuthorizationError):
        ensure_requester(MANAGER, 3)
