from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, Role
from .model import LeaveBalance, LeaveRequest, LeaveType


class LeaveRepository(Protocol):
    # Leave types
    def list_types(self, *, company_id: int, include_inactive: bool = False) -> Sequence[LeaveType]:
        raise NotImplementedError

    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def save_type(self, leave_type: LeaveType) -> LeaveType:
        raise NotImplementedError

    # Balances
    def get_balance(self, *, employee_id: int, leave_type_id: int, year: int, month: int) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def upsert_balance(self, balance: LeaveBalance) -> LeaveBalance:
        """Insert or replace the row for (employee, leave type, year, month)."""

        raise NotImplementedError

    def debit_balance(self, *, employee_id: int, leave_type_id: int, year: int, month: int, days: Decimal) -> bool:
        raise NotImplementedError

    # Requests
    def get_request(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(self, *, employee_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start: date,
        end: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[LeaveRequest]:
        """A PENDING or APPROVED request of the employee intersecting [start, end]."""

        raise NotImplementedError

    def create_request(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        days: Decimal,
        reason: Optional[str],
        attachment_url: Optional[str],
        requested_by: int,
        requester_role: Role,
    ) -> LeaveRequest:
        raise NotImplementedError

    def update_pending_request(self, request: LeaveRequest) -> bool:
        raise NotImplementedError

    def decide_request(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_by: int,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_pending_request(self, request_id: int) -> bool:
        raise NotImplementedError
