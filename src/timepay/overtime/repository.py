from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, CompensationType, Role
from .model import OvertimeRequest


class OvertimeRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def find_active(
        self,
        *,
        employee_id: int,
        ot_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[OvertimeRequest]:
        """The PENDING or APPROVED request of the employee for that day, if any."""

        raise NotImplementedError

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        ot_date: date,
        duration_minutes: int,
        reason: Optional[str],
        compensation_type: CompensationType,
        calculated_amount: Decimal,
        requested_by: int,
        requester_role: Role,
    ) -> OvertimeRequest:
        raise NotImplementedError

    def update_pending(self, request: OvertimeRequest) -> bool:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_by: int,
        calculated_amount: Optional[Decimal] = None,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        """Conditional PENDING -> status transition; False when the request was no longer pending."""

        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError
