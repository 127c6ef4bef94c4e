from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStatus, Role
from .model import AdjustmentRequest


class AdjustmentRepository(Protocol):
    def get_by_id(self, adjustment_id: int) -> Optional[AdjustmentRequest]:
        raise NotImplementedError

    def get_for_attendance(self, attendance_id: int) -> Optional[AdjustmentRequest]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[AdjustmentRequest]:
        raise NotImplementedError

    def create(
        self,
        *,
        attendance_id: int,
        employee_id: int,
        requested_by: int,
        requester_role: Role,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        reason: str,
    ) -> AdjustmentRequest:
        """One adjustment row per attendance record; a duplicate raises ConflictError."""

        raise NotImplementedError

    def resubmit(
        self,
        *,
        adjustment_id: int,
        requested_by: int,
        requester_role: Role,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        reason: str,
    ) -> bool:
        """REJECTED -> PENDING in place, clearing the rejection. False if it was not REJECTED."""

        raise NotImplementedError

    def update_pending(
        self,
        *,
        adjustment_id: int,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        reason: str,
    ) -> bool:
        raise NotImplementedError

    def decide(
        self,
        *,
        adjustment_id: int,
        status: ApprovalStatus,
        decided_by: int,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        """Conditional PENDING -> status transition. False if no longer PENDING."""

        raise NotImplementedError

    def delete_pending(self, adjustment_id: int) -> bool:
        raise NotImplementedError
