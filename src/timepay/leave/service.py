from __future__ import annotations

import dataclasses
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from ..audit.model import AuditedResult
from ..audit.recorder import AuditRecorder, audited
from ..common.datetime_utils import BusinessCalendar, DateInput, count_leave_days, previous_period
from ..common.validators import optional_text, require_non_negative_decimal
from ..core.constants import CARRYOVER_MONTH, CARRYOVER_REFERENCE_MONTH
from ..core.context import Actor
from ..core.enums import ApprovalStatus, AuditAction
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.transactions import NullTransactionManager, TransactionManager
from ..employees.repository import EmployeeDirectory
from ..policies.service import PolicyService
from ..requests.workflow import (
    authorize_decision,
    ensure_can_view,
    ensure_pending,
    ensure_requester,
    ensure_same_company,
    require_reason,
)
from .accrual import accrue, fixed_allowance
from .model import LeaveBalance, LeaveRequest, LeaveType
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_EDITABLE_TYPE_FIELDS = frozenset(
    {
        "name",
        "is_paid",
        "max_balance",
        "accrual_rate",
        "carryover_allowed",
        "carryover_max",
        "expires_after_months",
        "requires_attachment",
        "is_active",
    }
)
_DECIMAL_TYPE_FIELDS = frozenset({"max_balance", "accrual_rate", "carryover_max"})


def _request_snapshot(req: LeaveRequest) -> dict:
    return {
        "leaveTypeId": req.leave_type_id,
        "startDate": req.start_date,
        "endDate": req.end_date,
        "days": req.days,
        "reason": req.reason,
        "status": req.status,
    }


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        directory: EmployeeDirectory,
        policies: PolicyService,
        calendar: BusinessCalendar,
        *,
        audit: Optional[AuditRecorder] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._leaves = leaves
        self._directory = directory
        self._policies = policies
        self._calendar = calendar
        self._audit = audit or AuditRecorder()
        self._tx = tx or NullTransactionManager()

    # -------- Leave types --------
    def _get_type(self, actor: Actor, leave_type_id: int) -> LeaveType:
        leave_type = self._leaves.get_type(int(leave_type_id))
        if not leave_type or leave_type.company_id != actor.company_id:
            raise NotFoundError("Leave type not found")
        return leave_type

    def list_leave_types(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[LeaveType]:
        return self._leaves.list_types(company_id=actor.company_id, include_inactive=include_inactive)

    @audited(AuditAction.UPDATE, "LeaveType")
    def update_leave_type(self, *, actor: Actor, leave_type_id: int, changes: dict) -> AuditedResult:
        """Partial update. Quota changes take effect the next time a balance is read."""
        if not actor.is_owner:
            raise AuthorizationError("Only the owner can change leave types")
        leave_type = self._get_type(actor, leave_type_id)

        unknown = set(changes) - _EDITABLE_TYPE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown leave type fields: {', '.join(sorted(unknown))}")
        cleaned: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _DECIMAL_TYPE_FIELDS and value is not None:
                value = require_non_negative_decimal(value, key)
            elif key == "expires_after_months" and value is not None:
                value = int(value)
            elif key == "name":
                value = (value or "").strip() or leave_type.name
            cleaned[key] = value

        updated = self._leaves.save_type(dataclasses.replace(leave_type, **cleaned))
        return AuditedResult(value=updated, entity_id=updated.leave_type_id, before=leave_type, after=updated)

    # -------- Balances --------
    def _current_period(self, today: Optional[date] = None) -> tuple:
        today = today or self._calendar.today_business_day()
        return today.year, today.month

    def _compute_balance(self, employee_id: int, leave_type: LeaveType, year: int, month: int) -> LeaveBalance:
        policy = self._policies.leave_policy(leave_type.company_id)
        current = self._leaves.get_balance(
            employee_id=employee_id, leave_type_id=leave_type.leave_type_id, year=year, month=month
        )
        if policy.manual_quota and current is not None:
            return current

        used = current.used if current is not None else ZERO
        if policy.accrual_disabled:
            result = fixed_allowance(leave_type)
        else:
            prev_year, prev_month = previous_period(year, month)
            previous = self._leaves.get_balance(
                employee_id=employee_id, leave_type_id=leave_type.leave_type_id, year=prev_year, month=prev_month
            )
            reference = None
            if month == CARRYOVER_MONTH:
                december = self._leaves.get_balance(
                    employee_id=employee_id,
                    leave_type_id=leave_type.leave_type_id,
                    year=year - 1,
                    month=CARRYOVER_REFERENCE_MONTH,
                )
                reference = december.balance if december is not None else None
            result = accrue(leave_type, previous, year, month, reference)

        return self._leaves.upsert_balance(
            LeaveBalance(
                employee_id=employee_id,
                leave_type_id=leave_type.leave_type_id,
                period_year=year,
                period_month=month,
                balance=result.available(used),
                accrued=result.accrued,
                used=used,
                carried_over=result.carried_over,
                expired=result.expired,
            )
        )

    def get_balance(
        self,
        *,
        actor: Actor,
        leave_type_id: int,
        employee_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> LeaveBalance:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        leave_type = self._get_type(actor, leave_type_id)
        year, month = self._current_period(today)
        return self._compute_balance(employee.employee_id, leave_type, year, month)

    @audited(AuditAction.UPDATE, "LeaveBalance")
    def set_manual_quota(
        self,
        *,
        actor: Actor,
        employee_id: int,
        leave_type_id: int,
        balance: Any,
        today: Optional[date] = None,
    ) -> AuditedResult:
        if not actor.is_owner:
            raise AuthorizationError("Only the owner can set leave quotas")
        employee = ensure_same_company(actor, self._directory.get_employee(int(employee_id)))
        leave_type = self._get_type(actor, leave_type_id)
        amount = require_non_negative_decimal(balance, "balance")
        year, month = self._current_period(today)

        before = self._leaves.get_balance(
            employee_id=employee.employee_id, leave_type_id=leave_type.leave_type_id, year=year, month=month
        )
        saved = self._leaves.upsert_balance(
            LeaveBalance(
                employee_id=employee.employee_id,
                leave_type_id=leave_type.leave_type_id,
                period_year=year,
                period_month=month,
                balance=amount,
            )
        )
        return AuditedResult(value=saved, entity_id=employee.employee_id, before=before, after=saved)

    # -------- Requests --------
    def _validated_range(self, start: DateInput, end: DateInput) -> tuple:
        start_day = self._calendar.normalize_to_business_day(start)
        end_day = self._calendar.normalize_to_business_day(end)
        days = count_leave_days(start_day, end_day)
        if days == 0:
            raise ValidationError("The selected range contains no working days")
        return start_day, end_day, Decimal(days)

    def _ensure_bookable(
        self,
        employee_id: int,
        leave_type: LeaveType,
        start_day: date,
        end_day: date,
        days: Decimal,
        *,
        attachment_url: Optional[str],
        exclude_request_id: Optional[int] = None,
    ) -> None:
        if not leave_type.is_active:
            raise ValidationError("Leave type is not active")
        if leave_type.requires_attachment and not attachment_url:
            raise ValidationError("This leave type requires an attachment")
        if leave_type.is_paid:
            year, month = self._current_period()
            balance = self._compute_balance(employee_id, leave_type, year, month)
            if balance.balance < days:
                raise ValidationError("Insufficient leave balance")
        overlapping = self._leaves.find_overlapping(
            employee_id=employee_id, start=start_day, end=end_day, exclude_request_id=exclude_request_id
        )
        if overlapping:
            raise ConflictError("Overlapping leave request exists")

    def _get_request(self, actor: Actor, request_id: int) -> LeaveRequest:
        req = self._leaves.get_request(int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        employee = self._directory.get_employee(req.employee_id)
        if not employee or employee.company_id != actor.company_id:
            raise NotFoundError("Leave request not found")
        return req

    @audited(AuditAction.CREATE, "LeaveRequest")
    def create_leave_request(
        self,
        *,
        actor: Actor,
        leave_type_id: int,
        start_date: DateInput,
        end_date: DateInput,
        reason: Optional[str] = None,
        attachment_url: Optional[str] = None,
    ) -> AuditedResult:
        if actor.employee_id is None:
            raise ValidationError("Your account has no employee profile")
        employee = ensure_same_company(actor, self._directory.get_employee(actor.employee_id))
        leave_type = self._get_type(actor, leave_type_id)
        start_day, end_day, days = self._validated_range(start_date, end_date)
        attachment_url = optional_text(attachment_url)

        self._ensure_bookable(employee.employee_id, leave_type, start_day, end_day, days, attachment_url=attachment_url)
        req = self._leaves.create_request(
            employee_id=employee.employee_id,
            leave_type_id=leave_type.leave_type_id,
            start_date=start_day,
            end_date=end_day,
            days=days,
            reason=optional_text(reason),
            attachment_url=attachment_url,
            requested_by=actor.user_id,
            requester_role=actor.role,
        )
        return AuditedResult(value=req, entity_id=req.request_id, after=_request_snapshot(req))

    def list_leave_requests(self, *, actor: Actor, employee_id: Optional[int] = None) -> Sequence[LeaveRequest]:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        return self._leaves.list_requests(employee_id=employee.employee_id)

    @audited(AuditAction.APPROVE, "LeaveRequest")
    def approve_leave_request(self, *, actor: Actor, request_id: int) -> AuditedResult:
        req = self._get_request(actor, request_id)
        subject = self._directory.get_employee(req.employee_id)
        authorize_decision(actor, subject=subject, requester_role=req.requester_role)
        ensure_pending(req.status, "approve")
        leave_type = self._get_type(actor, req.leave_type_id)
        year, month = self._current_period()

        with self._tx.transaction():
            if not self._leaves.decide_request(
                request_id=req.request_id, status=ApprovalStatus.APPROVED, decided_by=actor.user_id
            ):
                raise ConflictError("Leave request already processed")
            self._compute_balance(req.employee_id, leave_type, year, month)
            self._leaves.debit_balance(
                employee_id=req.employee_id,
                leave_type_id=req.leave_type_id,
                year=year,
                month=month,
                days=req.days,
            )

        logger.info("Leave request %s approved; %s days debited", req.request_id, req.days)
        approved = self._leaves.get_request(req.request_id)
        return AuditedResult(
            value=approved,
            entity_id=req.request_id,
            before={"status": req.status},
            after={"status": ApprovalStatus.APPROVED, "approvedBy": actor.user_id},
        )

    @audited(AuditAction.REJECT, "LeaveRequest")
    def reject_leave_request(self, *, actor: Actor, request_id: int, reason: str) -> AuditedResult:
        req = self._get_request(actor, request_id)
        subject = self._directory.get_employee(req.employee_id)
        authorize_decision(actor, subject=subject, requester_role=req.requester_role)
        ensure_pending(req.status, "reject")
        reason = require_reason(reason)

        if not self._leaves.decide_request(
            request_id=req.request_id,
            status=ApprovalStatus.REJECTED,
            decided_by=actor.user_id,
            rejected_reason=reason,
        ):
            raise ConflictError("Leave request already processed")

        return AuditedResult(
            value=self._leaves.get_request(req.request_id),
            entity_id=req.request_id,
            before={"status": req.status},
            after={"status": ApprovalStatus.REJECTED, "rejectedReason": reason},
            reason=reason,
        )

    @audited(AuditAction.UPDATE, "LeaveRequest")
    def update_leave_request(
        self,
        *,
        actor: Actor,
        request_id: int,
        leave_type_id: Optional[int] = None,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None,
        reason: Optional[str] = None,
        attachment_url: Optional[str] = None,
    ) -> AuditedResult:
        req = self._get_request(actor, request_id)
        ensure_requester(actor, req.requested_by, "update")
        ensure_pending(req.status, "update")

        leave_type = self._get_type(actor, leave_type_id if leave_type_id is not None else req.leave_type_id)
        start_day, end_day, days = self._validated_range(
            start_date if start_date is not None else req.start_date,
            end_date if end_date is not None else req.end_date,
        )
        new_attachment = optional_text(attachment_url) if attachment_url is not None else req.attachment_url
        self._ensure_bookable(
            req.employee_id,
            leave_type,
            start_day,
            end_day,
            days,
            attachment_url=new_attachment,
            exclude_request_id=req.request_id,
        )

        changed = dataclasses.replace(
            req,
            leave_type_id=leave_type.leave_type_id,
            start_date=start_day,
            end_date=end_day,
            days=days,
            reason=optional_text(reason) if reason is not None else req.reason,
            attachment_url=new_attachment,
        )
        if not self._leaves.update_pending_request(changed):
            raise ConflictError("Can only update pending requests")
        return AuditedResult(
            value=changed,
            entity_id=req.request_id,
            before=_request_snapshot(req),
            after=_request_snapshot(changed),
        )

    @audited(AuditAction.DELETE, "LeaveRequest")
    def delete_leave_request(self, *, actor: Actor, request_id: int) -> AuditedResult:
        req = self._get_request(actor, request_id)
        ensure_requester(actor, req.requested_by, "delete")
        ensure_pending(req.status, "delete")

        if not self._leaves.delete_pending_request(req.request_id):
            raise ConflictError("Can only delete pending requests")
        return AuditedResult(value=None, entity_id=req.request_id, before=_request_snapshot(req))
