from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditedResult
from ..audit.recorder import AuditRecorder, audited
from ..common.datetime_utils import month_bounds
from ..common.validators import optional_text
from ..core.context import Actor
from ..core.enums import ApprovalStatus, AuditAction, EmploymentType, PayrollStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..core.transactions import NullTransactionManager, TransactionManager
from ..employees.repository import EmployeeDirectory
from ..overtime.repository import OvertimeRepository
from ..policies.service import PolicyService
from ..requests.workflow import ensure_can_view
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PayrollInput, PayrollItem, PayrollRun, PayrollRunDetail, Payslip
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

MIN_PERIOD_YEAR = 2000
MAX_PERIOD_YEAR = 2100

_UNLOCKED = (PayrollStatus.DRAFT, PayrollStatus.PROCESSING)
_PUBLISHED = (PayrollStatus.LOCKED, PayrollStatus.PAID)


def _validate_period(year, month) -> tuple:
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError("Payroll period is invalid")
    if not MIN_PERIOD_YEAR <= year <= MAX_PERIOD_YEAR:
        raise ValidationError(f"Year must be between {MIN_PERIOD_YEAR} and {MAX_PERIOD_YEAR}")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    return year, month


def _run_snapshot(run: PayrollRun) -> dict:
    return {
        "periodYear": run.period_year,
        "periodMonth": run.period_month,
        "status": run.status,
        "totalAmount": run.total_amount,
        "notes": run.notes,
    }


def _item_snapshot(item: PayrollItem) -> dict:
    return {
        "allowances": item.allowances,
        "bonuses": item.bonuses,
        "transportBonus": item.transport_bonus,
        "lunchBonus": item.lunch_bonus,
        "holidayBonus": item.holiday_bonus,
        "deductions": item.deductions,
        "withholdingTax": item.withholding_tax,
        "grossPay": item.gross_pay,
        "netPay": item.net_pay,
    }


class PayrollService:
    """Payroll runs: DRAFT -> LOCKED -> PAID, with manual item overrides while unlocked."""

    def __init__(
        self,
        payroll: PayrollRepository,
        directory: EmployeeDirectory,
        attendance: AttendanceRepository,
        overtime: OvertimeRepository,
        policies: PolicyService,
        *,
        calculator: Optional[PayrollCalculator] = None,
        audit: Optional[AuditRecorder] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._payroll = payroll
        self._directory = directory
        self._attendance = attendance
        self._overtime = overtime
        self._policies = policies
        self._calculator = calculator or StandardPayrollCalculator()
        self._audit = audit or AuditRecorder()
        self._tx = tx or NullTransactionManager()

    @staticmethod
    def _require_owner(actor: Actor) -> None:
        if not actor.is_owner:
            raise AuthorizationError("Only the owner can manage payroll")

    def _get_run(self, actor: Actor, run_id: int) -> PayrollRun:
        run = self._payroll.get_run(int(run_id))
        if not run or run.company_id != actor.company_id:
            raise NotFoundError("Payroll run not found")
        return run

    @staticmethod
    def _ensure_unlocked(run: PayrollRun, verb: str) -> None:
        if run.is_locked:
            raise InvalidStateError(f"Cannot {verb} a locked or paid payroll run")

    def _sum_net(self, run_id: int) -> Decimal:
        return sum((item.net_pay for item in self._payroll.list_items(run_id)), Decimal("0"))

    # -------- Runs --------
    @audited(AuditAction.CREATE, "PayrollRun")
    def create_run(self, *, actor: Actor, year: int, month: int, notes: Optional[str] = None) -> AuditedResult:
        self._require_owner(actor)
        year, month = _validate_period(year, month)
        if self._payroll.find_run(company_id=actor.company_id, year=year, month=month):
            raise ConflictError("Payroll run already exists for this period")

        config = self._policies.payroll_config(actor.company_id)
        start, end = month_bounds(year, month)

        with self._tx.transaction():
            run = self._payroll.create_run(
                company_id=actor.company_id,
                year=year,
                month=month,
                notes=optional_text(notes),
                created_by=actor.user_id,
            )
            total = Decimal("0")
            count = 0
            for employee, employment in self._directory.list_active_with_employment(actor.company_id):
                attendance = self._attendance.list_for_employee(employee.employee_id, start, end)
                if employment.type in (EmploymentType.DAILY, EmploymentType.HOURLY) and not attendance:
                    continue
                overtime = self._overtime.list_for_employee(
                    employee_id=employee.employee_id, start=start, end=end, status=ApprovalStatus.APPROVED
                )
                calculation = self._calculator.calculate(
                    PayrollInput(
                        employee_id=employee.employee_id,
                        period_year=year,
                        period_month=month,
                        employment=employment,
                        attendance=attendance,
                        overtime=overtime,
                        config=config,
                    )
                )
                item = self._payroll.create_item(
                    run_id=run.run_id,
                    employee_id=employee.employee_id,
                    employment=employment,
                    calculation=calculation,
                )
                total += item.net_pay
                count += 1
            self._payroll.set_total(run.run_id, total)

        logger.info("Payroll run %s created for %04d-%02d with %s items", run.run_id, year, month, count)
        created = self._payroll.get_run(run.run_id)
        after = dict(_run_snapshot(created), itemsCount=count)
        return AuditedResult(value=created, entity_id=created.run_id, after=after)

    def list_runs(self, *, actor: Actor) -> Sequence[PayrollRun]:
        if not (actor.is_owner or actor.is_manager):
            raise AuthorizationError("Access denied")
        return self._payroll.list_runs(company_id=actor.company_id)

    def get_run(self, *, actor: Actor, run_id: int) -> PayrollRunDetail:
        if not (actor.is_owner or actor.is_manager):
            raise AuthorizationError("Access denied")
        run = self._get_run(actor, run_id)
        return PayrollRunDetail(run=run, items=self._payroll.list_items(run.run_id))

    @audited(AuditAction.UPDATE, "PayrollRun")
    def update_run(
        self,
        *,
        actor: Actor,
        run_id: int,
        year: Optional[int] = None,
        month: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> AuditedResult:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        self._ensure_unlocked(run, "update")

        new_year, new_month = _validate_period(
            year if year is not None else run.period_year,
            month if month is not None else run.period_month,
        )
        if (new_year, new_month) != (run.period_year, run.period_month):
            if self._payroll.find_run(company_id=actor.company_id, year=new_year, month=new_month):
                raise ConflictError("Payroll run already exists for this period")

        changed = dataclasses.replace(
            run,
            period_year=new_year,
            period_month=new_month,
            notes=optional_text(notes) if notes is not None else run.notes,
        )
        if not self._payroll.update_run(changed):
            raise InvalidStateError("Cannot update a locked or paid payroll run")
        return AuditedResult(value=changed, entity_id=run.run_id, before=_run_snapshot(run), after=_run_snapshot(changed))

    @audited(AuditAction.DELETE, "PayrollRun")
    def delete_run(self, *, actor: Actor, run_id: int) -> AuditedResult:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        self._ensure_unlocked(run, "delete")
        if not self._payroll.delete_run(run.run_id):
            raise InvalidStateError("Cannot delete a locked or paid payroll run")
        return AuditedResult(value=None, entity_id=run.run_id, before=_run_snapshot(run))

    @audited(AuditAction.UPDATE, "PayrollItem")
    def update_item(
        self,
        *,
        actor: Actor,
        run_id: int,
        item_id: int,
        overrides: Mapping[str, Any],
    ) -> AuditedResult:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        self._ensure_unlocked(run, "update")
        item = self._payroll.get_item(int(item_id))
        if not item or item.run_id != run.run_id:
            raise NotFoundError("Payroll item not found")

        changed = self._calculator.apply_overrides(item, overrides)
        with self._tx.transaction():
            self._payroll.update_item(changed)
            self._payroll.set_total(run.run_id, self._sum_net(run.run_id))
        return AuditedResult(value=changed, entity_id=item.item_id, before=_item_snapshot(item), after=_item_snapshot(changed))

    def recalculate_total(self, *, actor: Actor, run_id: int) -> PayrollRun:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        self._ensure_unlocked(run, "recalculate")
        self._payroll.set_total(run.run_id, self._sum_net(run.run_id))
        return self._payroll.get_run(run.run_id)

    @audited(AuditAction.LOCK, "PayrollRun")
    def lock_run(self, *, actor: Actor, run_id: int) -> AuditedResult:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        if run.status not in _UNLOCKED:
            raise InvalidStateError("Only draft or processing payroll runs can be locked")
        items = self._payroll.list_items(run.run_id)
        if not items:
            raise ValidationError("Cannot lock a payroll run with no items")

        total = sum((item.net_pay for item in items), Decimal("0"))
        if not self._payroll.transition(
            run_id=run.run_id,
            from_statuses=_UNLOCKED,
            to_status=PayrollStatus.LOCKED,
            actor_id=actor.user_id,
            total=total,
        ):
            raise InvalidStateError("Payroll run was changed concurrently")
        locked = self._payroll.get_run(run.run_id)
        return AuditedResult(value=locked, entity_id=run.run_id, before=_run_snapshot(run), after=_run_snapshot(locked))

    @audited(AuditAction.PAY, "PayrollRun")
    def mark_paid(self, *, actor: Actor, run_id: int) -> AuditedResult:
        self._require_owner(actor)
        run = self._get_run(actor, run_id)
        if run.status != PayrollStatus.LOCKED:
            raise InvalidStateError("Only locked payroll runs can be marked as paid")
        if not self._payroll.transition(
            run_id=run.run_id,
            from_statuses=(PayrollStatus.LOCKED,),
            to_status=PayrollStatus.PAID,
            actor_id=actor.user_id,
        ):
            raise InvalidStateError("Payroll run was changed concurrently")
        paid = self._payroll.get_run(run.run_id)
        return AuditedResult(value=paid, entity_id=run.run_id, before=_run_snapshot(run), after=_run_snapshot(paid))

    # -------- Payslips --------
    def get_payslip(self, *, actor: Actor, run_id: int, employee_id: Optional[int] = None) -> Payslip:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        run = self._get_run(actor, run_id)
        item = self._payroll.find_item(run_id=run.run_id, employee_id=employee.employee_id)
        if not item:
            raise NotFoundError("Payslip not found")
        return Payslip(run=run, employee=employee, item=item)

    def list_employee_payslips(self, *, actor: Actor, employee_id: Optional[int] = None) -> Sequence[Payslip]:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        return [
            Payslip(run=run, employee=employee, item=item)
            for run, item in self._payroll.list_employee_items(employee_id=employee.employee_id, statuses=_PUBLISHED)
        ]
