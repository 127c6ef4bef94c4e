from __future__ import annotations

import dataclasses
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest

from timepay.attendance.model import AttendanceRecord
from timepay.audit.recorder import AuditRecorder
from timepay.common.datetime_utils import BusinessCalendar
from timepay.core.context import Actor
from timepay.core.enums import ApprovalStatus, EmploymentType, PayrollStatus, Role
from timepay.employees.model import Company, Employee, Employment
from timepay.leave.model import LeaveBalance, LeaveRequest, LeaveType
from timepay.overtime.model import OvertimeRequest
from timepay.payroll.model import PayrollItem, PayrollRun
from timepay.policies.model import Policy
from timepay.policies.service import PolicyService
from timepay.requests.model import AdjustmentRequest
from timepay.schedules.model import ShiftSchedule
from timepay.schedules.service import ScheduleService

COMPANY_ID = 1
OWNER_ID = 1
MANAGER_ID = 2
EMPLOYEE_ID = 3
OUTSIDER_ID = 4

DECIDED_AT = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Ids:
    def __init__(self):
        self._next = 1

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value


# -------- Directory --------
class InMemoryDirectory:
    def __init__(self):
        self.companies: dict[int, Company] = {}
        self.employees: dict[int, Employee] = {}
        self.employments: dict[int, Employment] = {}
        self.holidays: set[tuple[int, date]] = set()

    def get_company(self, company_id):
        return self.companies.get(int(company_id))

    def get_employee(self, employee_id):
        return self.employees.get(int(employee_id))

    def get_employment(self, employee_id):
        return self.employments.get(int(employee_id))

    def list_direct_reports(self, manager_id):
        return [e for e in self.employees.values() if e.manager_id == int(manager_id)]

    def list_active_with_employment(self, company_id):
        return [
            (e, self.employments[e.employee_id])
            for e in sorted(self.employees.values(), key=lambda e: e.employee_id)
            if e.company_id == int(company_id) and e.is_active and e.employee_id in self.employments
        ]

    def is_public_holiday(self, company_id, day):
        return (int(company_id), day) in self.holidays


# -------- Policies --------
class InMemoryPolicies:
    def __init__(self):
        self._ids = _Ids()
        self.rows: dict[int, Policy] = {}

    def get_active(self, *, company_id, policy_type):
        for p in self.rows.values():
            if p.company_id == company_id and p.type == policy_type and p.is_active:
                return p
        return None

    def get_by_id(self, *, policy_id):
        return self.rows.get(int(policy_id))

    def list_for_company(self, *, company_id):
        return [p for p in self.rows.values() if p.company_id == company_id]

    def latest_version(self, *, company_id, policy_type):
        return max((p.version for p in self.rows.values() if p.company_id == company_id and p.type == policy_type), default=0)

    def deactivate_all(self, *, company_id, policy_type):
        for pid, p in list(self.rows.items()):
            if p.company_id == company_id and p.type == policy_type:
                self.rows[pid] = dataclasses.replace(p, is_active=False)

    def create(self, *, company_id, policy_type, version, config, is_active):
        policy = Policy(
            policy_id=self._ids.next(),
            company_id=company_id,
            type=policy_type,
            version=version,
            is_active=is_active,
            config=dict(config),
        )
        self.rows[policy.policy_id] = policy
        return policy

    def update(self, *, policy_id, config=None, is_active=None):
        policy = self.rows[int(policy_id)]
        changes = {}
        if config is not None:
            changes["config"] = dict(config)
        if is_active is not None:
            changes["is_active"] = bool(is_active)
        self.rows[policy.policy_id] = dataclasses.replace(policy, **changes)
        return self.rows[policy.policy_id]


# -------- Schedules --------
class InMemorySchedules:
    def __init__(self):
        self._ids = _Ids()
        self.rows: dict[int, ShiftSchedule] = {}

    def get_by_id(self, *, schedule_id):
        return self.rows.get(int(schedule_id))

    def find_by_slot(self, *, employee_id, slot):
        for s in self.rows.values():
            if s.employee_id == employee_id and s.slot == slot:
                return s
        return None

    def list_active(self, *, company_id, employee_id=None, start=None, end=None):
        return [
            s
            for s in self.rows.values()
            if s.company_id == company_id and s.is_active and (employee_id is None or s.employee_id == employee_id)
        ]

    def create(self, *, company_id, employee_id, slot, start_time, end_time, is_active, notes, created_by):
        schedule = ShiftSchedule(
            schedule_id=self._ids.next(),
            employee_id=employee_id,
            company_id=company_id,
            slot=slot,
            start_time=start_time,
            end_time=end_time,
            is_active=is_active,
            notes=notes,
        )
        self.rows[schedule.schedule_id] = schedule
        return schedule

    def update(self, *, schedule, updated_by):
        self.rows[schedule.schedule_id] = schedule
        return schedule

    def delete(self, *, schedule_id):
        return self.rows.pop(int(schedule_id), None) is not None


# -------- Attendance --------
class InMemoryAttendance:
    def __init__(self):
        self._ids = _Ids()
        self.rows: dict[int, AttendanceRecord] = {}

    def add(self, **fields) -> AttendanceRecord:
        record = AttendanceRecord(attendance_id=self._ids.next(), **fields)
        self.rows[record.attendance_id] = record
        return record

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_for_employee_and_date(self, employee_id, work_date):
        for r in self.rows.values():
            if r.employee_id == employee_id and r.work_date == work_date:
                return r
        return None

    def list_for_employee(self, employee_id, start, end):
        return sorted(
            (r for r in self.rows.values() if r.employee_id == employee_id and start <= r.work_date <= end),
            key=lambda r: r.work_date,
        )

    def create_clock_in(self, *, employee_id, work_date, clock_in, location, status, notes, outside_schedule, late_minutes):
        return self.add(
            employee_id=employee_id,
            work_date=work_date,
            status=status,
            clock_in=clock_in,
            clock_in_location=location,
            notes=notes,
            outside_schedule=outside_schedule,
            late_minutes=late_minutes,
        )

    def set_clock_in(self, *, attendance_id, clock_in, location, status, notes, outside_schedule, late_minutes):
        record = self.rows[attendance_id]
        if record.clock_in is not None:
            return False
        self.rows[attendance_id] = dataclasses.replace(
            record,
            clock_in=clock_in,
            clock_in_location=location,
            status=status,
            notes=notes,
            outside_schedule=outside_schedule,
            late_minutes=late_minutes,
        )
        return True

    def set_clock_out(self, *, attendance_id, clock_out, location, work_duration, notes, outside_schedule, early_out_minutes):
        record = self.rows[attendance_id]
        if record.clock_out is not None:
            return False
        self.rows[attendance_id] = dataclasses.replace(
            record,
            clock_out=clock_out,
            clock_out_location=location,
            work_duration=work_duration,
            notes=notes,
            outside_schedule=outside_schedule,
            early_out_minutes=early_out_minutes,
        )
        return True

    def apply_adjustment(self, *, attendance_id, clock_in, clock_out, work_duration, adjustment_request_id):
        record = self.rows[attendance_id]
        self.rows[attendance_id] = dataclasses.replace(
            record,
            clock_in=clock_in,
            clock_out=clock_out,
            work_duration=work_duration,
            adjustment_request_id=adjustment_request_id,
        )
        return self.rows[attendance_id]


# -------- Adjustments --------
class InMemoryAdjustments:
    def __init__(self):
        self._ids = _Ids()
        self.rows: dict[int, AdjustmentRequest] = {}

    def get_by_id(self, adjustment_id):
        return self.rows.get(int(adjustment_id))

    def get_for_attendance(self, attendance_id):
        for a in self.rows.values():
            if a.attendance_id == attendance_id:
                return a
        return None

    def list_for_employee(self, employee_id):
        return [a for a in self.rows.values() if a.employee_id == employee_id]

    def create(self, *, attendance_id, employee_id, requested_by, requester_role, clock_in, clock_out, reason):
        adj = AdjustmentRequest(
            adjustment_id=self._ids.next(),
            attendance_id=attendance_id,
            employee_id=employee_id,
            requested_by=requested_by,
            requester_role=requester_role,
            reason=reason,
            status=ApprovalStatus.PENDING,
            clock_in=clock_in,
            clock_out=clock_out,
        )
        self.rows[adj.adjustment_id] = adj
        return adj

    def resubmit(self, *, adjustment_id, requested_by, requester_role, clock_in, clock_out, reason):
        adj = self.rows[adjustment_id]
        if adj.status != ApprovalStatus.REJECTED:
            return False
        self.rows[adjustment_id] = dataclasses.replace(
            adj,
            requested_by=requested_by,
            requester_role=requester_role,
            clock_in=clock_in,
            clock_out=clock_out,
            reason=reason,
            status=ApprovalStatus.PENDING,
            approved_by=None,
            decided_at=None,
            rejected_reason=None,
        )
        return True

    def update_pending(self, *, adjustment_id, clock_in, clock_out, reason):
        adj = self.rows[adjustment_id]
        if adj.status != ApprovalStatus.PENDING:
            return False
        self.rows[adjustment_id] = dataclasses.replace(adj, clock_in=clock_in, clock_out=clock_out, reason=reason)
        return True

    def decide(self, *, adjustment_id, status, decided_by, rejected_reason=None):
        adj = self.rows[adjustment_id]
        if adj.status != ApprovalStatus.PENDING:
            return False
        self.rows[adjustment_id] = dataclasses.replace(
            adj, status=status, approved_by=decided_by, decided_at=DECIDED_AT, rejected_reason=rejected_reason
        )
        return True

    def delete_pending(self, adjustment_id):
        adj = self.rows.get(adjustment_id)
        if not adj or adj.status != ApprovalStatus.PENDING:
            return False
        del self.rows[adjustment_id]
        return True


# -------- Leave --------
class InMemoryLeave:
    def __init__(self):
        self._ids = _Ids()
        self.types: dict[int, LeaveType] = {}
        self.balances: dict[tuple, LeaveBalance] = {}
        self.requests: dict[int, LeaveRequest] = {}

    def add_type(self, **fields) -> LeaveType:
        leave_type = LeaveType(leave_type_id=self._ids.next(), company_id=COMPANY_ID, **fields)
        self.types[leave_type.leave_type_id] = leave_type
        return leave_type

    def list_types(self, *, company_id, include_inactive=False):
        return [t for t in self.types.values() if t.company_id == company_id and (include_inactive or t.is_active)]

    def get_type(self, leave_type_id):
        return self.types.get(int(leave_type_id))

    def save_type(self, leave_type):
        self.types[leave_type.leave_type_id] = leave_type
        return leave_type

    def get_balance(self, *, employee_id, leave_type_id, year, month):
        return self.balances.get((employee_id, leave_type_id, year, month))

    def upsert_balance(self, balance):
        key = (balance.employee_id, balance.leave_type_id, balance.period_year, balance.period_month)
        self.balances[key] = balance
        return balance

    def debit_balance(self, *, employee_id, leave_type_id, year, month, days):
        key = (employee_id, leave_type_id, year, month)
        current = self.balances.get(key)
        if current is None:
            return False
        self.balances[key] = dataclasses.replace(current, balance=current.balance - days, used=current.used + days)
        return True

    def get_request(self, request_id):
        return self.requests.get(int(request_id))

    def list_requests(self, *, employee_id):
        return [r for r in self.requests.values() if r.employee_id == employee_id]

    def find_overlapping(self, *, employee_id, start, end, exclude_request_id=None):
        return [
            r
            for r in self.requests.values()
            if r.employee_id == employee_id
            and r.request_id != exclude_request_id
            and r.status in (ApprovalStatus.PENDING, ApprovalStatus.APPROVED)
            and r.start_date <= end
            and start <= r.end_date
        ]

    def create_request(
        self,
        *,
        employee_id,
        leave_type_id,
        start_date,
        end_date,
        days,
        reason,
        attachment_url,
        requested_by,
        requester_role,
    ):
        req = LeaveRequest(
            request_id=self._ids.next(),
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            start_date=start_date,
            end_date=end_date,
            days=days,
            requested_by=requested_by,
            requester_role=requester_role,
            status=ApprovalStatus.PENDING,
            reason=reason,
            attachment_url=attachment_url,
        )
        self.requests[req.request_id] = req
        return req

    def update_pending_request(self, request):
        current = self.requests.get(request.request_id)
        if not current or current.status != ApprovalStatus.PENDING:
            return False
        self.requests[request.request_id] = request
        return True

    def decide_request(self, *, request_id, status, decided_by, rejected_reason=None):
        req = self.requests[request_id]
        if req.status != ApprovalStatus.PENDING:
            return False
        self.requests[request_id] = dataclasses.replace(
            req, status=status, approved_by=decided_by, decided_at=DECIDED_AT, rejected_reason=rejected_reason
        )
        return True

    def delete_pending_request(self, request_id):
        req = self.requests.get(request_id)
        if not req or req.status != ApprovalStatus.PENDING:
            return False
        del self.requests[request_id]
        return True


# -------- Overtime --------
class InMemoryOvertime:
    def __init__(self):
        self._ids = _Ids()
        self.rows: dict[int, OvertimeRequest] = {}

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def find_active(self, *, employee_id, ot_date, exclude_request_id=None):
        for r in self.rows.values():
            if (
                r.employee_id == employee_id
                and r.ot_date == ot_date
                and r.request_id != exclude_request_id
                and r.status in (ApprovalStatus.PENDING, ApprovalStatus.APPROVED)
            ):
                return r
        return None

    def list_for_employee(self, *, employee_id, start=None, end=None, status=None):
        return [
            r
            for r in self.rows.values()
            if r.employee_id == employee_id
            and (start is None or r.ot_date >= start)
            and (end is None or r.ot_date <= end)
            and (status is None or r.status == status)
        ]

    def create(
        self,
        *,
        employee_id,
        ot_date,
        duration_minutes,
        reason,
        compensation_type,
        calculated_amount,
        requested_by,
        requester_role,
    ):
        req = OvertimeRequest(
            request_id=self._ids.next(),
            employee_id=employee_id,
            ot_date=ot_date,
            duration_minutes=duration_minutes,
            requested_by=requested_by,
            requester_role=requester_role,
            status=ApprovalStatus.PENDING,
            compensation_type=compensation_type,
            calculated_amount=calculated_amount,
            reason=reason,
        )
        self.rows[req.request_id] = req
        return req

    def update_pending(self, request):
        current = self.rows.get(request.request_id)
        if not current or current.status != ApprovalStatus.PENDING:
            return False
        self.rows[request.request_id] = request
        return True

    def decide(self, *, request_id, status, decided_by, calculated_amount=None, rejected_reason=None):
        req = self.rows[request_id]
        if req.status != ApprovalStatus.PENDING:
            return False
        self.rows[request_id] = dataclasses.replace(
            req,
            status=status,
            approved_by=decided_by,
            decided_at=DECIDED_AT,
            rejected_reason=rejected_reason,
            calculated_amount=req.calculated_amount if calculated_amount is None else calculated_amount,
        )
        return True

    def delete_pending(self, request_id):
        req = self.rows.get(request_id)
        if not req or req.status != ApprovalStatus.PENDING:
            return False
        del self.rows[request_id]
        return True


# -------- Payroll --------
class InMemoryPayroll:
    def __init__(self):
        self._run_ids = _Ids()
        self._item_ids = _Ids()
        self.runs: dict[int, PayrollRun] = {}
        self.items: dict[int, PayrollItem] = {}

    def get_run(self, run_id):
        return self.runs.get(int(run_id))

    def find_run(self, *, company_id, year, month):
        for r in self.runs.values():
            if r.company_id == company_id and (r.period_year, r.period_month) == (year, month):
                return r
        return None

    def list_runs(self, *, company_id):
        return [r for r in self.runs.values() if r.company_id == company_id]

    def create_run(self, *, company_id, year, month, notes, created_by):
        run = PayrollRun(
            run_id=self._run_ids.next(),
            company_id=company_id,
            period_year=year,
            period_month=month,
            status=PayrollStatus.DRAFT,
            notes=notes,
            created_by=created_by,
        )
        self.runs[run.run_id] = run
        return run

    def update_run(self, run):
        current = self.runs.get(run.run_id)
        if not current or current.is_locked:
            return False
        self.runs[run.run_id] = run
        return True

    def set_total(self, run_id, total):
        self.runs[run_id] = dataclasses.replace(self.runs[run_id], total_amount=total)

    def transition(self, *, run_id, from_statuses, to_status, actor_id, total=None):
        run = self.runs.get(run_id)
        if not run or run.status not in tuple(from_statuses):
            return False
        changes = {"status": to_status}
        if to_status == PayrollStatus.LOCKED:
            changes.update(locked_by=actor_id, locked_at=DECIDED_AT)
        if to_status == PayrollStatus.PAID:
            changes["paid_at"] = DECIDED_AT
        if total is not None:
            changes["total_amount"] = total
        self.runs[run_id] = dataclasses.replace(run, **changes)
        return True

    def delete_run(self, run_id):
        run = self.runs.get(run_id)
        if not run or run.is_locked:
            return False
        del self.runs[run_id]
        for item_id in [i.item_id for i in self.items.values() if i.run_id == run_id]:
            del self.items[item_id]
        return True

    def create_item(self, *, run_id, employee_id, employment, calculation):
        item = PayrollItem(
            item_id=self._item_ids.next(),
            run_id=run_id,
            employee_id=employee_id,
            employment_type=employment.type,
            base_salary=employment.base_salary,
            hourly_rate=employment.hourly_rate,
            daily_rate=employment.daily_rate,
            **dataclasses.asdict(calculation),
        )
        self.items[item.item_id] = item
        return item

    def get_item(self, item_id):
        return self.items.get(int(item_id))

    def find_item(self, *, run_id, employee_id):
        for i in self.items.values():
            if i.run_id == run_id and i.employee_id == employee_id:
                return i
        return None

    def list_items(self, run_id):
        return [i for i in self.items.values() if i.run_id == run_id]

    def update_item(self, item):
        self.items[item.item_id] = item

    def list_employee_items(self, *, employee_id, statuses):
        statuses = tuple(statuses)
        return [
            (self.runs[i.run_id], i)
            for i in self.items.values()
            if i.employee_id == employee_id and self.runs[i.run_id].status in statuses
        ]


class RecordingSink:
    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)


# -------- Fixtures --------
@pytest.fixture
def calendar():
    return BusinessCalendar("Asia/Jakarta")


@pytest.fixture
def directory():
    d = InMemoryDirectory()
    d.companies[COMPANY_ID] = Company(company_id=COMPANY_ID, name="Acme")
    d.employees[OWNER_ID] = Employee(OWNER_ID, COMPANY_ID, OWNER_ID, "Olivia Owner", Role.OWNER)
    d.employees[MANAGER_ID] = Employee(MANAGER_ID, COMPANY_ID, MANAGER_ID, "Mark Manager", Role.MANAGER)
    d.employees[EMPLOYEE_ID] = Employee(
        EMPLOYEE_ID, COMPANY_ID, EMPLOYEE_ID, "Erin Employee", Role.EMPLOYEE, manager_id=MANAGER_ID
    )
    d.employees[OUTSIDER_ID] = Employee(OUTSIDER_ID, COMPANY_ID, OUTSIDER_ID, "Owen Other", Role.EMPLOYEE)
    d.employments[MANAGER_ID] = Employment(
        employee_id=MANAGER_ID,
        type=EmploymentType.MONTHLY,
        base_salary=Decimal("8000000"),
        has_statutory_insurance=True,
    )
    d.employments[EMPLOYEE_ID] = Employment(
        employee_id=EMPLOYEE_ID,
        type=EmploymentType.MONTHLY,
        base_salary=Decimal("3460000"),
        has_statutory_insurance=True,
        transport_bonus=Decimal("100000"),
    )
    d.employments[OUTSIDER_ID] = Employment(
        employee_id=OUTSIDER_ID,
        type=EmploymentType.HOURLY,
        hourly_rate=Decimal("25000"),
    )
    return d


def _actor(employee_id: int, role: Role) -> Actor:
    return Actor(user_id=employee_id, role=role, company_id=COMPANY_ID, employee_id=employee_id)


@pytest.fixture
def owner():
    return _actor(OWNER_ID, Role.OWNER)


@pytest.fixture
def manager():
    return _actor(MANAGER_ID, Role.MANAGER)


@pytest.fixture
def employee():
    return _actor(EMPLOYEE_ID, Role.EMPLOYEE)


@pytest.fixture
def outsider():
    return _actor(OUTSIDER_ID, Role.EMPLOYEE)


@pytest.fixture
def audit_sink():
    return RecordingSink()


@pytest.fixture
def audit(audit_sink):
    return AuditRecorder(audit_sink)


@pytest.fixture
def policy_repo():
    return InMemoryPolicies()


@pytest.fixture
def policy_service(policy_repo, audit):
    return PolicyService(policy_repo, audit=audit)


@pytest.fixture
def schedule_repo():
    return InMemorySchedules()


@pytest.fixture
def schedule_service(schedule_repo, directory, calendar):
    return ScheduleService(schedule_repo, directory, calendar)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def adjustment_repo():
    return InMemoryAdjustments()


@pytest.fixture
def leave_repo():
    return InMemoryLeave()


@pytest.fixture
def overtime_repo():
    return InMemoryOvertime()


@pytest.fixture
def payroll_repo():
    return InMemoryPayroll()


@pytest.fixture
def add_policy(policy_repo):
    def _add(policy_type, config: dict, company_id: Optional[int] = None) -> Policy:
        cid = COMPANY_ID if company_id is None else company_id
        policy_repo.deactivate_all(company_id=cid, policy_type=policy_type)
        return policy_repo.create(
            company_id=cid,
            policy_type=policy_type,
            version=policy_repo.latest_version(company_id=cid, policy_type=policy_type) + 1,
            config=config,
            is_active=True,
        )

    return _add
