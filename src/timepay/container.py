from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.recorder import AuditRecorder
from .common.datetime_utils import BusinessCalendar
from .core.constants import DEFAULT_BUSINESS_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeDirectory
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveService
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.service import OvertimeService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService
from .policies.mysql_policy_repository import MySQLPolicyRepository
from .policies.service import PolicyService
from .requests.mysql_adjustment_repository import MySQLAdjustmentRepository
from .requests.service import AdjustmentService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.service import ScheduleService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    calendar: BusinessCalendar
    audit: AuditRecorder

    directory: MySQLEmployeeDirectory
    policies_repo: MySQLPolicyRepository
    schedules_repo: MySQLScheduleRepository
    attendance_repo: MySQLAttendanceRepository
    adjustments_repo: MySQLAdjustmentRepository
    leave_repo: MySQLLeaveRepository
    overtime_repo: MySQLOvertimeRepository
    payroll_repo: MySQLPayrollRepository

    policy_service: PolicyService
    schedule_service: ScheduleService
    attendance_service: AttendanceService
    adjustment_service: AdjustmentService
    leave_service: LeaveService
    overtime_service: OvertimeService
    payroll_service: PayrollService


def build_container(*, db_config: dict, timezone: str = DEFAULT_BUSINESS_TIMEZONE) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)
    calendar = BusinessCalendar(timezone)
    audit = AuditRecorder(MySQLAuditRepository(conn))

    directory = MySQLEmployeeDirectory(conn)
    policies_repo = MySQLPolicyRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    adjustments_repo = MySQLAdjustmentRepository(conn)
    leave_repo = MySQLLeaveRepository(conn)
    overtime_repo = MySQLOvertimeRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    policy_service = PolicyService(policies_repo, audit=audit, tx=conn)
    schedule_service = ScheduleService(schedules_repo, directory, calendar)
    attendance_service = AttendanceService(attendance_repo, directory, schedule_service, policy_service, calendar)
    adjustment_service = AdjustmentService(
        adjustments_repo, attendance_repo, directory, policy_service, calendar, audit=audit, tx=conn
    )
    leave_service = LeaveService(leave_repo, directory, policy_service, calendar, audit=audit, tx=conn)
    overtime_service = OvertimeService(overtime_repo, directory, policy_service, calendar, audit=audit, tx=conn)
    payroll_service = PayrollService(
        payroll_repo, directory, attendance_repo, overtime_repo, policy_service, audit=audit, tx=conn
    )

    return Container(
        conn=conn,
        calendar=calendar,
        audit=audit,
        directory=directory,
        policies_repo=policies_repo,
        schedules_repo=schedules_repo,
        attendance_repo=attendance_repo,
        adjustments_repo=adjustments_repo,
        leave_repo=leave_repo,
        overtime_repo=overtime_repo,
        payroll_repo=payroll_repo,
        policy_service=policy_service,
        schedule_service=schedule_service,
        attendance_service=attendance_service,
        adjustment_service=adjustment_service,
        leave_service=leave_service,
        overtime_service=overtime_service,
        payroll_service=payroll_service,
    )
