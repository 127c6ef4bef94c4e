from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_decimal, db_cursor, fetchall, fetchone
from .model import LeaveBalance, LeaveRequest, LeaveType
from .repository import LeaveRepository

_TYPE_COLUMNS = """
    leave_type_id, company_id, code, name, is_paid, max_balance, accrual_rate,
    carryover_allowed, carryover_max, expires_after_months, requires_attachment, is_active
"""

_BALANCE_COLUMNS = "employee_id, leave_type_id, period_year, period_month, balance, accrued, used, carried_over, expired"

_REQUEST_COLUMNS = """
    request_id, employee_id, leave_type_id, start_date, end_date, days, requested_by, requester_role,
    status, reason, attachment_url, approved_by, decided_at, rejected_reason, requested_at
"""

_ACTIVE = (ApprovalStatus.PENDING.value, ApprovalStatus.APPROVED.value)


def _row_to_type(r: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(r["leave_type_id"]),
        company_id=int(r["company_id"]),
        code=r["code"],
        name=r["name"],
        is_paid=as_bool(r["is_paid"]),
        max_balance=as_decimal(r.get("max_balance")),
        accrual_rate=as_decimal(r.get("accrual_rate")),
        carryover_allowed=as_bool(r.get("carryover_allowed")),
        carryover_max=as_decimal(r.get("carryover_max")),
        expires_after_months=r.get("expires_after_months"),
        requires_attachment=as_bool(r.get("requires_attachment")),
        is_active=as_bool(r.get("is_active")),
    )


def _row_to_balance(r: dict) -> LeaveBalance:
    return LeaveBalance(
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        period_year=int(r["period_year"]),
        period_month=int(r["period_month"]),
        balance=as_decimal(r["balance"]),
        accrued=as_decimal(r["accrued"]),
        used=as_decimal(r["used"]),
        carried_over=as_decimal(r["carried_over"]),
        expired=as_decimal(r["expired"]),
    )


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days=as_decimal(r["days"]),
        requested_by=int(r["requested_by"]),
        requester_role=Role(r["requester_role"]),
        status=ApprovalStatus(r["status"]),
        reason=r.get("reason"),
        attachment_url=r.get("attachment_url"),
        approved_by=r.get("approved_by"),
        decided_at=r.get("decided_at"),
        rejected_reason=r.get("rejected_reason"),
        requested_at=r.get("requested_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Leave types --------
    def list_types(self, *, company_id: int, include_inactive: bool = False) -> Sequence[LeaveType]:
        where = "company_id=%s" if include_inactive else "company_id=%s AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE {where} ORDER BY code", (int(company_id),))
            return [_row_to_type(r) for r in fetchall(cur)]

    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM leave_types WHERE leave_type_id=%s", (int(leave_type_id),))
            r = fetchone(cur)
            return _row_to_type(r) if r else None

    def save_type(self, leave_type: LeaveType) -> LeaveType:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_types
                SET name=%s, is_paid=%s, max_balance=%s, accrual_rate=%s, carryover_allowed=%s,
                    carryover_max=%s, expires_after_months=%s, requires_attachment=%s, is_active=%s
                WHERE leave_type_id=%s
                """,
                (
                    leave_type.name,
                    1 if leave_type.is_paid else 0,
                    leave_type.max_balance,
                    leave_type.accrual_rate,
                    1 if leave_type.carryover_allowed else 0,
                    leave_type.carryover_max,
                    leave_type.expires_after_months,
                    1 if leave_type.requires_attachment else 0,
                    1 if leave_type.is_active else 0,
                    int(leave_type.leave_type_id),
                ),
            )
        return self.get_type(leave_type.leave_type_id)

    # -------- Balances --------
    def get_balance(self, *, employee_id: int, leave_type_id: int, year: int, month: int) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_BALANCE_COLUMNS}
                FROM leave_balances
                WHERE employee_id=%s AND leave_type_id=%s AND period_year=%s AND period_month=%s
                """,
                (int(employee_id), int(leave_type_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _row_to_balance(r) if r else None

    def upsert_balance(self, balance: LeaveBalance) -> LeaveBalance:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_balances(
                    employee_id, leave_type_id, period_year, period_month,
                    balance, accrued, used, carried_over, expired
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    balance=VALUES(balance), accrued=VALUES(accrued), used=VALUES(used),
                    carried_over=VALUES(carried_over), expired=VALUES(expired)
                """,
                (
                    int(balance.employee_id),
                    int(balance.leave_type_id),
                    int(balance.period_year),
                    int(balance.period_month),
                    balance.balance,
                    balance.accrued,
                    balance.used,
                    balance.carried_over,
                    balance.expired,
                ),
            )
        return balance

    def debit_balance(self, *, employee_id: int, leave_type_id: int, year: int, month: int, days: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used=used + %s, balance=balance - %s
                WHERE employee_id=%s AND leave_type_id=%s AND period_year=%s AND period_month=%s
                """,
                (days, days, int(employee_id), int(leave_type_id), int(year), int(month)),
            )
            return cur.rowcount > 0

    # -------- Requests --------
    def get_request(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_requests(self, *, employee_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE employee_id=%s ORDER BY requested_at DESC",
                (int(employee_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start: date,
        end: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[LeaveRequest]:
        sql = f"""
            SELECT {_REQUEST_COLUMNS}
            FROM leave_requests
            WHERE employee_id=%s AND status IN (%s, %s) AND start_date<=%s AND end_date>=%s
        """
        params: list[object] = [int(employee_id), *_ACTIVE, end, start]
        if exclude_request_id is not None:
            sql += " AND request_id<>%s"
            params.append(int(exclude_request_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type_id, start_date, end_date, days,
                    reason, attachment_url, requested_by, requester_role, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(leave_type_id),
                    start_date,
                    end_date,
                    days,
                    reason,
                    attachment_url,
                    int(requested_by),
                    requester_role.value,
                    ApprovalStatus.PENDING.value,
                ),
            )
            request_id = int(cur.lastrowid)
        return self.get_request(request_id)

    def update_pending_request(self, request: LeaveRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type_id=%s, start_date=%s, end_date=%s, days=%s, reason=%s, attachment_url=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    int(request.leave_type_id),
                    request.start_date,
                    request.end_date,
                    request.days,
                    request.reason,
                    request.attachment_url,
                    int(request.request_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def decide_request(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_by: int,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approved_by=%s, decided_at=CURRENT_TIMESTAMP, rejected_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(decided_by), rejected_reason, int(request_id), ApprovalStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def delete_pending_request(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leave_requests WHERE request_id=%s AND status=%s",
                (int(request_id), ApprovalStatus.PENDING.value),
            )
            return cur.rowcount > 0
