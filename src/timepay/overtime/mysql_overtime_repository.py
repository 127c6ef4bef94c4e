from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from ..core.enums import ApprovalStatus, CompensationType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import OvertimeRequest
from .repository import OvertimeRepository

_COLUMNS = """
    request_id, employee_id, ot_date, duration_minutes, requested_by, requester_role, status,
    compensation_type, calculated_amount, reason, approved_by, decided_at, rejected_reason, requested_at
"""

_ACTIVE = (ApprovalStatus.PENDING.value, ApprovalStatus.APPROVED.value)


def _row_to_request(r: dict) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        ot_date=r["ot_date"],
        duration_minutes=int(r["duration_minutes"]),
        requested_by=int(r["requested_by"]),
        requester_role=Role(r["requester_role"]),
        status=ApprovalStatus(r["status"]),
        compensation_type=CompensationType(r["compensation_type"]),
        calculated_amount=as_decimal(r.get("calculated_amount")) or Decimal("0"),
        reason=r.get("reason"),
        approved_by=r.get("approved_by"),
        decided_at=r.get("decided_at"),
        rejected_reason=r.get("rejected_reason"),
        requested_at=r.get("requested_at"),
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtime_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_active(
        self,
        *,
        employee_id: int,
        ot_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[OvertimeRequest]:
        sql = f"""
            SELECT {_COLUMNS} FROM overtime_requests
            WHERE employee_id=%s AND ot_date=%s AND status IN (%s,%s)
        """
        params: List = [int(employee_id), ot_date, *_ACTIVE]
        if exclude_request_id is not None:
            sql += " AND request_id<>%s"
            params.append(int(exclude_request_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> Sequence[OvertimeRequest]:
        sql = f"SELECT {_COLUMNS} FROM overtime_requests WHERE employee_id=%s"
        params: List = [int(employee_id)]
        if start is not None:
            sql += " AND ot_date>=%s"
            params.append(start)
        if end is not None:
            sql += " AND ot_date<=%s"
            params.append(end)
        if status is not None:
            sql += " AND status=%s"
            params.append(status.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY ot_date DESC, request_id DESC", tuple(params))
            return [_row_to_request(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_requests(
                    employee_id, ot_date, duration_minutes, reason, compensation_type,
                    calculated_amount, requested_by, requester_role, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    ot_date,
                    int(duration_minutes),
                    reason,
                    compensation_type.value,
                    calculated_amount,
                    int(requested_by),
                    requester_role.value,
                    ApprovalStatus.PENDING.value,
                ),
            )
            request_id = int(cur.lastrowid)
        return self.get_by_id(request_id)

    def update_pending(self, request: OvertimeRequest) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET ot_date=%s, duration_minutes=%s, reason=%s, compensation_type=%s,
                    calculated_amount=%s, updated_at=CURRENT_TIMESTAMP
                WHERE request_id=%s AND status=%s
                """,
                (
                    request.ot_date,
                    int(request.duration_minutes),
                    request.reason,
                    request.compensation_type.value,
                    request.calculated_amount,
                    int(request.request_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        request_id: int,
        status: ApprovalStatus,
        decided_by: int,
        calculated_amount: Optional[Decimal] = None,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, approved_by=%s, decided_at=CURRENT_TIMESTAMP, rejected_reason=%s,
                    calculated_amount=COALESCE(%s, calculated_amount)
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    rejected_reason,
                    calculated_amount,
                    int(request_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM overtime_requests WHERE request_id=%s AND status=%s",
                (int(request_id), ApprovalStatus.PENDING.value),
            )
            return cur.rowcount > 0
