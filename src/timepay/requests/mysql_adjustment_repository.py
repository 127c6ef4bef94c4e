from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_instant, to_db_instant
from .model import AdjustmentRequest
from .repository import AdjustmentRepository

_COLUMNS = """
    adjustment_id, attendance_id, employee_id, requested_by, requester_role, reason, status,
    clock_in, clock_out, approved_by, decided_at, rejected_reason, requested_at
"""


def _row_to_adjustment(r: dict) -> AdjustmentRequest:
    return AdjustmentRequest(
        adjustment_id=int(r["adjustment_id"]),
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        requested_by=int(r["requested_by"]),
        requester_role=Role(r["requester_role"]),
        reason=r["reason"],
        status=ApprovalStatus(r["status"]),
        clock_in=from_db_instant(r.get("clock_in")),
        clock_out=from_db_instant(r.get("clock_out")),
        approved_by=r.get("approved_by"),
        decided_at=r.get("decided_at"),
        rejected_reason=r.get("rejected_reason"),
        requested_at=r.get("requested_at"),
    )


class MySQLAdjustmentRepository(AdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, param: int) -> Optional[AdjustmentRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_adjustments WHERE {where}=%s", (int(param),))
            r = fetchone(cur)
            return _row_to_adjustment(r) if r else None

    def get_by_id(self, adjustment_id: int) -> Optional[AdjustmentRequest]:
        return self._one("adjustment_id", adjustment_id)

    def get_for_attendance(self, attendance_id: int) -> Optional[AdjustmentRequest]:
        return self._one("attendance_id", attendance_id)

    def list_for_employee(self, employee_id: int) -> Sequence[AdjustmentRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_adjustments WHERE employee_id=%s ORDER BY requested_at DESC",
                (int(employee_id),),
            )
            return [_row_to_adjustment(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_adjustments(
                    attendance_id, employee_id, requested_by, requester_role,
                    clock_in, clock_out, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(attendance_id),
                    int(employee_id),
                    int(requested_by),
                    requester_role.value,
                    to_db_instant(clock_in),
                    to_db_instant(clock_out),
                    reason,
                    ApprovalStatus.PENDING.value,
                ),
            )
            adjustment_id = int(cur.lastrowid)
        return self.get_by_id(adjustment_id)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_adjustments
                SET requested_by=%s, requester_role=%s, clock_in=%s, clock_out=%s, reason=%s,
                    status=%s, rejected_reason=NULL, approved_by=NULL, decided_at=NULL,
                    requested_at=CURRENT_TIMESTAMP
                WHERE adjustment_id=%s AND status=%s
                """,
                (
                    int(requested_by),
                    requester_role.value,
                    to_db_instant(clock_in),
                    to_db_instant(clock_out),
                    reason,
                    ApprovalStatus.PENDING.value,
                    int(adjustment_id),
                    ApprovalStatus.REJECTED.value,
                ),
            )
            return cur.rowcount > 0

    def update_pending(
        self,
        *,
        adjustment_id: int,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_adjustments
                SET clock_in=%s, clock_out=%s, reason=%s, updated_at=CURRENT_TIMESTAMP
                WHERE adjustment_id=%s AND status=%s
                """,
                (
                    to_db_instant(clock_in),
                    to_db_instant(clock_out),
                    reason,
                    int(adjustment_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        adjustment_id: int,
        status: ApprovalStatus,
        decided_by: int,
        rejected_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_adjustments
                SET status=%s, approved_by=%s, decided_at=CURRENT_TIMESTAMP, rejected_reason=%s
                WHERE adjustment_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    rejected_reason,
                    int(adjustment_id),
                    ApprovalStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, adjustment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_adjustments WHERE adjustment_id=%s AND status=%s",
                (int(adjustment_id), ApprovalStatus.PENDING.value),
            )
            return cur.rowcount > 0
