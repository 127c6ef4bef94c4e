from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import DateSpecificSlot, RecurringSlot, ShiftSchedule, Slot
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, employee_id, company_id, day_of_week, schedule_date, start_time, end_time, is_active, notes"


def _row_to_schedule(r: dict) -> ShiftSchedule:
    if r.get("schedule_date") is not None:
        slot: Slot = DateSpecificSlot(date=r["schedule_date"])
    else:
        slot = RecurringSlot(day_of_week=int(r["day_of_week"]))
    return ShiftSchedule(
        schedule_id=int(r["schedule_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        slot=slot,
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        is_active=as_bool(r.get("is_active")),
        notes=r.get("notes"),
    )


def _slot_columns(slot: Slot) -> tuple:
    if isinstance(slot, DateSpecificSlot):
        return None, slot.date
    return slot.day_of_week, None


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, schedule_id: int) -> Optional[ShiftSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shift_schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def find_by_slot(self, *, employee_id: int, slot: Slot) -> Optional[ShiftSchedule]:
        if isinstance(slot, DateSpecificSlot):
            where, param = "schedule_date=%s", slot.date
        else:
            where, param = "day_of_week=%s AND schedule_date IS NULL", slot.day_of_week
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM shift_schedules WHERE employee_id=%s AND {where} LIMIT 1",
                (int(employee_id), param),
            )
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_active(
        self,
        *,
        company_id: int,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[ShiftSchedule]:
        clauses = ["company_id=%s", "is_active=1"]
        params: list[object] = [int(company_id)]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if start is not None and end is not None:
            clauses.append("(schedule_date IS NULL OR schedule_date BETWEEN %s AND %s)")
            params.extend([start, end])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shift_schedules
                WHERE {' AND '.join(clauses)}
                ORDER BY employee_id, schedule_date, day_of_week
                """,
                tuple(params),
            )
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        employee_id: int,
        slot: Slot,
        start_time: time,
        end_time: time,
        is_active: bool,
        notes: Optional[str],
        created_by: int,
    ) -> ShiftSchedule:
        day_of_week, schedule_date = _slot_columns(slot)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_schedules(
                    company_id, employee_id, day_of_week, schedule_date,
                    start_time, end_time, is_active, notes, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(company_id),
                    int(employee_id),
                    day_of_week,
                    schedule_date,
                    start_time,
                    end_time,
                    1 if is_active else 0,
                    notes,
                    int(created_by),
                ),
            )
            schedule_id = int(cur.lastrowid)
        return self.get_by_id(schedule_id=schedule_id)

    def update(self, *, schedule: ShiftSchedule, updated_by: int) -> ShiftSchedule:
        day_of_week, schedule_date = _slot_columns(schedule.slot)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shift_schedules
                SET day_of_week=%s, schedule_date=%s, start_time=%s, end_time=%s,
                    is_active=%s, notes=%s, updated_by=%s, updated_at=CURRENT_TIMESTAMP
                WHERE schedule_id=%s
                """,
                (
                    day_of_week,
                    schedule_date,
                    schedule.start_time,
                    schedule.end_time,
                    1 if schedule.is_active else 0,
                    schedule.notes,
                    int(updated_by),
                    int(schedule.schedule_id),
                ),
            )
        return self.get_by_id(schedule_id=schedule.schedule_id)

    def delete(self, *, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shift_schedules WHERE schedule_id=%s", (int(schedule_id),))
            return cur.rowcount > 0
