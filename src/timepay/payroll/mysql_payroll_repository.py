from __future__ import annotations

import json
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from ..common.serialization import to_jsonable
from ..core.enums import EmploymentType, PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from ..employees.model import Employment
from .model import PayrollCalculation, PayrollItem, PayrollRun
from .repository import PayrollRepository

_RUN_COLUMNS = """
    run_id, company_id, period_year, period_month, status, total_amount, notes, run_date,
    created_by, locked_by, locked_at, paid_at
"""

_AMOUNT_COLUMNS = (
    "base_pay",
    "overtime_pay",
    "allowances",
    "bonuses",
    "transport_bonus",
    "lunch_bonus",
    "holiday_bonus",
    "deductions",
    "health_employee",
    "health_employer",
    "employment_employee",
    "employment_employer",
    "withholding_tax",
    "gross_pay",
    "net_pay",
)

_ITEM_COLUMNS = (
    "item_id, run_id, employee_id, employment_type, base_salary, hourly_rate, daily_rate, "
    + ", ".join(_AMOUNT_COLUMNS)
    + ", breakdown"
)

_UNLOCKED = (PayrollStatus.DRAFT.value, PayrollStatus.PROCESSING.value)


def _row_to_run(r: dict) -> PayrollRun:
    return PayrollRun(
        run_id=int(r["run_id"]),
        company_id=int(r["company_id"]),
        period_year=int(r["period_year"]),
        period_month=int(r["period_month"]),
        status=PayrollStatus(r["status"]),
        total_amount=as_decimal(r.get("total_amount")) or Decimal("0"),
        notes=r.get("notes"),
        run_date=r.get("run_date"),
        created_by=r.get("created_by"),
        locked_by=r.get("locked_by"),
        locked_at=r.get("locked_at"),
        paid_at=r.get("paid_at"),
    )


def _row_to_item(r: dict, prefix: str = "") -> PayrollItem:
    breakdown = r.get(prefix + "breakdown")
    if isinstance(breakdown, (str, bytes)):
        breakdown = json.loads(breakdown)
    amounts = {name: as_decimal(r.get(prefix + name)) or Decimal("0") for name in _AMOUNT_COLUMNS}
    return PayrollItem(
        item_id=int(r[prefix + "item_id"]),
        run_id=int(r[prefix + "run_id"]),
        employee_id=int(r[prefix + "employee_id"]),
        employment_type=EmploymentType(r[prefix + "employment_type"]),
        base_salary=as_decimal(r.get(prefix + "base_salary")),
        hourly_rate=as_decimal(r.get(prefix + "hourly_rate")),
        daily_rate=as_decimal(r.get(prefix + "daily_rate")),
        breakdown=dict(breakdown or {}),
        **amounts,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Runs --------
    def get_run(self, run_id: int) -> Optional[PayrollRun]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RUN_COLUMNS} FROM payroll_runs WHERE run_id=%s", (int(run_id),))
            r = fetchone(cur)
            return _row_to_run(r) if r else None

    def find_run(self, *, company_id: int, year: int, month: int) -> Optional[PayrollRun]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RUN_COLUMNS} FROM payroll_runs
                WHERE company_id=%s AND period_year=%s AND period_month=%s
                """,
                (int(company_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _row_to_run(r) if r else None

    def list_runs(self, *, company_id: int) -> Sequence[PayrollRun]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RUN_COLUMNS} FROM payroll_runs
                WHERE company_id=%s
                ORDER BY period_year DESC, period_month DESC
                """,
                (int(company_id),),
            )
            return [_row_to_run(r) for r in fetchall(cur)]

    def create_run(
        self,
        *,
        company_id: int,
        year: int,
        month: int,
        notes: Optional[str],
        created_by: int,
    ) -> PayrollRun:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_runs(company_id, period_year, period_month, status, notes, run_date, created_by)
                VALUES(%s,%s,%s,%s,%s,CURRENT_TIMESTAMP,%s)
                """,
                (int(company_id), int(year), int(month), PayrollStatus.DRAFT.value, notes, int(created_by)),
            )
            run_id = int(cur.lastrowid)
        return self.get_run(run_id)

    def update_run(self, run: PayrollRun) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_runs
                SET period_year=%s, period_month=%s, notes=%s, updated_at=CURRENT_TIMESTAMP
                WHERE run_id=%s AND status IN (%s,%s)
                """,
                (int(run.period_year), int(run.period_month), run.notes, int(run.run_id), *_UNLOCKED),
            )
            return cur.rowcount > 0

    def set_total(self, run_id: int, total: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payroll_runs SET total_amount=%s, updated_at=CURRENT_TIMESTAMP WHERE run_id=%s",
                (total, int(run_id)),
            )

    def transition(
        self,
        *,
        run_id: int,
        from_statuses: Iterable[PayrollStatus],
        to_status: PayrollStatus,
        actor_id: int,
        total: Optional[Decimal] = None,
    ) -> bool:
        sources = [s.value for s in from_statuses]
        placeholders = ",".join(["%s"] * len(sources))
        if to_status == PayrollStatus.LOCKED:
            stamp = "locked_by=%s, locked_at=CURRENT_TIMESTAMP"
        else:
            stamp = "paid_at=CURRENT_TIMESTAMP, locked_by=COALESCE(locked_by, %s)"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE payroll_runs
                SET status=%s, {stamp}, total_amount=COALESCE(%s, total_amount), updated_at=CURRENT_TIMESTAMP
                WHERE run_id=%s AND status IN ({placeholders})
                """,
                (to_status.value, int(actor_id), total, int(run_id), *sources),
            )
            return cur.rowcount > 0

    def delete_run(self, run_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payroll_runs WHERE run_id=%s AND status IN (%s,%s)",
                (int(run_id), *_UNLOCKED),
            )
            return cur.rowcount > 0

    # -------- Items --------
    def create_item(
        self,
        *,
        run_id: int,
        employee_id: int,
        employment: Employment,
        calculation: PayrollCalculation,
    ) -> PayrollItem:
        columns = ["run_id", "employee_id", "employment_type", "base_salary", "hourly_rate", "daily_rate"]
        values: List = [
            int(run_id),
            int(employee_id),
            employment.type.value,
            employment.base_salary,
            employment.hourly_rate,
            employment.daily_rate,
        ]
        for name in _AMOUNT_COLUMNS:
            columns.append(name)
            values.append(getattr(calculation, name))
        columns.append("breakdown")
        values.append(json.dumps(to_jsonable(calculation.breakdown)))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO payroll_items({', '.join(columns)}) VALUES({','.join(['%s'] * len(values))})",
                tuple(values),
            )
            item_id = int(cur.lastrowid)
        return self.get_item(item_id)

    def get_item(self, item_id: int) -> Optional[PayrollItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ITEM_COLUMNS} FROM payroll_items WHERE item_id=%s", (int(item_id),))
            r = fetchone(cur)
            return _row_to_item(r) if r else None

    def find_item(self, *, run_id: int, employee_id: int) -> Optional[PayrollItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ITEM_COLUMNS} FROM payroll_items WHERE run_id=%s AND employee_id=%s",
                (int(run_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _row_to_item(r) if r else None

    def list_items(self, run_id: int) -> Sequence[PayrollItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ITEM_COLUMNS} FROM payroll_items WHERE run_id=%s ORDER BY employee_id",
                (int(run_id),),
            )
            return [_row_to_item(r) for r in fetchall(cur)]

    def update_item(self, item: PayrollItem) -> None:
        assignments = ", ".join(f"{name}=%s" for name in _AMOUNT_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payroll_items SET {assignments}, updated_at=CURRENT_TIMESTAMP WHERE item_id=%s",
                (*[getattr(item, name) for name in _AMOUNT_COLUMNS], int(item.item_id)),
            )

    def list_employee_items(
        self, *, employee_id: int, statuses: Iterable[PayrollStatus]
    ) -> Sequence[Tuple[PayrollRun, PayrollItem]]:
        wanted = [s.value for s in statuses]
        item_columns = ", ".join(f"i.{c.strip()} AS i_{c.strip()}" for c in _ITEM_COLUMNS.split(","))
        run_columns = ", ".join(f"r.{c.strip()}" for c in _RUN_COLUMNS.split(","))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {run_columns}, {item_columns}
                FROM payroll_items i
                JOIN payroll_runs r ON r.run_id = i.run_id
                WHERE i.employee_id=%s AND r.status IN ({','.join(['%s'] * len(wanted))})
                ORDER BY r.period_year DESC, r.period_month DESC
                """,
                (int(employee_id), *wanted),
            )
            return [(_row_to_run(r), _row_to_item(r, prefix="i_")) for r in fetchall(cur)]
