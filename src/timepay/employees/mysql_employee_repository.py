from __future__ import annotations

from datetime import date
from typing import Optional, Sequence, Tuple

from ..common.geofence import GeofenceConfig, GeoPoint
from ..core.enums import EmployeeStatus, EmploymentType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_decimal, db_cursor, fetchall, fetchone
from .model import Company, Employee, Employment
from .repository import EmployeeDirectory

_EMPLOYEE_COLUMNS = """
    e.employee_id, e.company_id, e.user_id, e.full_name, e.status, e.manager_id, u.role
"""

_EMPLOYMENT_COLUMNS = """
    m.employee_id, m.type, m.base_salary, m.hourly_rate, m.daily_rate,
    m.has_statutory_insurance, m.transport_bonus, m.lunch_bonus, m.holiday_bonus
"""


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        status=EmployeeStatus(r["status"]),
        manager_id=int(r["manager_id"]) if r.get("manager_id") is not None else None,
    )


def _row_to_employment(r: dict) -> Employment:
    return Employment(
        employee_id=int(r["employee_id"]),
        type=EmploymentType(r["type"]),
        base_salary=as_decimal(r.get("base_salary")),
        hourly_rate=as_decimal(r.get("hourly_rate")),
        daily_rate=as_decimal(r.get("daily_rate")),
        has_statutory_insurance=as_bool(r.get("has_statutory_insurance")),
        transport_bonus=as_decimal(r.get("transport_bonus")),
        lunch_bonus=as_decimal(r.get("lunch_bonus")),
        holiday_bonus=as_decimal(r.get("holiday_bonus")),
    )


class MySQLEmployeeDirectory(EmployeeDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_company(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, geofence_enabled, geofence_lat, geofence_lng, geofence_radius
                FROM companies
                WHERE company_id=%s
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            center = None
            if r.get("geofence_lat") is not None and r.get("geofence_lng") is not None:
                center = GeoPoint(float(r["geofence_lat"]), float(r["geofence_lng"]))
            radius = r.get("geofence_radius")
            return Company(
                company_id=int(r["company_id"]),
                name=r["name"],
                geofence=GeofenceConfig(
                    enabled=as_bool(r.get("geofence_enabled")),
                    center=center,
                    radius_meters=float(radius) if radius is not None else None,
                ),
            )

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EMPLOYEE_COLUMNS}
                FROM employees e
                JOIN users u ON u.user_id = e.user_id
                WHERE e.employee_id=%s
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_employment(self, employee_id: int) -> Optional[Employment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EMPLOYMENT_COLUMNS} FROM employments m WHERE m.employee_id=%s",
                (int(employee_id),),
            )
            r = fetchone(cur)
            return _row_to_employment(r) if r else None

    def list_direct_reports(self, manager_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EMPLOYEE_COLUMNS}
                FROM employees e
                JOIN users u ON u.user_id = e.user_id
                WHERE e.manager_id=%s
                ORDER BY e.full_name
                """,
                (int(manager_id),),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_active_with_employment(self, company_id: int) -> Sequence[Tuple[Employee, Employment]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EMPLOYEE_COLUMNS}, {_EMPLOYMENT_COLUMNS}
                FROM employees e
                JOIN users u ON u.user_id = e.user_id
                JOIN employments m ON m.employee_id = e.employee_id
                WHERE e.company_id=%s AND e.status=%s
                ORDER BY e.employee_id
                """,
                (int(company_id), EmployeeStatus.ACTIVE.value),
            )
            return [(_row_to_employee(r), _row_to_employment(r)) for r in fetchall(cur)]

    def is_public_holiday(self, company_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS hit FROM public_holidays WHERE company_id=%s AND holiday_date=%s LIMIT 1",
                (int(company_id), day),
            )
            return fetchone(cur) is not None
