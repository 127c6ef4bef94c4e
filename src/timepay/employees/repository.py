from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from .model import Company, Employee, Employment


class EmployeeDirectory(Protocol):
    """Read-only view of companies, employees and their contracts."""

    def get_company(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError

    def get_employee(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_employment(self, employee_id: int) -> Optional[Employment]:
        raise NotImplementedError

    def list_direct_reports(self, manager_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def list_active_with_employment(self, company_id: int) -> Sequence[Tuple[Employee, Employment]]:
        """Active employees of the company that have an employment contract."""

        raise NotImplementedError

    def is_public_holiday(self, company_id: int, day: date) -> bool:
        raise NotImplementedError
