from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of a service operation.

    Supplied by the outer (auth) layer; services never look up a fallback
    company or employee on their own.
    """

    user_id: int
    role: Role
    company_id: int
    employee_id: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER
