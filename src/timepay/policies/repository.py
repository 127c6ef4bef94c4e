from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, Sequence

from ..core.enums import PolicyType
from .model import Policy


class PolicyRepository(Protocol):
    def get_active(self, *, company_id: int, policy_type: PolicyType) -> Optional[Policy]:
        """Highest-version active policy of the type, if any."""

        raise NotImplementedError

    def get_by_id(self, *, policy_id: int) -> Optional[Policy]:
        raise NotImplementedError

    def list_for_company(self, *, company_id: int) -> Sequence[Policy]:
        raise NotImplementedError

    def latest_version(self, *, company_id: int, policy_type: PolicyType) -> int:
        """0 when the company has no policy of this type yet."""

        raise NotImplementedError

    def deactivate_all(self, *, company_id: int, policy_type: PolicyType) -> None:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        policy_type: PolicyType,
        version: int,
        config: Dict[str, Any],
        is_active: bool,
    ) -> Policy:
        raise NotImplementedError

    def update(
        self,
        *,
        policy_id: int,
        config: Optional[Dict[str, Any]] = None,
        is_active: Optional[bool] = None,
    ) -> Policy:
        raise NotImplementedError
