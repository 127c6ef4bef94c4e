from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEvent:
    action: AuditAction
    entity_type: str
    entity_id: Optional[int]
    actor_id: int
    company_id: int
    before: Optional[Any] = None
    after: Optional[Any] = None
    reason: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class AuditedResult:
    """Return value of a state transition that should be written to the audit log.

    `value` is what the caller of the service receives.
    """

    value: Any
    entity_id: Optional[int]
    before: Optional[Any] = None
    after: Optional[Any] = None
    reason: Optional[str] = None
