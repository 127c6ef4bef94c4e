from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, Optional

from ..core.context import Actor
from ..core.enums import AuditAction
from .model import AuditEvent, AuditedResult
from .repository import AuditSink

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Fire-and-forget front of the audit sink.

    A failing sink is logged and never propagates into the operation that
    produced the event.
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        self._sink = sink

    def record(
        self,
        *,
        actor: Actor,
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[int],
        before: Any = None,
        after: Any = None,
        reason: Optional[str] = None,
    ) -> None:
        if self._sink is None:
            return
        event = AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor.user_id,
            company_id=actor.company_id,
            before=before,
            after=after,
            reason=reason,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
        )
        try:
            self._sink.record(event)
        except Exception:
            logger.exception("Failed to write audit event %s %s#%s", action.value, entity_type, entity_id)


def audited(action: AuditAction, entity_type: str) -> Callable:
    """Record an audit event after a successful state transition.

    The wrapped service method takes the acting user as the keyword argument
    `actor` and returns an AuditedResult; the caller gets `result.value`.
    The owning service must expose its recorder as `self._audit`.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, actor: Actor, **kwargs):
            result = func(self, *args, actor=actor, **kwargs)
            if not isinstance(result, AuditedResult):
                return result
            self._audit.record(
                actor=actor,
                action=action,
                entity_type=entity_type,
                entity_id=result.entity_id,
                before=result.before,
                after=result.after,
                reason=result.reason,
            )
            return result.value

        return wrapper

    return decorator
