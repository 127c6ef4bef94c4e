from __future__ import annotations

import json
from typing import Any, Optional

from ..common.serialization import to_jsonable
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import AuditEvent
from .repository import AuditSink


def _dump(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(to_jsonable(value), default=str)


class MySQLAuditRepository(AuditSink):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, event: AuditEvent) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(
                    company_id, actor_id, action, entity_type, entity_id,
                    before_state, after_state, reason, ip_address, user_agent, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.company_id),
                    int(event.actor_id),
                    event.action.value,
                    event.entity_type,
                    event.entity_id,
                    _dump(event.before),
                    _dump(event.after),
                    event.reason,
                    event.ip_address,
                    event.user_agent,
                    event.created_at,
                ),
            )
