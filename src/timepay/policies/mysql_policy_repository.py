from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PolicyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Policy
from .repository import PolicyRepository

_COLUMNS = "policy_id, company_id, type, version, is_active, config, created_at, updated_at"


def _row_to_policy(r: dict) -> Policy:
    config = r["config"]
    if isinstance(config, (bytes, bytearray)):
        config = config.decode("utf-8")
    return Policy(
        policy_id=int(r["policy_id"]),
        company_id=int(r["company_id"]),
        type=PolicyType(r["type"]),
        version=int(r["version"]),
        is_active=as_bool(r["is_active"]),
        config=json.loads(config) if isinstance(config, str) else dict(config or {}),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLPolicyRepository(PolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active(self, *, company_id: int, policy_type: PolicyType) -> Optional[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM policies
                WHERE company_id=%s AND type=%s AND is_active=1
                ORDER BY version DESC
                LIMIT 1
                """,
                (int(company_id), policy_type.value),
            )
            r = fetchone(cur)
            return _row_to_policy(r) if r else None

    def get_by_id(self, *, policy_id: int) -> Optional[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM policies WHERE policy_id=%s", (int(policy_id),))
            r = fetchone(cur)
            return _row_to_policy(r) if r else None

    def list_for_company(self, *, company_id: int) -> Sequence[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM policies WHERE company_id=%s ORDER BY type ASC, version DESC",
                (int(company_id),),
            )
            return [_row_to_policy(r) for r in fetchall(cur)]

    def latest_version(self, *, company_id: int, policy_type: PolicyType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(MAX(version), 0) AS v FROM policies WHERE company_id=%s AND type=%s",
                (int(company_id), policy_type.value),
            )
            r = fetchone(cur)
            return int(r["v"]) if r else 0

    def deactivate_all(self, *, company_id: int, policy_type: PolicyType) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE policies SET is_active=0 WHERE company_id=%s AND type=%s AND is_active=1",
                (int(company_id), policy_type.value),
            )

    def create(
        self,
        *,
        company_id: int,
        policy_type: PolicyType,
        version: int,
        config: Dict[str, Any],
        is_active: bool,
    ) -> Policy:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO policies(company_id, type, version, is_active, config)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(company_id), policy_type.value, int(version), 1 if is_active else 0, json.dumps(config)),
            )
            policy_id = int(cur.lastrowid)
        return self.get_by_id(policy_id=policy_id)

    def update(
        self,
        *,
        policy_id: int,
        config: Optional[Dict[str, Any]] = None,
        is_active: Optional[bool] = None,
    ) -> Policy:
        sets = ["updated_at=CURRENT_TIMESTAMP"]
        params: list[object] = []
        if config is not None:
            sets.append("config=%s")
            params.append(json.dumps(config))
        if is_active is not None:
            sets.append("is_active=%s")
            params.append(1 if is_active else 0)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE policies SET {', '.join(sets)} WHERE policy_id=%s",
                tuple(params + [int(policy_id)]),
            )
        return self.get_by_id(policy_id=policy_id)
