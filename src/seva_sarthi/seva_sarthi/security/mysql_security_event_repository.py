from __future__ import annotations

import json
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, new_id
from .model import SecurityEvent
from .repository import SecurityEventRepository


class MySQLSecurityEventRepository(SecurityEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(
        self,
        *,
        event_type: str,
        user_id: Optional[str],
        details: Dict[str, Any],
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> str:
        event_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO security_events(id, event_type, user_id, details, ip_address, user_agent)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (event_id, event_type, user_id, json.dumps(details, default=str), ip_address, user_agent),
            )
        return event_id

    def list_recent(self, *, event_type: Optional[str] = None, limit: int = 100) -> Sequence[SecurityEvent]:
        clauses = ["1=1"]
        params: list[object] = []
        if event_type:
            clauses.append("event_type=%s")
            params.append(event_type)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, event_type, user_id, details, ip_address, user_agent, created_at
                FROM security_events
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            rows = fetchall(cur)

        out: list[SecurityEvent] = []
        for r in rows:
            details = r.get("details")
            if isinstance(details, (bytes, str)):
                details = json.loads(details or "{}")
            out.append(
                SecurityEvent(
                    id=r["id"],
                    event_type=r["event_type"],
                    created_at=r["created_at"],
                    user_id=r.get("user_id"),
                    details=details or {},
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                )
            )
        return out
