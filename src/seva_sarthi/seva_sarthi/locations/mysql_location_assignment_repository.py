from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import LocationAssignment
from .repository import LocationAssignmentRepository


def _ids(value: Any) -> List[str]:
    # JSON columns arrive as str (pure connector) or already decoded.
    if value is None:
        return []
    if isinstance(value, (bytes, str)):
        value = json.loads(value or "[]")
    return [str(v) for v in (value or [])]


def _to_assignment(row: Dict[str, Any]) -> LocationAssignment:
    return LocationAssignment(
        id=row["id"],
        user_id=row["user_id"],
        assigned_by=row["assigned_by"],
        mandir_ids=_ids(row.get("mandir_ids")),
        kshetra_ids=_ids(row.get("kshetra_ids")),
        village_ids=_ids(row.get("village_ids")),
        mandal_ids=_ids(row.get("mandal_ids")),
        updated_at=row.get("updated_at"),
    )


class MySQLLocationAssignmentRepository(LocationAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: str) -> Optional[LocationAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM user_location_assignments WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
        return _to_assignment(row) if row else None

    def list_all(self) -> Sequence[LocationAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM user_location_assignments ORDER BY updated_at DESC")
            rows = fetchall(cur)
        return [_to_assignment(r) for r in rows]

    def upsert(self, assignment: LocationAssignment) -> None:
        a = assignment
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_location_assignments(
                    id, user_id, assigned_by, mandir_ids, kshetra_ids, village_ids, mandal_ids
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    assigned_by=VALUES(assigned_by), mandir_ids=VALUES(mandir_ids),
                    kshetra_ids=VALUES(kshetra_ids), village_ids=VALUES(village_ids),
                    mandal_ids=VALUES(mandal_ids)
                """,
                (
                    a.id or new_id(),
                    a.user_id,
                    a.assigned_by,
                    json.dumps(list(a.mandir_ids)),
                    json.dumps(list(a.kshetra_ids)),
                    json.dumps(list(a.village_ids)),
                    json.dumps(list(a.mandal_ids)),
                ),
            )
