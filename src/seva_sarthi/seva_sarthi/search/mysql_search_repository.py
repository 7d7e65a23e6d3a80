from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import SearchRepository

# table -> extra column shown under the match
_LOCATION_DETAIL = {
    "mandirs": "address",
    "kshetras": "description",
    "villages": "district",
    "mandals": "description",
}


def _like(term: str) -> str:
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class MySQLSearchRepository(SearchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def search_profiles(self, term: str, *, limit: int) -> Sequence[dict]:
        like = _like(term)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, full_name, email, mobile_number, role
                FROM profiles
                WHERE LOWER(full_name) LIKE %s OR LOWER(email) LIKE %s
                   OR mobile_number LIKE %s OR LOWER(notes) LIKE %s
                ORDER BY full_name
                LIMIT %s
                """,
                (like, like, like, like, int(limit)),
            )
            return fetchall(cur)

    def search_tasks(self, term: str, *, limit: int) -> Sequence[dict]:
        like = _like(term)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, title, description, status
                FROM tasks
                WHERE LOWER(title) LIKE %s OR LOWER(description) LIKE %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (like, like, int(limit)),
            )
            return fetchall(cur)

    def search_locations(self, table: str, term: str, *, limit: int) -> Sequence[dict]:
        detail = _LOCATION_DETAIL.get(table)
        if detail is None:
            raise ValueError(f"Not a location table: {table}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, name, {detail} AS detail
                FROM {table}
                WHERE is_active=1 AND LOWER(name) LIKE %s
                ORDER BY name
                LIMIT %s
                """,
                (_like(term), int(limit)),
            )
            return fetchall(cur)
