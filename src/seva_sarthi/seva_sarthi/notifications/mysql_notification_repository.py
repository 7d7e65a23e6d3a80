from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id
from .model import Notification
from .repository import NotificationRepository

_NOT_EXPIRED = "(expires_at IS NULL OR expires_at > NOW())"


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, user_id: str, *, limit: int = 50) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, user_id, title, message, type, is_read, created_at, expires_at
                FROM notifications
                WHERE user_id=%s AND {_NOT_EXPIRED}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            rows = fetchall(cur)
        return [
            Notification(
                id=r["id"],
                user_id=r["user_id"],
                title=r["title"],
                message=r["message"],
                type=NotificationType(r["type"]),
                is_read=as_bool(r.get("is_read")),
                created_at=r.get("created_at"),
                expires_at=r.get("expires_at"),
            )
            for r in rows
        ]

    def count_unread(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM notifications WHERE user_id=%s AND is_read=0 AND {_NOT_EXPIRED}",
                (user_id,),
            )
            row = fetchone(cur)
        return int(row["total"]) if row else 0

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE id=%s AND user_id=%s",
                (notification_id, user_id),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (user_id,))
            return int(cur.rowcount)

    def create(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        expires_at: Optional[datetime] = None,
    ) -> str:
        notification_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(id, user_id, title, message, type, expires_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (notification_id, user_id, title, message, type.value, expires_at),
            )
        return notification_id
