from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id
from .model import ChatRoom, Message
from .repository import ChatRepository


def _to_message(row: Dict[str, Any]) -> Message:
    return Message(
        id=row["id"],
        room_id=row["room_id"],
        sender_id=row["sender_id"],
        content=row.get("content"),
        message_type=row.get("message_type") or "text",
        is_deleted=as_bool(row.get("is_deleted")),
        created_at=row.get("created_at"),
        sender_name=row.get("sender_name"),
    )


class MySQLChatRepository(ChatRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_room(self, *, name: str, is_group: bool, created_by: str, participant_ids: Sequence[str]) -> str:
        room_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO chat_rooms(id, name, is_group, created_by) VALUES(%s,%s,%s,%s)",
                (room_id, name, 1 if is_group else 0, created_by),
            )
            for user_id in participant_ids:
                cur.execute(
                    "INSERT INTO chat_participants(id, room_id, user_id) VALUES(%s,%s,%s)",
                    (new_id(), room_id, user_id),
                )
        return room_id

    def is_participant(self, room_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM chat_participants WHERE room_id=%s AND user_id=%s",
                (room_id, user_id),
            )
            return fetchone(cur) is not None

    def add_message(self, *, room_id: str, sender_id: str, content: str, message_type: str = "text") -> str:
        message_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO messages(id, room_id, sender_id, content, message_type)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (message_id, room_id, sender_id, content, message_type),
            )
            cur.execute("UPDATE chat_rooms SET updated_at=CURRENT_TIMESTAMP WHERE id=%s", (room_id,))
        return message_id

    def list_rooms(self, user_id: str) -> Sequence[ChatRoom]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.id, r.name, r.is_group, r.created_by, r.created_at, r.updated_at
                FROM chat_rooms r
                JOIN chat_participants cp ON cp.room_id = r.id
                WHERE cp.user_id=%s
                ORDER BY r.updated_at DESC
                """,
                (user_id,),
            )
            rows = fetchall(cur)
        return [
            ChatRoom(
                id=r["id"],
                name=r.get("name"),
                is_group=as_bool(r.get("is_group")),
                created_by=r["created_by"],
                created_at=r.get("created_at"),
                updated_at=r.get("updated_at"),
            )
            for r in rows
        ]

    def list_messages(self, *, user_id: str, room_id: Optional[str] = None, limit: int = 50) -> Sequence[Message]:
        clauses = ["m.is_deleted=0", "cp.user_id=%s"]
        params: list[object] = [user_id]
        if room_id:
            clauses.append("m.room_id=%s")
            params.append(room_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT m.id, m.room_id, m.sender_id, m.content, m.message_type, m.is_deleted, m.created_at,
                       p.full_name AS sender_name
                FROM messages m
                JOIN chat_participants cp ON cp.room_id = m.room_id
                LEFT JOIN profiles p ON p.id = m.sender_id
                WHERE {' AND '.join(clauses)}
                ORDER BY m.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            rows = fetchall(cur)
        return [_to_message(r) for r in rows]

    def get_message(self, message_id: str) -> Optional[Message]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, room_id, sender_id, content, message_type, is_deleted, created_at
                FROM messages
                WHERE id=%s
                """,
                (message_id,),
            )
            row = fetchone(cur)
        return _to_message(row) if row else None

    def soft_delete_message(self, message_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE messages SET is_deleted=1 WHERE id=%s", (message_id,))
            return cur.rowcount > 0
