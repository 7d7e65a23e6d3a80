from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from ..core.enums import TaskPriority, TaskStatus, TaskType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import Task, TaskComment
from .repository import TaskRepository

WRITABLE_COLUMNS = (
    "title",
    "description",
    "assigned_by",
    "assigned_to",
    "status",
    "priority",
    "task_type",
    "due_date",
    "mandir_id",
    "kshetra_id",
    "village_id",
    "mandal_id",
)

_SELECT = """
    SELECT t.id, t.title, t.description, t.assigned_by, t.assigned_to, t.status, t.priority,
           t.task_type, t.due_date, t.mandir_id, t.kshetra_id, t.village_id, t.mandal_id,
           t.created_at, t.updated_at,
           pb.full_name AS assigned_by_name, pt.full_name AS assigned_to_name
    FROM tasks t
    LEFT JOIN profiles pb ON pb.id = t.assigned_by
    LEFT JOIN profiles pt ON pt.id = t.assigned_to
"""

_SCOPES = {
    "all": ("(t.assigned_to=%s OR t.assigned_by=%s)", 2),
    "assigned": ("t.assigned_to=%s", 1),
    "created": ("t.assigned_by=%s", 1),
}


def _to_task(row: Dict[str, Any]) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        assigned_by=row["assigned_by"],
        status=TaskStatus(row["status"]),
        priority=TaskPriority(row["priority"]),
        task_type=TaskType(row["task_type"]),
        description=row.get("description"),
        assigned_to=row.get("assigned_to"),
        due_date=row.get("due_date"),
        mandir_id=row.get("mandir_id"),
        kshetra_id=row.get("kshetra_id"),
        village_id=row.get("village_id"),
        mandal_id=row.get("mandal_id"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        assigned_by_name=row.get("assigned_by_name"),
        assigned_to_name=row.get("assigned_to_name"),
    )


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, (TaskStatus, TaskPriority, TaskType)) else value


def _writable(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown task columns: {sorted(unknown)}")
    return {k: _db_value(v) for k, v in fields.items()}


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, task_id: str) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE t.id=%s", (task_id,))
            row = fetchone(cur)
        return _to_task(row) if row else None

    def create(self, fields: Mapping[str, Any]) -> str:
        data = _writable(fields)
        task_id = new_id()
        columns = ["id"] + list(data.keys())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO tasks({', '.join(columns)}) VALUES({','.join(['%s'] * len(columns))})",
                tuple([task_id] + list(data.values())),
            )
        return task_id

    def update_fields(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        data = _writable(fields)
        if not data:
            return False
        assignments = ", ".join(f"{c}=%s" for c in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE tasks SET {assignments} WHERE id=%s",
                tuple(list(data.values()) + [task_id]),
            )
            return cur.rowcount > 0

    def set_status(self, task_id: str, status: TaskStatus) -> bool:
        return self.update_fields(task_id, {"status": status})

    def delete(self, task_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM tasks WHERE id=%s", (task_id,))
            return cur.rowcount > 0

    def list_for_user(self, user_id: str, *, scope: str = "all") -> Sequence[Task]:
        clause, n = _SCOPES[scope]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {clause} ORDER BY t.created_at DESC", tuple([user_id] * n))
            rows = fetchall(cur)
        return [_to_task(r) for r in rows]

    def list_report(
        self,
        *,
        status: Optional[TaskStatus] = None,
        since: Optional[datetime] = None,
    ) -> Sequence[dict]:
        clauses = ["1=1"]
        params: list[object] = []
        if status:
            clauses.append("t.status=%s")
            params.append(status.value)
        if since:
            clauses.append("t.created_at>=%s")
            params.append(since)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY t.created_at DESC",
                tuple(params),
            )
            rows = fetchall(cur)
        return [_to_task(r).as_dict() for r in rows]

    def list_due_between(self, user_id: str, *, start: date, end: date) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE (t.assigned_to=%s OR t.assigned_by=%s) AND t.due_date BETWEEN %s AND %s
                ORDER BY t.due_date, t.created_at
                """,
                (user_id, user_id, start, end),
            )
            rows = fetchall(cur)
        return [_to_task(r) for r in rows]

    def add_comment(self, *, task_id: str, user_id: str, comment: str) -> str:
        comment_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO task_comments(id, task_id, user_id, comment) VALUES(%s,%s,%s,%s)",
                (comment_id, task_id, user_id, comment),
            )
        return comment_id

    def list_comments(self, task_id: str) -> Sequence[TaskComment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.id, c.task_id, c.user_id, c.comment, c.created_at, p.full_name AS user_name
                FROM task_comments c
                LEFT JOIN profiles p ON p.id = c.user_id
                WHERE c.task_id=%s
                ORDER BY c.created_at
                """,
                (task_id,),
            )
            rows = fetchall(cur)
        return [
            TaskComment(
                id=r["id"],
                task_id=r["task_id"],
                user_id=r["user_id"],
                comment=r["comment"],
                created_at=r.get("created_at"),
                user_name=r.get("user_name"),
            )
            for r in rows
        ]
