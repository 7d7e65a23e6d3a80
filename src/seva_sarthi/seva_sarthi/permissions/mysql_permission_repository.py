from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, new_id
from .model import ModulePermission, PermissionFlags
from .repository import PermissionRepository

_FLAG_COLUMNS = "can_view, can_add, can_edit, can_delete, can_export"


class MySQLPermissionRepository(PermissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_role(self, role: str) -> Sequence[ModulePermission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT role, module_name, {_FLAG_COLUMNS} FROM role_permissions WHERE role=%s ORDER BY module_name",
                (role,),
            )
            rows = fetchall(cur)
        return [ModulePermission(module_name=r["module_name"], flags=PermissionFlags.from_row(r), role=r["role"]) for r in rows]

    def list_for_user(self, user_id: str) -> Sequence[ModulePermission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id, module_name, {_FLAG_COLUMNS} FROM user_permissions WHERE user_id=%s ORDER BY module_name",
                (user_id,),
            )
            rows = fetchall(cur)
        return [
            ModulePermission(module_name=r["module_name"], flags=PermissionFlags.from_row(r), user_id=r["user_id"])
            for r in rows
        ]

    def replace_for_user(self, user_id: str, rows: Sequence[ModulePermission]) -> None:
        # Single connection so delete + insert commit (or roll back) together.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_permissions WHERE user_id=%s", (user_id,))
            for row in rows:
                f = row.flags
                cur.execute(
                    f"""
                    INSERT INTO user_permissions(id, user_id, module_name, {_FLAG_COLUMNS})
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (new_id(), user_id, row.module_name, f.view, f.add, f.edit, f.delete, f.export),
                )

    def upsert_for_role(self, *, role: str, module_name: str, flags: PermissionFlags) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO role_permissions(id, role, module_name, {_FLAG_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    can_view=VALUES(can_view), can_add=VALUES(can_add), can_edit=VALUES(can_edit),
                    can_delete=VALUES(can_delete), can_export=VALUES(can_export)
                """,
                (new_id(), role, module_name, flags.view, flags.add, flags.edit, flags.delete, flags.export),
            )
