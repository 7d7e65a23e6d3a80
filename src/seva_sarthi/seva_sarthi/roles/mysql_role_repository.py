from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id
from .model import CustomRole, HierarchyPermission, RoleLevel
from .repository import RoleRepository


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_hierarchy(self) -> Sequence[RoleLevel]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id, role, level, parent_role FROM role_hierarchy ORDER BY level")
            rows = fetchall(cur)
        return [
            RoleLevel(id=r["id"], role=r["role"], level=int(r["level"]), parent_role=r.get("parent_role"))
            for r in rows
        ]

    def get_level(self, role: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT level FROM role_hierarchy WHERE role=%s", (role,))
            row = fetchone(cur)
        return int(row["level"]) if row else None

    def update_hierarchy(self, role_id: str, *, level: int, parent_role: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE role_hierarchy SET level=%s, parent_role=%s WHERE id=%s",
                (int(level), parent_role, role_id),
            )
            return cur.rowcount > 0

    def list_hierarchy_permissions(self) -> Sequence[HierarchyPermission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, higher_role, lower_role, can_view, can_edit, can_delete, can_export, can_assign_locations
                FROM hierarchy_permissions
                ORDER BY higher_role, lower_role
                """
            )
            rows = fetchall(cur)
        return [
            HierarchyPermission(
                id=r["id"],
                higher_role=r["higher_role"],
                lower_role=r["lower_role"],
                can_view=as_bool(r.get("can_view")),
                can_edit=as_bool(r.get("can_edit")),
                can_delete=as_bool(r.get("can_delete")),
                can_export=as_bool(r.get("can_export")),
                can_assign_locations=as_bool(r.get("can_assign_locations")),
            )
            for r in rows
        ]

    def upsert_hierarchy_permission(self, permission: HierarchyPermission) -> None:
        p = permission
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO hierarchy_permissions(
                    id, higher_role, lower_role, can_view, can_edit, can_delete, can_export, can_assign_locations
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    can_view=VALUES(can_view), can_edit=VALUES(can_edit), can_delete=VALUES(can_delete),
                    can_export=VALUES(can_export), can_assign_locations=VALUES(can_assign_locations)
                """,
                (
                    p.id or new_id(),
                    p.higher_role,
                    p.lower_role,
                    p.can_view,
                    p.can_edit,
                    p.can_delete,
                    p.can_export,
                    p.can_assign_locations,
                ),
            )

    def list_custom_roles(self) -> Sequence[CustomRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, role_name, display_name, description, level, is_system_role, is_active
                FROM custom_roles
                WHERE is_active=1
                ORDER BY level IS NULL, level, display_name
                """
            )
            rows = fetchall(cur)
        return [
            CustomRole(
                id=r["id"],
                role_name=r["role_name"],
                display_name=r["display_name"],
                description=r.get("description"),
                level=int(r["level"]) if r.get("level") is not None else None,
                is_system_role=as_bool(r.get("is_system_role")),
                is_active=as_bool(r.get("is_active"), True),
            )
            for r in rows
        ]
