from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id
from .model import KaryakarFilters, Profile
from .repository import ProfileRepository

# Columns a caller may write through create()/update_fields().
WRITABLE_COLUMNS = (
    "full_name",
    "email",
    "mobile_number",
    "whatsapp_number",
    "is_whatsapp_same_as_mobile",
    "date_of_birth",
    "age",
    "profession_id",
    "seva_type_id",
    "mandir_id",
    "kshetra_id",
    "village_id",
    "mandal_id",
    "profile_photo_url",
    "notes",
    "role",
    "password_hash",
    "is_active",
)

_SELECT = """
    SELECT id, full_name, email, mobile_number, whatsapp_number, is_whatsapp_same_as_mobile,
           date_of_birth, age, profession_id, seva_type_id, mandir_id, kshetra_id, village_id,
           mandal_id, profile_photo_url, notes, role, password_hash, password_reset_token,
           password_reset_expires_at, is_active, created_at, updated_at
    FROM profiles
"""


def _to_profile(row: Dict[str, Any]) -> Profile:
    return Profile(
        id=row["id"],
        full_name=row["full_name"],
        mobile_number=row["mobile_number"],
        role=row["role"],
        is_active=as_bool(row.get("is_active"), True),
        email=row.get("email"),
        whatsapp_number=row.get("whatsapp_number"),
        is_whatsapp_same_as_mobile=as_bool(row.get("is_whatsapp_same_as_mobile")),
        date_of_birth=row.get("date_of_birth"),
        age=row.get("age"),
        profession_id=row.get("profession_id"),
        seva_type_id=row.get("seva_type_id"),
        mandir_id=row.get("mandir_id"),
        kshetra_id=row.get("kshetra_id"),
        village_id=row.get("village_id"),
        mandal_id=row.get("mandal_id"),
        profile_photo_url=row.get("profile_photo_url"),
        notes=row.get("notes"),
        password_hash=row.get("password_hash"),
        password_reset_token=row.get("password_reset_token"),
        password_reset_expires_at=row.get("password_reset_expires_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _writable(fields: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(fields) - set(WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown profile columns: {sorted(unknown)}")
    return dict(fields)


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where}", params)
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        return self._get_one("id=%s", (user_id,))

    def get_by_email(self, email: str) -> Optional[Profile]:
        return self._get_one("LOWER(email)=LOWER(%s)", (email,))

    def get_by_reset_token(self, token: str) -> Optional[Profile]:
        return self._get_one("password_reset_token=%s", (token,))

    def create(self, fields: Mapping[str, Any]) -> str:
        data = _writable(fields)
        user_id = new_id()
        columns = ["id"] + list(data.keys())
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO profiles({', '.join(columns)}) VALUES({placeholders})",
                tuple([user_id] + list(data.values())),
            )
        return user_id

    def update_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        data = _writable(fields)
        if not data:
            return False
        assignments = ", ".join(f"{col}=%s" for col in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE profiles SET {assignments} WHERE id=%s",
                tuple(list(data.values()) + [user_id]),
            )
            return cur.rowcount > 0

    def set_active(self, user_id: str, *, is_active: bool) -> bool:
        return self.update_fields(user_id, {"is_active": 1 if is_active else 0})

    def set_role(self, user_id: str, role: str) -> bool:
        return self.update_fields(user_id, {"role": role})

    def set_password_hash(self, user_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE profiles
                SET password_hash=%s, password_reset_token=NULL, password_reset_expires_at=NULL
                WHERE id=%s
                """,
                (password_hash, user_id),
            )
            return cur.rowcount > 0

    def set_reset_token(self, user_id: str, *, token: Optional[str], expires_at: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE profiles SET password_reset_token=%s, password_reset_expires_at=%s WHERE id=%s",
                (token, expires_at, user_id),
            )
            return cur.rowcount > 0

    def list_view(self, filters: KaryakarFilters) -> Sequence[dict]:
        clauses = ["1=1"]
        params: list[object] = []

        if filters.search:
            like = f"%{filters.search.lower()}%"
            clauses.append("(LOWER(p.full_name) LIKE %s OR LOWER(p.email) LIKE %s OR p.mobile_number LIKE %s)")
            params.extend([like, like, f"%{filters.search}%"])
        if filters.role:
            clauses.append("p.role=%s")
            params.append(filters.role)
        if filters.status == "active":
            clauses.append("p.is_active=1")
        elif filters.status == "inactive":
            clauses.append("p.is_active=0")
        for column in ("mandir_id", "kshetra_id", "village_id", "mandal_id", "profession_id", "seva_type_id"):
            value = getattr(filters, column)
            if value:
                clauses.append(f"p.{column}=%s")
                params.append(value)
        if filters.created_since:
            clauses.append("p.created_at>=%s")
            params.append(filters.created_since)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT p.id, p.full_name, p.email, p.mobile_number, p.whatsapp_number,
                       p.date_of_birth, p.age, p.role, p.is_active, p.profile_photo_url, p.notes,
                       p.profession_id, p.seva_type_id, p.mandir_id, p.kshetra_id, p.village_id, p.mandal_id,
                       p.created_at,
                       m.name AS mandir_name, k.name AS kshetra_name, v.name AS village_name,
                       md.name AS mandal_name, pr.name AS profession_name, st.name AS seva_type_name
                FROM profiles p
                LEFT JOIN mandirs m ON m.id = p.mandir_id
                LEFT JOIN kshetras k ON k.id = p.kshetra_id
                LEFT JOIN villages v ON v.id = p.village_id
                LEFT JOIN mandals md ON md.id = p.mandal_id
                LEFT JOIN professions pr ON pr.id = p.profession_id
                LEFT JOIN seva_types st ON st.id = p.seva_type_id
                WHERE {where}
                ORDER BY p.created_at DESC
                """,
                tuple(params),
            )
            rows = fetchall(cur)

        for r in rows:
            r["is_active"] = as_bool(r.get("is_active"), True)
        return rows

    def list_basic(self, *, exclude_user_id: Optional[str] = None, search: str = "", role: str = "") -> Sequence[dict]:
        clauses = ["is_active=1"]
        params: list[object] = []
        if exclude_user_id:
            clauses.append("id<>%s")
            params.append(exclude_user_id)
        if search:
            clauses.append("LOWER(full_name) LIKE %s")
            params.append(f"%{search.lower()}%")
        if role:
            clauses.append("role=%s")
            params.append(role)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id, full_name, role, profile_photo_url
                FROM profiles
                WHERE {' AND '.join(clauses)}
                ORDER BY full_name
                """,
                tuple(params),
            )
            return fetchall(cur)

    def role_counts(self) -> Sequence[Dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT role, is_active, COUNT(*) AS total
                FROM profiles
                GROUP BY role, is_active
                """
            )
            rows = fetchall(cur)
        return [{"role": r["role"], "is_active": as_bool(r["is_active"]), "total": int(r["total"])} for r in rows]
