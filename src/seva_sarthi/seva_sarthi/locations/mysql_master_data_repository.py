from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Set

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause, new_id, time_as_hhmm
from .repository import MasterDataRepository
from .tables import TableSpec, get_table_spec

_FLAG_COLUMNS = ("is_active", "is_system_role")
_TIME_COLUMNS = ("meeting_time",)


def _clean(row: Dict[str, Any]) -> Dict[str, Any]:
    for col in _FLAG_COLUMNS:
        if col in row:
            row[col] = as_bool(row[col])
    for col in _TIME_COLUMNS:
        if row.get(col) is not None:
            row[col] = time_as_hhmm(row[col])
    return row


def _columns(spec: TableSpec, data: Mapping[str, Any]) -> list[str]:
    allowed = set(spec.columns) | {"is_active", "is_system_role"}
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(f"Unknown columns for {spec.table}: {sorted(unknown)}")
    return list(data.keys())


class MySQLMasterDataRepository(MasterDataRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_rows(self, table: str, *, active_only: bool) -> Sequence[Dict[str, Any]]:
        spec = get_table_spec(table)
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM {spec.table} {where} ORDER BY created_at DESC")
            return [_clean(r) for r in fetchall(cur)]

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        spec = get_table_spec(table)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT * FROM {spec.table} WHERE id=%s", (row_id,))
            row = fetchone(cur)
        return _clean(row) if row else None

    def insert(self, table: str, data: Mapping[str, Any]) -> str:
        spec = get_table_spec(table)
        columns = _columns(spec, data)
        row_id = new_id()
        placeholders = ",".join(["%s"] * (len(columns) + 1))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {spec.table}(id, {', '.join(columns)}) VALUES({placeholders})",
                tuple([row_id] + [data[c] for c in columns]),
            )
        return row_id

    def update(self, table: str, row_id: str, data: Mapping[str, Any]) -> bool:
        spec = get_table_spec(table)
        columns = _columns(spec, data)
        if not columns:
            return False
        assignments = ", ".join(f"{c}=%s" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {spec.table} SET {assignments} WHERE id=%s",
                tuple([data[c] for c in columns] + [row_id]),
            )
            return cur.rowcount > 0

    def soft_delete(self, table: str, row_id: str) -> bool:
        spec = get_table_spec(table)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE {spec.table} SET is_active=0 WHERE id=%s", (row_id,))
            return cur.rowcount > 0

    def options(self, table: str, *, label_column: str = "name") -> Sequence[Dict[str, Any]]:
        spec = get_table_spec(table)
        if label_column not in spec.columns:
            raise ValueError(f"Unknown label column for {spec.table}: {label_column}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT id, {label_column} AS label FROM {spec.table} WHERE is_active=1 ORDER BY {label_column}"
            )
            return fetchall(cur)

    def list_children(self, table: str, *, parent_column: str, parent_id: str) -> Sequence[Dict[str, Any]]:
        spec = get_table_spec(table)
        if parent_column != spec.parent_column:
            raise ValueError(f"{spec.table} has no parent column {parent_column}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM {spec.table} WHERE {parent_column}=%s AND is_active=1 ORDER BY name",
                (parent_id,),
            )
            return [_clean(r) for r in fetchall(cur)]

    def existing_ids(self, table: str, ids: Sequence[str], *, active_only: bool = True) -> Set[str]:
        spec = get_table_spec(table)
        clause, params = in_clause("id", list(ids))
        if active_only:
            clause = f"{clause} AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT id FROM {spec.table} WHERE {clause}", tuple(params))
            return {r["id"] for r in fetchall(cur)}
