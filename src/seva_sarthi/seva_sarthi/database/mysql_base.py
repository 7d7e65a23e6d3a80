from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One short-lived connection per unit of work; commit on success, rollback on error."""

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def new_id() -> str:
    """Primary keys are UUID strings (CHAR(36)) generated client side."""
    return str(uuid.uuid4())


def in_clause(column: str, values: Sequence[Any]) -> Tuple[str, list]:
    """Build `column IN (%s, ...)`; an empty sequence yields an always-false clause."""

    if not values:
        return "1=0", []
    placeholders = ",".join(["%s"] * len(values))
    return f"{column} IN ({placeholders})", list(values)


def as_bool(value: Any, default: bool = False) -> bool:
    # TINYINT(1) columns come back as 0/1, NULL as None.
    if value is None:
        return default
    return bool(value)


def time_as_hhmm(value: Any) -> Optional[str]:
    """Render a MySQL TIME column as "HH:MM".

    The connector hands TIME back as a timedelta (C extension and pure
    driver alike); `time` and "HH:MM[:SS]" strings are accepted too.
    """

    if value is None:
        return None
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, timedelta):
        minutes = (int(value.total_seconds()) % 86400) // 60
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    if isinstance(value, str):
        hours, _, rest = value.strip().partition(":")
        if not rest:
            raise ValueError(f"Invalid time string: {value!r}")
        return f"{int(hours):02d}:{int(rest[:2]):02d}"
    raise TypeError(f"Unsupported TIME value: {type(value)!r}")
