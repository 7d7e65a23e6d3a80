"""JSON snapshot of the key tables (members, tasks and the location hierarchy)."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .bootstrap import _session

BACKUP_TABLES = ("profiles", "tasks", "mandirs", "kshetras", "villages", "mandals")

# never written to a backup file
_SECRET_COLUMNS = ("password_hash", "password_reset_token", "password_reset_expires_at")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)


def build_backup_document(data: Dict[str, List[dict]], *, now: datetime) -> dict:
    cleaned = {
        table: [{k: v for k, v in row.items() if k not in _SECRET_COLUMNS} for row in rows]
        for table, rows in data.items()
    }
    return {"timestamp": now.isoformat(), "data": cleaned}


def backup_filename(now: datetime) -> str:
    return f"seva-sarthi-backup-{now.date().isoformat()}.json"


def fetch_tables(db_config: dict, tables: Iterable[str] = BACKUP_TABLES) -> Dict[str, List[dict]]:
    tables = list(tables)
    unknown = [t for t in tables if t not in BACKUP_TABLES]
    if unknown:
        raise ValueError(f"Tables not allowed in backups: {', '.join(unknown)}")
    out: Dict[str, List[dict]] = {}
    with _session(db_config, dictionary=True) as cur:
        for table in tables:
            cur.execute(f"SELECT * FROM `{table}`")
            out[table] = list(cur.fetchall() or [])
    return out


def write_json_backup(
    db_config: dict,
    out_dir: str | Path,
    *,
    now: Optional[datetime] = None,
    fetch: Callable[[dict], Dict[str, List[dict]]] = fetch_tables,
) -> Path:
    now = now or datetime.now()
    document = build_backup_document(fetch(db_config), now=now)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / backup_filename(now)
    target.write_text(json.dumps(document, indent=2, ensure_ascii=False, default=_json_default), encoding="utf-8")
    return target
