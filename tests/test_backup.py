from __future__ import annotations

import importlib.util
import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from seva_sarthi.database.backup import backup_filename, build_backup_document, fetch_tables, write_json_backup

NOW = datetime(2026, 2, 14, 6, 30, 0)


def test_document_drops_password_columns():
    doc = build_backup_document(
        {"profiles": [{"id": "u1", "full_name": "Hari", "password_hash": "x", "password_reset_token": "t"}]},
        now=NOW,
    )
    assert doc == {"timestamp": "2026-02-14T06:30:00", "data": {"profiles": [{"id": "u1", "full_name": "Hari"}]}}


def test_filename_uses_date():
    assert backup_filename(NOW) == "seva-sarthi-backup-2026-02-14.json"


def test_write_json_backup(tmp_path):
    def fake_fetch(db_config):
        assert db_config == {"database": "seva_sarthi"}
        return {
            "villages": [{"id": "v1", "name": "ગામ", "population": Decimal("1200"), "created_at": date(2026, 1, 1)}],
        }

    path = write_json_backup({"database": "seva_sarthi"}, tmp_path / "backups", now=NOW, fetch=fake_fetch)

    assert path.name == "seva-sarthi-backup-2026-02-14.json"
    doc = json.loads(path.read_text(encoding="utf-8"))
    assert doc["data"]["villages"] == [{"id": "v1", "name": "ગામ", "population": 1200.0, "created_at": "2026-01-01"}]


def test_fetch_tables_rejects_unknown_table_before_connecting():
    with pytest.raises(ValueError, match="permissions"):
        fetch_tables({"database": "nowhere"}, tables=["profiles", "permissions"])


def _load_backup_script():
    path = Path(__file__).resolve().parents[1] / "scripts" / "backup.py"
    spec = importlib.util.spec_from_file_location("seva_backup_script", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_script_writes_json_snapshot_unless_full_dump_requested(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    script = _load_backup_script()
    calls = []
    monkeypatch.setattr(script, "write_json_backup", lambda db, out: calls.append("json") or out / "snap.json")
    monkeypatch.setattr(script, "_mysqldump", lambda db, out: calls.append("dump") or out / "dump.sql")

    assert script.main(["--out", str(tmp_path)]).name == "snap.json"
    assert script.main(["--out", str(tmp_path), "--full-dump"]).name == "dump.sql"
    assert calls == ["json", "dump"]
