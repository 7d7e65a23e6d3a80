"""Create the configured database and apply database/schema.sql (optionally seed.sql too)."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "seva_sarthi"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import get_settings_module

from seva_sarthi.database.bootstrap import apply_schema, apply_seed_sql, list_tables


def _target(db: dict) -> str:
    return f"{db.get('user')}@{db.get('host')}:{db.get('port', 3306)}/{db.get('database')}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply the Seva Sarthi schema")
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql")
    args = parser.parse_args()

    db = dict(importlib.import_module(get_settings_module()).DB_CONFIG)

    count = apply_schema(db, schema_path=REPO_ROOT / "database" / "schema.sql")
    print(f"OK: {count} schema statements -> {_target(db)} ({len(list_tables(db))} tables)")
    if args.seed:
        count = apply_seed_sql(db, seed_path=REPO_ROOT / "database" / "seed.sql")
        print(f"OK: {count} seed statements")


if __name__ == "__main__":
    main()
