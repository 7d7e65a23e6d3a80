"""Load database/seed.sql and make sure the SUPER_ADMIN_EMAIL account exists."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "seva_sarthi"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import get_settings_module

from seva_sarthi.database.bootstrap import apply_seed_sql, ensure_super_admin


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db = dict(settings.DB_CONFIG)

    count = apply_seed_sql(db, seed_path=REPO_ROOT / "database" / "seed.sql")
    print(f"OK: {count} seed statements -> {db.get('database')}")

    email = getattr(settings, "SUPER_ADMIN_EMAIL", "")
    password = getattr(settings, "SUPER_ADMIN_PASSWORD", "")
    if not (email and password):
        print("SKIP: SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD not set, no super admin created")
        return
    ensure_super_admin(db, email=email, password=password)
    print(f"OK: super admin ready ({email})")


if __name__ == "__main__":
    main()
