"""Backup database.

Default: JSON snapshot of members, tasks and the location hierarchy without
password hashes or reset tokens.
`--full-dump`: complete SQL dump through `mysqldump` (MySQL client tools must be
installed). It includes every column, credentials too, so keep it off shared storage.
"""

from __future__ import annotations

import argparse
import importlib
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
for p in (REPO_ROOT, REPO_ROOT / "src" / "seva_sarthi"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from config import get_settings_module

from seva_sarthi.database.backup import write_json_backup


def _mysqldump(db: dict, out_dir: Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"{db['database']}_{ts}.sql"

    cmd = [
        "mysqldump",
        f"-h{db['host']}",
        f"-P{db.get('port', 3306)}",
        f"-u{db['user']}",
        f"-p{db['password']}",
        db["database"],
    ]
    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True)
    except FileNotFoundError:
        out_file.unlink(missing_ok=True)
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools or run without --full-dump.")
    return out_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Back up the Seva Sarthi database")
    parser.add_argument(
        "--full-dump",
        action="store_true",
        help="write a complete mysqldump instead of the JSON snapshot (includes password hashes)",
    )
    parser.add_argument("--out", default=str(REPO_ROOT / "backups"), help="output directory")
    return parser


def main(argv: Optional[List[str]] = None) -> Path:
    args = build_parser().parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    db = dict(settings.DB_CONFIG)

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    if args.full_dump:
        print("WARNING: full dump contains password hashes and reset tokens")
        out_file = _mysqldump(db, out_dir)
    else:
        out_file = write_json_backup(db, out_dir)
    print(f"OK: Backup created: {out_file}")
    return out_file


if __name__ == "__main__":
    main()
