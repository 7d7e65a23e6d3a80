"""Schema / seed application used by `scripts/` and by `create_app` when AUTO_INIT_DB is set."""

from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import List

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import SystemRole
from .connection import DBConfig

# quoted literals are kept whole so a ';' inside a string never ends a statement
_SQL_TOKEN_RE = re.compile(r"'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.)*\"|;|[^'\";]+|['\"]", re.S)
_CREATE_DB_RE = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DB_RE = re.compile(r"(?im)^\s*USE\b.*?;\s*$")


def _connect(db_config: dict, *, with_database: bool = True):
    target = DBConfig.from_dict(db_config)
    return mysql.connector.connect(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
        **({"database": target.database} if with_database else {}),
    )


@contextmanager
def _session(db_config: dict, *, with_database: bool = True, dictionary: bool = False):
    conn = _connect(db_config, with_database=with_database)
    try:
        cur = conn.cursor(dictionary=dictionary)
        yield cur
        conn.commit()
    finally:
        conn.close()


def _load_sql(path: str | Path) -> str:
    """Read a SQL file without its CREATE DATABASE / USE lines and `--` comments.

    The target database always comes from DB_CONFIG, whatever name the file uses.
    """

    sql = Path(path).read_text(encoding="utf-8")
    sql = _USE_DB_RE.sub("", _CREATE_DB_RE.sub("", sql))
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def split_sql_statements(sql: str) -> List[str]:
    statements: List[str] = []
    current: List[str] = []
    for token in _SQL_TOKEN_RE.findall(sql):
        if token == ";":
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
        else:
            current.append(token)
    tail = "".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def _run_file(db_config: dict, path: str | Path) -> int:
    statements = split_sql_statements(_load_sql(path))
    with _session(db_config) as cur:
        for stmt in statements:
            cur.execute(stmt)
    return len(statements)


def ensure_database_exists(db_config: dict) -> None:
    name = DBConfig.from_dict(db_config).database
    with _session(db_config, with_database=False) as cur:
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    ensure_database_exists(db_config)
    return _run_file(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> int:
    return _run_file(db_config, seed_path)


def ensure_super_admin(db_config: dict, *, email: str, password: str, full_name: str = "Super Admin") -> None:
    """Create the configured super admin, or reset its password / role / active flag."""

    email = email.strip().lower()
    password_hash = generate_password_hash(password)
    with _session(db_config, dictionary=True) as cur:
        cur.execute("SELECT id FROM profiles WHERE email=%s", (email,))
        if cur.fetchone():
            cur.execute(
                "UPDATE profiles SET full_name=%s, password_hash=%s, role=%s, is_active=1 WHERE email=%s",
                (full_name, password_hash, SystemRole.SUPER_ADMIN.value, email),
            )
            return
        cur.execute(
            """
            INSERT INTO profiles (id, full_name, email, mobile_number, password_hash, role, is_active)
            VALUES (%s, %s, %s, %s, %s, %s, 1)
            """,
            (str(uuid.uuid4()), full_name, email, "0000000000", password_hash, SystemRole.SUPER_ADMIN.value),
        )


def list_tables(db_config: dict) -> list[str]:
    with _session(db_config) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]

