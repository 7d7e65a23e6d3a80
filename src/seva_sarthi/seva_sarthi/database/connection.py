from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "seva_sarthi"

    @classmethod
    def from_dict(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        """Build from a settings `DB_CONFIG` dict; missing keys keep the defaults."""
        return cls(
            host=str(db_config.get("host", cls.host)),
            port=int(db_config.get("port", cls.port)),
            user=str(db_config.get("user", cls.user)),
            password=str(db_config.get("password", cls.password)),
            database=str(db_config.get("database", cls.database)),
        )


class DatabaseConnection:
    """Process-wide factory for short-lived MySQL connections.

    Every repository call opens its own connection through `db_cursor`;
    nothing is pooled or shared between requests.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    def connect(self):
        c = self._config
        return mysql.connector.connect(
            host=c.host,
            port=c.port,
            user=c.user,
            password=c.password,
            database=c.database,
            use_pure=True,
        )
