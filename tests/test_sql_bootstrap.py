from __future__ import annotations

from seva_sarthi.database.bootstrap import _load_sql, split_sql_statements


def test_split_keeps_semicolons_inside_quotes():
    sql = "INSERT INTO mandirs (name) VALUES ('A;B');\nINSERT INTO mandirs (name) VALUES (\"it's\");"
    assert split_sql_statements(sql) == [
        "INSERT INTO mandirs (name) VALUES ('A;B')",
        "INSERT INTO mandirs (name) VALUES (\"it's\")",
    ]


def test_split_ignores_empty_statements_and_keeps_tail():
    assert split_sql_statements(";;\nSELECT 1;\n  ;SELECT 2") == ["SELECT 1", "SELECT 2"]


def test_load_sql_drops_database_selection_and_comments(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(
        "-- header\n"
        "CREATE DATABASE IF NOT EXISTS other_db CHARACTER SET utf8mb4;\n"
        "USE other_db;\n"
        "CREATE TABLE mandirs (id CHAR(36) PRIMARY KEY);\n",
        encoding="utf-8",
    )
    assert split_sql_statements(_load_sql(path)) == ["CREATE TABLE mandirs (id CHAR(36) PRIMARY KEY)"]
