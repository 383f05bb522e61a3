"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS trade_seq START 1;

-- Snapshot key/value store (user, markets, comments, bookmarks), JSON values
CREATE TABLE IF NOT EXISTS kv_store (
    key             VARCHAR PRIMARY KEY,
    value           JSON NOT NULL,
    updated_at      BIGINT NOT NULL
);

-- Committed trades (append-only)
CREATE TABLE IF NOT EXISTS trade_log (
    id              BIGINT PRIMARY KEY DEFAULT nextval('trade_seq'),
    activity_id     VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    outcome_id      VARCHAR NOT NULL,
    side            VARCHAR NOT NULL,
    author          VARCHAR,
    amount          DOUBLE NOT NULL,
    shares          DOUBLE NOT NULL,
    price           DOUBLE NOT NULL,
    ts              BIGINT NOT NULL
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables and sequences if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
