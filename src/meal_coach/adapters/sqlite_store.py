"""SQLite-backed persistent key-value store."""

import re
import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from meal_coach.services.cache import KeyValueStore

_TABLE_NAME = re.compile(r"^[a-z_][a-z0-9_]*$")


def connect(db_path: Path) -> sqlite3.Connection:
    """Open a connection, creating parent directories as needed."""
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


@dataclass
class SqliteCache(KeyValueStore):
    """Key-value table that survives restarts; values carry a write time."""

    conn: sqlite3.Connection
    table: str = "kv_store"

    def __post_init__(self) -> None:
        if not _TABLE_NAME.match(self.table):
            raise ValueError(f"Invalid table name: {self.table}")
        with self.conn:
            self.conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    written_at TEXT NOT NULL
                );
                """
            )

    @classmethod
    def open(cls, db_path: Path, table: str = "kv_store") -> "SqliteCache":
        """Open a store backed by a database file."""
        return cls(conn=connect(db_path), table=table)

    def get(self, key: str) -> str | None:
        """Return the stored value for a key."""
        row = self.conn.execute(
            f"SELECT value FROM {self.table} WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Insert or replace a value, stamping the write time."""
        with self.conn:
            self.conn.execute(
                f"""
                INSERT INTO {self.table} (key, value, written_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    written_at = excluded.written_at
                """,
                (key, value, datetime.now(tz=UTC).isoformat()),
            )

    def has(self, key: str) -> bool:
        """Return True when the key is stored."""
        row = self.conn.execute(
            f"SELECT 1 FROM {self.table} WHERE key = ?", (key,)
        ).fetchone()
        return row is not None

    def written_at(self, key: str) -> datetime | None:
        """Return when a key was last written."""
        row = self.conn.execute(
            f"SELECT written_at FROM {self.table} WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return datetime.fromisoformat(row["written_at"])

    def keys(self) -> list[str]:
        """Return all stored keys."""
        rows = self.conn.execute(f"SELECT key FROM {self.table}").fetchall()
        return [row["key"] for row in rows]

    def delete(self, key: str) -> None:
        """Remove a key."""
        with self.conn:
            self.conn.execute(f"DELETE FROM {self.table} WHERE key = ?", (key,))

    def clear(self) -> None:
        """Remove all keys."""
        with self.conn:
            self.conn.execute(f"DELETE FROM {self.table}")

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
