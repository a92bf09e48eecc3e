"""SQLite connection management and schema for the folder lock store."""

import sqlite3
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS locks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    held_by TEXT NOT NULL,
    lock_type TEXT NOT NULL DEFAULT 'folder' CHECK (lock_type IN ('instance', 'folder')),
    lock_target TEXT NOT NULL,
    locked_at TEXT DEFAULT (datetime('now')),
    UNIQUE(lock_type, lock_target)
);

CREATE INDEX IF NOT EXISTS idx_locks_held_by ON locks(held_by);
"""


def init_db(db_path: Path) -> sqlite3.Connection:
    """Open the lock database, creating the schema if needed."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        conn.executescript(SCHEMA)
        conn.commit()
    except sqlite3.Error:
        conn.close()
        raise
    return conn
