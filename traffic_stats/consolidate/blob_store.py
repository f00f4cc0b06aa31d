"""
SQLite-backed key/blob store for the consolidated dataset.
"""

import sqlite3
from pathlib import Path


class SqliteBlobStore:
    """
    Minimal get/set-by-key blob store.

    Errors from sqlite3 propagate to the caller.
    """

    def __init__(self, db_path, timeout=60):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            _setup_database(conn.cursor())

    def _connect(self):
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def load(self, key):
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT blob FROM blobs WHERE key = ?', (key,))
            row = cursor.fetchone()
        return None if row is None else bytes(row[0])

    def save(self, key, blob):
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO blobs (key, blob, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET blob = excluded.blob, updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(blob)),
            )
            conn.commit()

    def clear(self):
        with self._connect() as conn:
            conn.execute('DELETE FROM blobs')
            conn.commit()


def _setup_database(cursor):
    """
    Create the blob table and apply SQLite settings.

    Args:
        cursor: SQLite cursor object
    """
    cursor.execute('PRAGMA journal_mode = WAL')
    cursor.execute('PRAGMA synchronous = NORMAL')
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS blobs (
            key TEXT PRIMARY KEY,
            blob BLOB NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)
