"""
DuckDB Database Manager for Kaiji.
Holds the small key/value state the poller keeps between runs.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import duckdb

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class DatabaseManager:
    """Manages the DuckDB connection."""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file, ':memory:' for a
                throwaway database. Defaults to data/kaiji.db
        """
        if db_path is None:
            project_root = Path(__file__).parent.parent.parent
            db_path = str(project_root / "data" / "kaiji.db")

        if db_path != ':memory:':
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = duckdb.connect(self.db_path)
            logger.info(f"Database connected: {self.db_path}")
        return self._conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize(self):
        """Create the state table."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                domain TEXT NOT NULL,
                field TEXT NOT NULL,
                value TEXT,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (domain, field)
            )
        """)
        logger.info("Database tables initialized")


class WatermarkStore:
    """Reads and writes integer watermarks keyed by (domain, field)."""

    def __init__(self, db: DatabaseManager):
        self.db = db
        self.db.initialize()

    def get(self, key: Key) -> Optional[int]:
        """
        Read a watermark.

        Returns:
            The stored value, 0 if it is unreadable, None if absent
        """
        domain, field = key
        row = self.db.conn.execute(
            "SELECT value FROM kv_store WHERE domain = ? AND field = ?",
            [domain, field]
        ).fetchone()
        if row is None:
            return None

        try:
            value = int(row[0])
        except (TypeError, ValueError):
            logger.warning(f"Malformed watermark {row[0]!r} for {domain}/{field}, starting over")
            return 0
        if value < 0:
            logger.warning(f"Negative watermark {value} for {domain}/{field}, starting over")
            return 0
        return value

    def set(self, key: Key, value: int):
        domain, field = key
        self.db.conn.execute("""
            INSERT INTO kv_store (domain, field, value, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT (domain, field) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """, [domain, field, str(int(value))])
        logger.debug(f"Watermark {domain}/{field} set to {value}")

    def delete(self, key: Key):
        domain, field = key
        self.db.conn.execute(
            "DELETE FROM kv_store WHERE domain = ? AND field = ?",
            [domain, field]
        )
