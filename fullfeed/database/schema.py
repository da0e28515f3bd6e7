"""
FullFeed Database Schema
========================

SQLite schema for users, their feeds and the feed entries.

- users: accounts and their remote content API endpoint
- feeds: subscriptions with crawler/remote flags, scraper and rewrite rules
- entries: feed items, unique per (feed_id, url); the unique key backs the
  "already stored" check done before any content is fetched
"""

import sqlite3
import logging
from pathlib import Path
from typing import Dict, Set

logger = logging.getLogger(__name__)

# Creation order matters for the foreign keys
TABLE_DDL: Dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            remote_api_url TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "feeds": """
        CREATE TABLE IF NOT EXISTS feeds (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            feed_url TEXT NOT NULL,
            title TEXT,
            crawler BOOLEAN DEFAULT FALSE,
            use_remote_content BOOLEAN DEFAULT FALSE,
            scraper_rules TEXT NOT NULL DEFAULT '',
            rewrite_rules TEXT NOT NULL DEFAULT '',
            user_agent TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(user_id, feed_url)
        )
    """,
    "entries": """
        CREATE TABLE IF NOT EXISTS entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
            url TEXT NOT NULL,
            title TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(feed_id, url)
        )
    """,
}

INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_feeds_user ON feeds(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_entries_user ON entries(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_entries_created ON entries(created_at)",
)

EXPECTED_TABLES: Set[str] = set(TABLE_DDL)


class DatabaseSchema:
    """Creates and verifies the FullFeed tables."""

    def __init__(self, db_path: str = "data/fullfeed.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """Open a standalone connection with foreign keys enforced."""
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def create_tables(self) -> None:
        """Create missing tables and indexes. Safe to run repeatedly."""
        with self.get_connection() as conn:
            for name, ddl in TABLE_DDL.items():
                conn.execute(ddl)
                logger.debug(f"Ensured table {name}")
            for index_sql in INDEXES:
                conn.execute(index_sql)
        logger.info(f"Database schema ready at {self.db_path}")

    def existing_tables(self) -> Set[str]:
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
        return {row[0] for row in rows}

    def verify_schema(self) -> bool:
        """Check every expected table exists and foreign keys are consistent."""
        try:
            missing = EXPECTED_TABLES - self.existing_tables()
            if missing:
                logger.error(f"Schema incomplete, missing tables: {', '.join(sorted(missing))}")
                return False

            with self.get_connection() as conn:
                violations = conn.execute("PRAGMA foreign_key_check").fetchall()
            if violations:
                logger.error(f"Foreign key check reported {len(violations)} violation(s)")
                return False

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False

        return True
