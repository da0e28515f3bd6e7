"""
Entry Repository
================

Repository for feed entries. Also answers the "has this feed already stored
this URL" question the entry processor uses to avoid re-fetching content.
"""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Entry
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode
from .feed_repository import FeedRepository


class EntryRepository:
    """Repository for Entry CRUD operations."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize entry repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.feeds = FeedRepository(db_connection)
        self.logger = get_logger_for_component("entry_repository")

    def entry_url_exists(self, feed_id: int, url: str) -> bool:
        """Check whether the feed already stored an entry with this URL.

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            row = self.db.execute_one(
                "SELECT 1 FROM entries WHERE feed_id = ? AND url = ?",
                (feed_id, url),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to check entry URL {url} for feed {feed_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return row is not None

    def create_entry(self, entry: Entry) -> int:
        """Create a single entry.

        Returns:
            Created entry ID

        Raises:
            DatabaseError: If creation fails, including duplicate URLs
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO entries (user_id, feed_id, url, title, content, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    self._entry_params(entry),
                )
                conn.commit()
                entry_id = cursor.lastrowid

            self.logger.debug(f"Created entry {entry_id}: {entry.url}")
            return entry_id

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create entry: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def create_new_entries(self, entries: List[Entry]) -> int:
        """Insert entries whose URL is not yet stored for their feed.

        Entries already present are left untouched so previously fetched
        full content is never replaced by the feed's summary.

        Returns:
            Number of entries inserted

        Raises:
            DatabaseError: If the batch insert fails
        """
        if not entries:
            return 0

        inserted = 0
        try:
            with self.db.transaction() as conn:
                for entry in entries:
                    cursor = conn.execute(
                        """
                        INSERT OR IGNORE INTO entries
                        (user_id, feed_id, url, title, content, created_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        self._entry_params(entry),
                    )
                    if cursor.rowcount:
                        entry.id = cursor.lastrowid
                        inserted += 1

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to batch create entries: {e}",
                error_code=ErrorCode.DATABASE_TRANSACTION
            ) from e

        self.logger.info(f"Stored {inserted} new entries out of {len(entries)}")
        return inserted

    def get_entry(self, entry_id: int) -> Optional[Entry]:
        """Get entry by ID with its parent feed loaded.

        Returns:
            Entry or None if not found

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            row = self.db.execute_one("SELECT * FROM entries WHERE id = ?", (entry_id,))
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get entry {entry_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        if row is None:
            return None

        entry = Entry(**dict(row))
        entry.feed = self.feeds.get_feed_by_id(entry.feed_id)
        return entry

    def update_entry_content(self, entry: Entry) -> None:
        """Persist the entry's current content.

        Raises:
            DatabaseError: If the update fails
        """
        try:
            self.db.execute_update(
                "UPDATE entries SET content = ? WHERE id = ?",
                (entry.content, entry.id),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update entry {entry.id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

    @staticmethod
    def _entry_params(entry: Entry) -> tuple:
        return (
            entry.user_id,
            entry.feed_id,
            entry.url,
            entry.title,
            entry.content,
            (entry.created_at or datetime.now(timezone.utc)).isoformat(),
        )
