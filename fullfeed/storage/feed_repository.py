"""
Feed Repository
===============

Repository for feed subscriptions and their enrichment settings.
"""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Feed
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class FeedRepository:
    """Repository for managing feed data in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(self, feed: Feed) -> int:
        """Create a new feed in the database.

        Args:
            feed: Feed object to create

        Returns:
            Feed ID

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO feeds (
                        user_id, feed_url, title, crawler, use_remote_content,
                        scraper_rules, rewrite_rules, user_agent, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    (
                        feed.user_id,
                        feed.feed_url,
                        feed.title,
                        feed.crawler,
                        feed.use_remote_content,
                        feed.scraper_rules,
                        feed.rewrite_rules,
                        feed.user_agent,
                        (feed.created_at or datetime.now(timezone.utc)).isoformat(),
                    ),
                )
                feed_id = cursor.lastrowid
                conn.commit()

            self.logger.info(f"Created feed {feed_id} for user {feed.user_id}: {feed.feed_url}")
            return feed_id

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_feed_by_id(self, feed_id: int) -> Optional[Feed]:
        """Get feed by ID.

        Returns:
            Feed object if found, None otherwise

        Raises:
            DatabaseError: If the lookup fails
        """
        try:
            row = self.db.execute_one("SELECT * FROM feeds WHERE id = ?", (feed_id,))
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to get feed {feed_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return self._row_to_feed(row) if row else None

    def get_feeds_for_user(self, user_id: int) -> List[Feed]:
        """Get all feeds owned by a user, oldest first."""
        try:
            rows = self.db.execute_query(
                "SELECT * FROM feeds WHERE user_id = ? ORDER BY id", (user_id,)
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list feeds for user {user_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return [self._row_to_feed(row) for row in rows]

    def _row_to_feed(self, row: sqlite3.Row) -> Feed:
        data = dict(row)
        data["crawler"] = bool(data.get("crawler"))
        data["use_remote_content"] = bool(data.get("use_remote_content"))
        return Feed(**data)
