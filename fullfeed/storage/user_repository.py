"""
User Repository
===============

Account storage and lookup of each user's remote content API endpoint.
"""

import sqlite3
from datetime import datetime, timezone

from ..database.connection import DatabaseConnection
from ..database.models import User
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator
from ..utils.exceptions import DatabaseError, ErrorCode, UserNotFoundError


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize user repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("user_repository")

    def create_user(self, user: User) -> int:
        """Create a new user.

        Args:
            user: User model to create

        Returns:
            Created user ID

        Raises:
            DatabaseError: If creation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (username, remote_api_url, created_at) VALUES (?, ?, ?)",
                    (user.username, user.remote_api_url, (user.created_at or datetime.now(timezone.utc)).isoformat()),
                )
                conn.commit()
                user_id = cursor.lastrowid

            self.logger.info(f"Created user {user_id}: {user.username}")
            return user_id

        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"User {user.username} already exists: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create user: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_user_by_id(self, user_id: int) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If no such user exists
            DatabaseError: If the lookup fails
        """
        try:
            with self.db.get_connection() as conn:
                row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to load user {user_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        if row is None:
            raise UserNotFoundError(user_id)

        return User(**dict(row))

    def set_remote_api_url(self, user_id: int, remote_api_url: str) -> None:
        """Set or clear (empty string) the user's remote content endpoint.

        Raises:
            ValidationError: If a non-empty endpoint is not an http(s) URL
            UserNotFoundError: If no such user exists
            DatabaseError: If the update fails
        """
        remote_api_url = (remote_api_url or "").strip()
        if remote_api_url:
            remote_api_url = URLValidator.validate_endpoint_url(remote_api_url)

        try:
            updated = self.db.execute_update(
                "UPDATE users SET remote_api_url = ? WHERE id = ?",
                (remote_api_url, user_id),
            )
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update user {user_id}: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        if not updated:
            raise UserNotFoundError(user_id)

        self.logger.info(f"Updated remote content endpoint for user {user_id}")
