"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FullFeed tests.

- Temporary SQLite databases with the full schema
- Repositories bound to those databases
- Explicit settings objects so no test depends on the environment
"""

import pytest
import os
import sys
from pathlib import Path
from unittest.mock import Mock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["FULLFEED_DEBUG"] = "true"
os.environ["FULLFEED_LOGGING__FILE_PATH"] = ""


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a temporary database, without log files."""
    from fullfeed.config.settings import (
        FullFeedSettings, DatabaseSettings, LoggingSettings, LimitsSettings
    )

    return FullFeedSettings(
        database=DatabaseSettings(path=str(tmp_path / "fullfeed_test.db"), pool_size=2),
        logging=LoggingSettings(file_path=None, console_logging=False),
        limits=LimitsSettings(request_timeout=5),
    )


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def test_database(test_settings):
    """Temporary database file with the schema created."""
    from fullfeed.database.schema import DatabaseSchema

    db_path = test_settings.database.path
    schema = DatabaseSchema(db_path)
    schema.create_tables()

    yield db_path


@pytest.fixture
def db_connection(test_database):
    """Create a database connection manager for testing."""
    from fullfeed.database.connection import DatabaseConnection

    connection = DatabaseConnection(test_database, pool_size=2)
    yield connection

    # Cleanup connections
    connection.close_all_connections()


@pytest.fixture
def user_repository(db_connection):
    from fullfeed.storage.user_repository import UserRepository
    return UserRepository(db_connection)


@pytest.fixture
def feed_repository(db_connection):
    from fullfeed.storage.feed_repository import FeedRepository
    return FeedRepository(db_connection)


@pytest.fixture
def entry_repository(db_connection):
    from fullfeed.storage.entry_repository import EntryRepository
    return EntryRepository(db_connection)


@pytest.fixture
def stored_user(user_repository):
    """A stored user with a remote content endpoint."""
    from fullfeed.database.models import User

    user = User(username="alice", remote_api_url="http://api.example/parser")
    user.id = user_repository.create_user(user)
    return user


@pytest.fixture
def stored_feed(feed_repository, stored_user):
    """A stored feed of ``stored_user`` with remote content enabled."""
    from fullfeed.database.models import Feed

    feed = Feed(
        user_id=stored_user.id,
        feed_url="https://site.example/feed.xml",
        title="Example Site",
        use_remote_content=True,
    )
    feed.id = feed_repository.create_feed(feed)
    return feed


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def make_feed():
    """Factory for feeds that are not stored."""
    from fullfeed.database.models import Feed

    def _make_feed(**overrides):
        fields = {
            "id": 1,
            "user_id": 7,
            "feed_url": "http://site/feed.xml",
            "title": "Site",
        }
        fields.update(overrides)
        return Feed(**fields)

    return _make_feed


@pytest.fixture
def make_entry():
    """Factory for entries that are not stored."""
    from fullfeed.database.models import Entry

    def _make_entry(url="http://site/a", content="<p>summary</p>", **overrides):
        fields = {"user_id": 7, "feed_id": 1, "url": url, "title": "A", "content": content}
        fields.update(overrides)
        return Entry(**fields)

    return _make_entry


@pytest.fixture
def mock_response():
    """Factory for ``requests.Response`` doubles."""

    def _mock_response(status_code=200, json_data=None, json_error=None,
                       headers=None, body=b"", encoding="utf-8"):
        import requests

        response = Mock()
        response.status_code = status_code
        response.headers = headers or {}
        response.encoding = encoding

        if status_code >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(
                f"{status_code} Error", response=response
            )
        else:
            response.raise_for_status.return_value = None

        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = json_data

        response.iter_content.return_value = [body] if body else []
        return response

    return _mock_response
