"""
Foundation Tests for FullFeed
=============================

Test suite for core foundation components including database,
configuration, logging, errors and validation.
"""

import json
import logging
import sqlite3

import pytest
from pydantic import ValidationError as PydanticValidationError

from fullfeed.config.settings import (
    FullFeedSettings, DEFAULT_USER_AGENT, LogLevel, get_settings, load_settings
)
from fullfeed.database.connection import DatabaseConnection
from fullfeed.database.models import EnrichmentStats, Entry, Feed, User
from fullfeed.database.schema import DatabaseSchema, EXPECTED_TABLES
from fullfeed.utils.logging import (
    PerformanceLogger, StructuredFormatter, get_logger_for_component
)
from fullfeed.utils.exceptions import (
    ConfigurationError,
    ContentFetchError,
    DatabaseError,
    ErrorCode,
    FullFeedError,
    RemoteEndpointNotConfiguredError,
    RemoteFetchError,
    ResponseDecodeError,
    ScraperError,
    UserLookupError,
    ValidationError,
    get_user_friendly_message,
    is_retryable_error,
)
from fullfeed.utils.validators import URLValidator, validate_url, validate_user_agent


class TestDatabaseSchema:
    """Test database schema creation and validation."""

    def test_create_tables(self, tmp_path):
        db_path = tmp_path / "test.db"
        schema = DatabaseSchema(str(db_path))

        assert not schema.verify_schema()
        schema.create_tables()
        assert schema.verify_schema()

        with sqlite3.connect(db_path) as conn:
            tables = {
                row[0] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
                )
            }
        assert tables == EXPECTED_TABLES

    def test_entry_url_unique_per_feed(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))
        schema.create_tables()

        with schema.get_connection() as conn:
            conn.execute("INSERT INTO users (username) VALUES ('u')")
            conn.execute("INSERT INTO feeds (user_id, feed_url) VALUES (1, 'http://f/1')")
            conn.execute("INSERT INTO feeds (user_id, feed_url) VALUES (1, 'http://f/2')")
            conn.execute("INSERT INTO entries (user_id, feed_id, url) VALUES (1, 1, 'http://e')")
            conn.execute("INSERT INTO entries (user_id, feed_id, url) VALUES (1, 2, 'http://e')")

            with pytest.raises(sqlite3.IntegrityError):
                conn.execute("INSERT INTO entries (user_id, feed_id, url) VALUES (1, 1, 'http://e')")


class TestDatabaseConnection:
    """Test database connection management and pooling."""

    def test_transaction_rollback(self, test_database):
        db = DatabaseConnection(test_database, pool_size=2)

        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                conn.execute("INSERT INTO users (username) VALUES ('rolled_back')")
                raise RuntimeError("abort")

        assert db.execute_one("SELECT * FROM users WHERE username = 'rolled_back'") is None
        db.close_all_connections()

    def test_database_info(self, db_connection):
        info = db_connection.get_database_info()

        assert set(info["table_counts"]) == {"users", "feeds", "entries"}
        assert info["page_size"] > 0


class TestSettings:
    """Test configuration loading."""

    def test_defaults(self, test_settings):
        assert test_settings.limits.request_timeout == 5
        assert test_settings.scraper.default_user_agent == DEFAULT_USER_AGENT
        assert test_settings.remote_content.url_parameter == "url"
        assert test_settings.app_name == "FullFeed"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FULLFEED_LIMITS__REQUEST_TIMEOUT", "42")
        monkeypatch.setenv("FULLFEED_REMOTE_CONTENT__URL_PARAMETER", "link")
        monkeypatch.setenv("FULLFEED_LOGGING__LEVEL", "WARNING")

        settings = FullFeedSettings()

        assert settings.limits.request_timeout == 42
        assert settings.remote_content.url_parameter == "link"
        assert settings.logging.level == LogLevel.WARNING

    def test_debug_forces_debug_log_level(self):
        assert FullFeedSettings(debug=True).get_effective_log_level() == "DEBUG"
        assert FullFeedSettings(debug=False).get_effective_log_level() == "INFO"

    def test_invalid_environment_is_configuration_error(self, monkeypatch):
        monkeypatch.setenv("FULLFEED_LIMITS__REQUEST_TIMEOUT", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings()

        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_get_settings_is_cached(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FULLFEED_DATABASE__PATH", str(tmp_path / "db" / "f.db"))

        first = get_settings(reload=True)
        assert get_settings() is first
        assert get_settings(reload=True) is not first


class TestModels:
    """Test data models."""

    def test_user_endpoint_normalized(self):
        assert User(username="a", remote_api_url=None).remote_api_url == ""
        assert User(username="a", remote_api_url=" http://p ").has_remote_api()

    def test_feed_rules_never_none(self):
        feed = Feed(user_id=1, feed_url="http://f", scraper_rules=None, rewrite_rules=None, user_agent=None)
        assert (feed.scraper_rules, feed.rewrite_rules, feed.user_agent) == ("", "", "")

    def test_entry_content_assignment_is_validated(self):
        entry = Entry(user_id=1, feed_id=1, url="http://e", content=None)
        assert entry.content == ""

        with pytest.raises(PydanticValidationError):
            entry.content = ["not", "text"]

    def test_enrichment_stats(self):
        stats = EnrichmentStats(total_entries=5, scraped=2, remote_fetched=1)
        assert stats.enriched == 3


class TestExceptions:
    """Test the error hierarchy."""

    def test_fetch_error_categories(self):
        assert issubclass(RemoteFetchError, ContentFetchError)
        assert issubclass(ScraperError, ContentFetchError)
        assert issubclass(ResponseDecodeError, ContentFetchError)
        assert issubclass(RemoteEndpointNotConfiguredError, ConfigurationError)
        assert issubclass(UserLookupError, DatabaseError)
        assert not issubclass(RemoteEndpointNotConfiguredError, ContentFetchError)

    def test_to_dict(self):
        error = RemoteFetchError("boom", entry_url="http://e", error_code=ErrorCode.FETCH_HTTP_STATUS)

        data = error.to_dict()

        assert data["error_type"] == "RemoteFetchError"
        assert data["error_code"] == "F002"
        assert data["context"] == {"entry_url": "http://e"}
        assert data["recoverable"] is True
        assert str(error) == "[F002] boom"

    def test_retryable_errors(self):
        assert is_retryable_error(RemoteFetchError("timeout"))
        assert is_retryable_error(ScraperError("503", error_code=ErrorCode.FETCH_HTTP_STATUS))
        assert not is_retryable_error(ResponseDecodeError("garbage"))
        assert not is_retryable_error(RemoteEndpointNotConfiguredError("unset", user_id=1))

    def test_user_friendly_message(self):
        error = RemoteEndpointNotConfiguredError("User 1 has no endpoint", user_id=1)

        assert "endpoint" in get_user_friendly_message(error)
        assert get_user_friendly_message(KeyError("x")).startswith("An unexpected error")
        assert error.context["user_id"] == 1
        assert isinstance(error, FullFeedError)


class TestValidators:
    """Test input validators."""

    def test_entry_url_normalized(self):
        assert URLValidator.validate_entry_url("HTTPS://Site.Example/Path#frag") == "https://site.example/Path"

    @pytest.mark.parametrize("url", ["", "ftp://x/y", "http://", "http://127.0.0.1/", "http://10.0.0.5/x"])
    def test_invalid_entry_urls(self, url):
        with pytest.raises(ValidationError):
            URLValidator.validate_entry_url(url)

    @pytest.mark.parametrize("hostname,expected", [
        ("localhost", True),
        ("[::1]", True),
        ("169.254.1.1", True),
        ("192.168.0.10", True),
        ("8.8.8.8", False),
        ("blog.example", False),
        (None, False),
    ])
    def test_is_private_host(self, hostname, expected):
        assert URLValidator.is_private_host(hostname) is expected

    def test_private_hosts_allowed_when_configured(self):
        assert URLValidator.validate_entry_url("http://localhost:8080/a", allow_private_hosts=True)

    def test_endpoint_may_be_private(self):
        assert URLValidator.validate_endpoint_url("http://localhost:3000/parser") == "http://localhost:3000/parser"

    def test_validate_url(self):
        assert validate_url("https://example.com/feed.xml")
        assert not validate_url("not a url")

    def test_user_agent(self):
        assert validate_user_agent(None) == ""
        assert validate_user_agent(" Bot/1.0 ") == "Bot/1.0"
        with pytest.raises(ValidationError):
            validate_user_agent("Bot\nEvil: 1")


class TestLogging:
    """Test logging helpers."""

    def test_component_logger_context(self):
        adapter = get_logger_for_component("scraper", feed_id=3, entry_url="http://e")

        assert adapter.logger.name == "fullfeed.scraper"
        assert adapter.extra == {"component": "scraper", "feed_id": 3, "entry_url": "http://e"}

    def test_bind_adds_context(self):
        adapter = get_logger_for_component("entry_processor").bind(feed_id=9, entry_url=None)
        assert adapter.extra == {"component": "entry_processor", "feed_id": 9}

    def test_structured_formatter(self):
        record = logging.LogRecord("fullfeed.test", logging.INFO, __file__, 1, "hello", None, None)
        record.feed_id = 4
        record.duration_seconds = 0.25

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello"
        assert data["feed_id"] == 4
        assert data["extra"] == {"duration_seconds": 0.25}

    def test_performance_logger(self, caplog):
        logger = logging.getLogger("fullfeed.perf_test")

        with caplog.at_level(logging.DEBUG, logger="fullfeed.perf_test"):
            with PerformanceLogger(logger, "batch", feed_id=1):
                pass

        assert any("Completed batch" in r.getMessage() for r in caplog.records)
