"""
FullFeed Configuration System
=============================

Configuration management with environment variables and Pydantic models.
Environment variables (``FULLFEED_`` prefix, ``__`` for nested sections)
override Field defaults.
"""

from pathlib import Path
from typing import Dict, Optional
from enum import Enum

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; FullFeed/1.0; +https://github.com/fullfeed/fullfeed)"
)


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LimitsSettings(BaseModel):
    """Network limits shared by the scraper and the remote content fetcher."""
    request_timeout: int = Field(default=20, ge=1, le=300, description="HTTP request timeout in seconds")


class ScraperSettings(BaseModel):
    """Local scraper configuration."""
    default_user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User agent when the feed sets none")
    max_body_size: int = Field(default=2 * 1024 * 1024, ge=1024, description="Largest page body the scraper accepts, in bytes")
    allow_private_hosts: bool = Field(default=False, description="Allow scraping loopback and private network hosts")

    @field_validator('default_user_agent')
    @classmethod
    def validate_user_agent(cls, v):
        """Reject empty user agents."""
        if not v or not v.strip():
            raise ValueError("default_user_agent cannot be empty")
        return v.strip()


class RemoteContentSettings(BaseModel):
    """Remote content API (Mercury-style parser) configuration."""
    url_parameter: str = Field(default="url", min_length=1, description="Query parameter carrying the entry URL")


class DatabaseSettings(BaseModel):
    """Database configuration."""
    path: str = Field(default="data/fullfeed.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/fullfeed.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FullFeedSettings(BaseSettings):
    """Main application settings."""

    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    remote_content: RemoteContentSettings = Field(default_factory=RemoteContentSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="FullFeed", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        env_prefix="FULLFEED_",
        extra="ignore",
    )

    def writable_paths(self) -> Dict[str, Path]:
        """Files the application creates, keyed by the setting naming them."""
        paths = {"database.path": Path(self.database.path)}
        if self.logging.file_path:
            paths["logging.file_path"] = Path(self.logging.file_path)
        return paths

    def validate_configuration(self) -> None:
        """Ensure the parent directory of every writable path can be created."""
        problems = []
        for key, path in self.writable_paths().items():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                problems.append(f"{key}: {e}")

        if problems:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(problems)}",
                error_code=ErrorCode.CONFIG_INVALID,
            )

    def get_effective_log_level(self) -> str:
        """Debug mode forces DEBUG regardless of ``logging.level``."""
        return LogLevel.DEBUG.value if self.debug else self.logging.level.value


def load_settings() -> FullFeedSettings:
    """Load settings from the environment, ``.env`` and defaults, in that order.

    Raises:
        ConfigurationError: If a value is missing or out of range
    """
    load_dotenv()

    try:
        settings = FullFeedSettings()
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid settings: {e.error_count()} error(s): {e}",
            error_code=ErrorCode.CONFIG_INVALID,
        ) from e

    settings.validate_configuration()
    return settings


_settings: Optional[FullFeedSettings] = None


def get_settings(reload: bool = False) -> FullFeedSettings:
    """Return the cached settings, loading them on first use or when ``reload`` is set."""
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
