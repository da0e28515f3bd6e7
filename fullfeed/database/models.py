"""
FullFeed Data Models
====================

Pydantic data models for users, feeds, entries, and remote content API
payloads. These correspond to the database schema and are mutated in place
by the entry processor.
"""

from datetime import datetime, timezone
from typing import Optional
from dataclasses import dataclass
from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """Account owning feeds, with its per-account remote content endpoint."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    username: str = Field(..., min_length=1, max_length=255, description="Login name")
    remote_api_url: str = Field(default="", description="Remote content API endpoint, empty when unset")
    created_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('remote_api_url', mode='before')
    @classmethod
    def normalize_remote_api_url(cls, v):
        """Store a missing endpoint as an empty string."""
        return (v or "").strip()

    def has_remote_api(self) -> bool:
        """Check whether a remote content endpoint is configured."""
        return bool(self.remote_api_url)

    def __str__(self) -> str:
        return f"User({self.username}:{self.id})"


class Feed(BaseModel):
    """Feed subscription with its content enrichment settings."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = Field(default=None, description="Database primary key")
    user_id: int = Field(..., description="Owning user ID")
    feed_url: str = Field(..., min_length=1, description="Feed URL")
    title: Optional[str] = Field(default=None, max_length=255, description="Feed title")
    crawler: bool = Field(default=False, description="Fetch original pages with the local scraper")
    use_remote_content: bool = Field(default=False, description="Fetch content through the owner's remote API")
    scraper_rules: str = Field(default="", description="CSS selectors for the local scraper")
    rewrite_rules: str = Field(default="", description="Comma-separated rewrite rule names")
    user_agent: str = Field(default="", description="User agent for scraping, empty for default")
    created_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('scraper_rules', 'rewrite_rules', 'user_agent', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        """Opaque rule strings are never None."""
        return v or ""

    def __str__(self) -> str:
        return f"Feed({self.title or self.feed_url})"


class Entry(BaseModel):
    """Feed item whose content is enriched in place."""
    model_config = ConfigDict(validate_assignment=True)

    id: Optional[int] = Field(default=None, description="Database primary key")
    user_id: int = Field(..., description="Owning user ID")
    feed_id: int = Field(..., description="Parent feed ID")
    url: str = Field(..., min_length=1, description="Entry URL, unique within a feed")
    title: str = Field(default="", description="Entry title")
    content: str = Field(default="", description="Entry body HTML")
    feed: Optional[Feed] = Field(default=None, description="Parent feed when loaded")
    created_at: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator('content', 'title', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        return v or ""

    def __str__(self) -> str:
        return f"Entry({self.url})"


class RemoteContentResponse(BaseModel):
    """Payload returned by a remote content API.

    Every field is optional free-form text; only ``content`` is consumed.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    author: Optional[str] = None
    date_published: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None


@dataclass
class EnrichmentStats:
    """Counters for one batch enrichment pass."""
    total_entries: int = 0
    skipped_existing: int = 0
    scraped: int = 0
    remote_fetched: int = 0
    failed: int = 0

    @property
    def enriched(self) -> int:
        """Successful content replacements across both strategies."""
        return self.scraped + self.remote_fetched
