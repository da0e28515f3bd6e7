"""
Entry Processor
===============

Full-content enrichment of feed entries.

Each entry goes through one pipeline:
1. Content acquisition, by local scraping and/or the owner's remote content API
2. Rewrite rules
3. Sanitizing, always last

Batch mode (freshly fetched feed entries) logs failures and moves on to the
next entry. On-demand mode (a user asking for one entry's full content)
raises them to the caller. Both run the same pipeline under a different
``FailurePolicy``.
"""

from enum import Enum
from typing import List, Optional

from ..config.settings import FullFeedSettings, get_settings
from ..database.models import Entry, EnrichmentStats, Feed
from ..ingestion.remote_content import RemoteContentFetcher
from ..ingestion.scraper import ContentScraper
from ..storage.entry_repository import EntryRepository
from ..storage.user_repository import UserRepository
from ..utils.logging import LoggerAdapter, PerformanceLogger, get_logger_for_component
from ..utils.exceptions import (
    ErrorCode,
    FullFeedError,
    ProcessingError,
    RemoteEndpointNotConfiguredError,
    UserLookupError,
    is_retryable_error,
)
from .rewriter import ContentRewriter
from .sanitizer import HTMLSanitizer


class FailurePolicy(str, Enum):
    """What the pipeline does when content acquisition fails."""
    LOG_AND_CONTINUE = "log_and_continue"
    PROPAGATE = "propagate"


class ContentStrategy(str, Enum):
    """How full content is acquired for an entry."""
    LOCAL_SCRAPE = "local_scrape"
    REMOTE_FETCH = "remote_fetch"
    NONE = "none"


class EntryProcessor:
    """Enriches entries with their full content."""

    def __init__(
        self,
        entry_repository: EntryRepository,
        user_repository: UserRepository,
        settings: Optional[FullFeedSettings] = None,
        scraper: Optional[ContentScraper] = None,
        remote_fetcher: Optional[RemoteContentFetcher] = None,
        rewriter: Optional[ContentRewriter] = None,
        sanitizer: Optional[HTMLSanitizer] = None,
    ):
        """Initialize the processor.

        Args:
            entry_repository: Entry storage, used for the already-stored check
            user_repository: User storage, used to resolve remote API endpoints
            settings: Application settings (default: global settings)
            scraper: Local content scraper
            remote_fetcher: Remote content API client
            rewriter: Rewrite rules engine
            sanitizer: HTML sanitizer
        """
        self.settings = settings or get_settings()
        self.entry_repository = entry_repository
        self.user_repository = user_repository
        self.scraper = scraper or ContentScraper(self.settings)
        self.remote_fetcher = remote_fetcher or RemoteContentFetcher(self.settings)
        self.rewriter = rewriter or ContentRewriter()
        self.sanitizer = sanitizer or HTMLSanitizer()
        self.logger = get_logger_for_component("entry_processor")

    @staticmethod
    def select_strategies(feed: Feed) -> List[ContentStrategy]:
        """Acquisition strategies enabled for ``feed``, in execution order.

        Remote content runs after local scraping and wins when both succeed.
        """
        strategies = []
        if feed.crawler:
            strategies.append(ContentStrategy.LOCAL_SCRAPE)
        if feed.use_remote_content:
            strategies.append(ContentStrategy.REMOTE_FETCH)
        return strategies or [ContentStrategy.NONE]

    def process_feed_entries(self, feed: Feed, entries: List[Entry]) -> None:
        """Enrich freshly fetched entries of ``feed`` in place.

        Never raises for acquisition failures: they are logged and the entry
        keeps its ingested content. Entries already stored for the feed are
        not fetched again.
        """
        logger = self.logger.bind(feed_id=feed.id)
        strategies = self.select_strategies(feed)
        stats = EnrichmentStats(total_entries=len(entries))

        with PerformanceLogger(
            logger, f"enrichment of {len(entries)} entries", feed_id=feed.id
        ):
            for entry in entries:
                self._enrich_entry(
                    entry,
                    feed,
                    strategies,
                    user_id=feed.user_id,
                    policy=FailurePolicy.LOG_AND_CONTINUE,
                    skip_existing=True,
                    stats=stats,
                    logger=logger,
                )

        logger.info(
            f"Enriched {stats.enriched}/{stats.total_entries} entries of feed {feed.id} "
            f"(scraped: {stats.scraped}, remote: {stats.remote_fetched}, "
            f"already stored: {stats.skipped_existing}, failed: {stats.failed})"
        )

    def process_entry_web_page(self, entry: Entry) -> None:
        """Fetch the full content of one stored entry, in place.

        Uses the owner's remote content API when the feed enables it, the
        local scraper otherwise.

        Raises:
            ProcessingError: If the entry has no feed loaded
            UserLookupError: If the entry's owner cannot be loaded
            RemoteEndpointNotConfiguredError: If remote content is enabled
                but the owner has no API endpoint
            ContentFetchError: If fetching fails, unchanged
        """
        feed = entry.feed
        if feed is None:
            raise ProcessingError(
                f"Entry {entry.id} has no feed loaded",
                entry_id=entry.id,
                error_code=ErrorCode.ENTRY_FEED_MISSING,
            )

        if feed.use_remote_content:
            strategy = ContentStrategy.REMOTE_FETCH
        else:
            strategy = ContentStrategy.LOCAL_SCRAPE

        self._enrich_entry(
            entry,
            feed,
            [strategy],
            user_id=entry.user_id,
            policy=FailurePolicy.PROPAGATE,
            logger=self.logger.bind(feed_id=feed.id, entry_url=entry.url),
        )

    def _enrich_entry(
        self,
        entry: Entry,
        feed: Feed,
        strategies: List[ContentStrategy],
        user_id: int,
        policy: FailurePolicy,
        skip_existing: bool = False,
        stats: Optional[EnrichmentStats] = None,
        logger: Optional[LoggerAdapter] = None,
    ) -> None:
        logger = logger or self.logger
        if stats is None:
            stats = EnrichmentStats(total_entries=1)

        fetching = [s for s in strategies if s is not ContentStrategy.NONE]
        if fetching and skip_existing and self._is_already_stored(feed, entry, logger):
            logger.debug(f"Entry {entry.url} already stored, not fetching it again")
            stats.skipped_existing += 1
            fetching = []

        entry_failed = False
        for strategy in fetching:
            try:
                content = self._acquire(strategy, entry, feed, user_id, policy, logger)
            except Exception as e:
                if policy is FailurePolicy.PROPAGATE:
                    raise
                entry_failed = True
                self._log_failure(strategy, entry, e, logger)
                continue

            if not content:
                continue

            entry.content = content
            if strategy is ContentStrategy.LOCAL_SCRAPE:
                stats.scraped += 1
            else:
                stats.remote_fetched += 1

        if entry_failed:
            stats.failed += 1

        entry.content = self.rewriter.rewrite(entry.url, entry.content, feed.rewrite_rules)
        entry.content = self.sanitizer.sanitize(entry.url, entry.content)

    def _acquire(
        self,
        strategy: ContentStrategy,
        entry: Entry,
        feed: Feed,
        user_id: int,
        policy: FailurePolicy,
        logger: LoggerAdapter,
    ) -> str:
        """Fetch content with ``strategy``; empty when there is nothing to use."""
        if strategy is ContentStrategy.LOCAL_SCRAPE:
            logger.debug(f"Scraping {entry.url}")
            return self.scraper.fetch(entry.url, feed.scraper_rules, feed.user_agent)

        if strategy is ContentStrategy.REMOTE_FETCH:
            api_url = self._resolve_remote_api_url(user_id, policy, logger)
            if not api_url:
                return ""
            logger.debug(f"Fetching {entry.url} from remote content API")
            return self.remote_fetcher.fetch(entry.url, api_url)

        return ""

    def _resolve_remote_api_url(
        self, user_id: int, policy: FailurePolicy, logger: LoggerAdapter
    ) -> Optional[str]:
        """Return the user's remote API endpoint, None to skip remote fetching."""
        try:
            user = self.user_repository.get_user_by_id(user_id)
        except FullFeedError as e:
            if policy is FailurePolicy.PROPAGATE:
                raise UserLookupError(
                    f"Unable to load user {user_id}: {e}", user_id=user_id
                ) from e
            logger.debug(f"Skipping remote content, user {user_id} not loaded: {e}")
            return None

        if not user.has_remote_api():
            if policy is FailurePolicy.PROPAGATE:
                raise RemoteEndpointNotConfiguredError(
                    f"User {user_id} has no remote content API endpoint",
                    user_id=user_id,
                )
            logger.debug(f"Skipping remote content, user {user_id} has no endpoint")
            return None

        return user.remote_api_url

    def _is_already_stored(self, feed: Feed, entry: Entry, logger: LoggerAdapter) -> bool:
        try:
            return self.entry_repository.entry_url_exists(feed.id, entry.url)
        except FullFeedError as e:
            logger.error(f"Unable to check whether {entry.url} is stored, not fetching it: {e}")
            return True

    def _log_failure(
        self, strategy: ContentStrategy, entry: Entry, error: Exception, logger: LoggerAdapter
    ) -> None:
        if isinstance(error, FullFeedError):
            retry_hint = "retryable" if is_retryable_error(error) else "not retryable"
            logger.warning(
                f"{strategy.value} failed for {entry.url} ({retry_hint}): {error}",
                extra={"error_code": error.error_code.value if error.error_code else None},
            )
        else:
            logger.error(f"{strategy.value} failed unexpectedly for {entry.url}: {error}")
