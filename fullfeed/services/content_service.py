"""
Content Service
===============

Shared service for entry content operations used by the CLI and by feed
refresh jobs.

Features:
- On-demand full content refresh of a stored entry
- Enrichment and storage of freshly fetched feed entries
"""

from typing import List, Optional

from ..config.settings import FullFeedSettings, get_settings
from ..database.connection import DatabaseConnection
from ..database.models import Entry
from ..processing.entry_processor import EntryProcessor
from ..storage.entry_repository import EntryRepository
from ..storage.feed_repository import FeedRepository
from ..storage.user_repository import UserRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ErrorCode, ProcessingError


class ContentService:
    """
    Entry content operations on top of the database.

    Wires repositories and the entry processor together so callers only
    deal with IDs.
    """

    def __init__(
        self,
        db_connection: DatabaseConnection,
        settings: Optional[FullFeedSettings] = None,
        processor: Optional[EntryProcessor] = None,
    ):
        """Initialize the content service.

        Args:
            db_connection: Database connection manager
            settings: Application settings (default: global settings)
            processor: Entry processor (default: one built on this database)
        """
        self.db = db_connection
        self.settings = settings or get_settings()
        self.entry_repository = EntryRepository(db_connection)
        self.feed_repository = FeedRepository(db_connection)
        self.user_repository = UserRepository(db_connection)
        self.processor = processor or EntryProcessor(
            self.entry_repository, self.user_repository, settings=self.settings
        )
        self.logger = get_logger_for_component('content_service')

    def refresh_entry(self, entry_id: int) -> Entry:
        """Fetch the full content of a stored entry now and save it.

        Args:
            entry_id: Entry to refresh

        Returns:
            The updated entry

        Raises:
            ProcessingError: If the entry does not exist
            FullFeedError: Any failure of the on-demand pipeline
        """
        entry = self.entry_repository.get_entry(entry_id)
        if entry is None:
            raise ProcessingError(
                f"Entry {entry_id} not found",
                entry_id=entry_id,
                error_code=ErrorCode.RESOURCE_NOT_FOUND,
                user_message="Entry not found",
            )

        self.logger.info(f"Refreshing content of entry {entry_id}: {entry.url}")
        self.processor.process_entry_web_page(entry)
        self.entry_repository.update_entry_content(entry)

        return entry

    def store_feed_entries(self, feed_id: int, entries: List[Entry]) -> int:
        """Enrich freshly fetched entries of a feed and store the new ones.

        Args:
            feed_id: Feed the entries belong to
            entries: Entries as parsed from the feed

        Returns:
            Number of entries inserted

        Raises:
            ProcessingError: If the feed does not exist
            DatabaseError: If storing fails
        """
        feed = self.feed_repository.get_feed_by_id(feed_id)
        if feed is None:
            raise ProcessingError(
                f"Feed {feed_id} not found",
                error_code=ErrorCode.RESOURCE_NOT_FOUND,
                user_message="Feed not found",
            )

        self.processor.process_feed_entries(feed, entries)
        return self.entry_repository.create_new_entries(entries)
