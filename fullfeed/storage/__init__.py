"""
FullFeed Storage Layer
======================

Repository pattern implementations for users, feeds, and entries.
"""

from .entry_repository import EntryRepository
from .feed_repository import FeedRepository
from .user_repository import UserRepository

__all__ = [
    "EntryRepository",
    "FeedRepository",
    "UserRepository",
]
