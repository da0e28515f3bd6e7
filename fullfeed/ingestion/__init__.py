"""
FullFeed Ingestion Module
=========================

Full-content acquisition strategies:
- local scraping of the entry's original web page
- remote content API lookups
"""

from .remote_content import RemoteContentFetcher
from .scraper import ContentScraper

__all__ = [
    "RemoteContentFetcher",
    "ContentScraper",
]
