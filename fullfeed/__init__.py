"""
FullFeed - Entry Content Enrichment
===================================

Replaces feed entry summaries with the full content of the original article.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables and .env with Pydantic validation
- Ingestion: local page scraping and remote content API client
- Processing: enrichment pipeline, rewrite rules and HTML sanitizing
"""

__version__ = "1.0.0"
__author__ = "FullFeed Development Team"
__description__ = "Full-content enrichment for feed entries"

# Core imports for easy access
from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FullFeedError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "FullFeedError",
]
