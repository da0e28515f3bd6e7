"""
FullFeed Processing Module
==========================

Entry enrichment pipeline: content acquisition, rewrite rules and
HTML sanitizing.
"""

from .entry_processor import EntryProcessor, FailurePolicy, ContentStrategy
from .rewriter import ContentRewriter
from .sanitizer import HTMLSanitizer

__all__ = [
    'EntryProcessor',
    'FailurePolicy',
    'ContentStrategy',
    'ContentRewriter',
    'HTMLSanitizer',
]
