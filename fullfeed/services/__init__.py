"""
FullFeed Services
=================

Shared service layer for business logic used across interfaces (CLI, jobs).
"""

from .content_service import ContentService

__all__ = [
    'ContentService',
]
