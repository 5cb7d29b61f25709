"""
FeedScribe Ingestion Module
==========================

RSS/Atom parsing and HTML text extraction.
"""

from .content_cleaner import ContentCleaner, truncate
from .feed_parser import FeedParser, FeedFormat, detect_format, resolve_atom_link

__all__ = [
    'ContentCleaner',
    'truncate',
    'FeedParser',
    'FeedFormat',
    'detect_format',
    'resolve_atom_link',
]
