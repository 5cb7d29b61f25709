"""
FeedScribe - Release Notes to Scripts
=====================================

Ingests the Google Workspace and Google Cloud release-note feeds, keeps the
items that are new within a trailing window, classifies them with Gemini,
records them in a tabular store and writes one narrative script per topic.

Main Components:
- Configuration: environment variables + .env with Pydantic validation
- Ingestion: RSS/Atom parsing with per-entry fault isolation
- Processing: recency/duplicate filter, topic grouping, orchestration
- AI Integration: Gemini classification and content generation with fallbacks
- Storage: SQLite-backed tabular and property stores
"""

__version__ = "1.0.0"
__author__ = "FeedScribe Development Team"
__description__ = "Release-note feed classification and script generation"

from .config.settings import get_settings
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedScribeError

__all__ = [
    "get_settings",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedScribeError",
]
