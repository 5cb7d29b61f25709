"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FeedScribe tests.

- In-memory database for store and pipeline tests
- Scripted AI provider standing in for Gemini
- RSS and Atom feed documents
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["FEEDSCRIBE_DEBUG"] = "true"
os.environ["FEEDSCRIBE_LOGGING__CONSOLE_LOGGING"] = "false"
os.environ.pop("FEEDSCRIBE_AI__GEMINI_API_KEY", None)

from feedscribe.ai.providers.base import AIProvider, AIProviderType
from feedscribe.config.settings import (
    AISettings,
    DocumentSettings,
    FeedScribeSettings,
    LoggingSettings,
    StorageSettings,
)
from feedscribe.database.connection import DatabaseConnection
from feedscribe.database.models import ClassifiedItem, RawFeedItem
from feedscribe.database.schema import DatabaseSchema
from feedscribe.utils.exceptions import AIError, ErrorCode


REFERENCE_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedProvider(AIProvider):
    """AI provider returning queued responses in order.

    A queued exception instance is raised instead of returned. When the
    queue runs dry, ``default`` is returned.
    """

    def __init__(self, responses: List[Any] = None, default: str = None):
        super().__init__("test-key", "scripted-model", AIProviderType.GEMINI)
        self.responses = list(responses or [])
        self.default = default
        self.prompts: List[str] = []

    def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.usage.requests += 1

        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise AIError(
                "No scripted response",
                provider="scripted",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )
        return response

    def test_connection(self) -> bool:
        return True


# ============================================================================
# Settings and Database Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing every writable path into the test's temp directory."""
    return FeedScribeSettings(
        storage=StorageSettings(path=str(tmp_path / "feedscribe_test.db")),
        documents=DocumentSettings(output_dir=str(tmp_path / "documents")),
        logging=LoggingSettings(file_path=None, console_logging=False),
        ai=AISettings(gemini_api_key=None),
    )


@pytest.fixture
def memory_db():
    """In-memory database with schema, closed after the test."""
    db = DatabaseConnection(":memory:")
    DatabaseSchema(db).create_tables()

    yield db

    db.close()


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


# ============================================================================
# Item Fixtures
# ============================================================================


@pytest.fixture
def reference_now():
    return REFERENCE_NOW


@pytest.fixture
def sample_raw_items():
    """Three recent raw items in feed order."""
    return [
        RawFeedItem(
            title="Gmail adds scheduled send on mobile",
            link="https://workspaceupdates.googleblog.com/2024/06/gmail-scheduled-send.html",
            published_at=datetime(2024, 6, 14, 9, 0, tzinfo=timezone.utc),
            content_text="Scheduled send is now available in the Gmail app.",
        ),
        RawFeedItem(
            title="Meet hardware firmware update",
            link="https://workspaceupdates.googleblog.com/2024/06/meet-hardware.html",
            published_at=datetime(2024, 6, 13, 9, 0, tzinfo=timezone.utc),
            content_text="New firmware for Meet hardware devices.",
        ),
        RawFeedItem(
            title="Gmail label colors",
            link="https://workspaceupdates.googleblog.com/2024/06/gmail-labels.html",
            published_at=datetime(2024, 6, 12, 9, 0, tzinfo=timezone.utc),
            content_text="Additional label colors in Gmail.",
        ),
    ]


@pytest.fixture
def sample_classified_items(sample_raw_items):
    sections = ["Gmail", "Meet", "Gmail"]
    return [
        ClassifiedItem(
            **item.model_dump(),
            section=section,
            sub_section="New Feature",
            summary=f"Summary of {item.title}",
        )
        for item, section in zip(sample_raw_items, sections)
    ]


# ============================================================================
# Feed Documents
# ============================================================================


RSS_DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Google Cloud release notes</title>
    <link>https://cloud.google.com/release-notes</link>
    <description>Release notes</description>
    <item>
      <title>Compute Engine: new machine series</title>
      <link>https://cloud.google.com/compute/docs/release-notes#June_14_2024</link>
      <pubDate>Fri, 14 Jun 2024 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;The &lt;b&gt;C4&lt;/b&gt; machine series is generally available.&lt;/p&gt;</description>
    </item>
    <item>
      <title>BigQuery: query queues</title>
      <link>https://cloud.google.com/bigquery/docs/release-notes#June_13_2024</link>
      <pubDate>Thu, 13 Jun 2024 10:00:00 GMT</pubDate>
      <description>Query queues are available in preview.</description>
    </item>
  </channel>
</rss>
"""

ATOM_DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Google Workspace Updates</title>
  <id>tag:blogger.com,1999:blog-1</id>
  <updated>2024-06-14T10:00:00Z</updated>
  <entry>
    <id>tag:blogger.com,1999:post-1</id>
    <title>Scheduled send in Gmail</title>
    <link rel="self" href="https://www.blogger.com/feeds/1/posts/default/1"/>
    <link rel="alternate" type="text/html" href="https://workspaceupdates.googleblog.com/2024/06/scheduled-send.html"/>
    <published>2024-06-14T09:00:00Z</published>
    <updated>2024-06-14T09:30:00Z</updated>
    <content type="html">&lt;p&gt;Scheduled send is now available.&lt;/p&gt;</content>
  </entry>
  <entry>
    <id>tag:blogger.com,1999:post-2</id>
    <title>Calendar working locations</title>
    <link rel="alternate" type="text/html" href="https://workspaceupdates.googleblog.com/2024/06/working-locations.html"/>
    <updated>2024-06-13T08:00:00Z</updated>
    <summary>Working locations in Calendar.</summary>
  </entry>
</feed>
"""


@pytest.fixture
def rss_document():
    return RSS_DOCUMENT


@pytest.fixture
def atom_document():
    return ATOM_DOCUMENT
