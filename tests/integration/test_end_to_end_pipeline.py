#!/usr/bin/env python3
"""
End-to-End Pipeline Integration Test
====================================

Runs the real pipeline against a file-backed database and document
directory. Only the network edges are replaced: the feed fetch and the
google.generativeai model.
"""

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

import sys
from pathlib import Path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from feedscribe.config.feed_types import DEFAULT_PROFILES, FeedType
from feedscribe.database.connection import DatabaseConnection
from feedscribe.database.models import CONTENT_TABLE_NAME, PENDING_TABLE_HEADER
from feedscribe.database.schema import DatabaseSchema
from feedscribe.delivery.document_sink import MarkdownDocumentSink
from feedscribe.processing.pipeline import PipelineStage, ProcessingPipeline
from feedscribe.storage import PropertyStore, TabularStore


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
GWS = DEFAULT_PROFILES[FeedType.GWS]

ARCHIVED_LINK = "https://workspaceupdates.googleblog.com/2024/06/already-sent.html"
NEW_LINK = "https://workspaceupdates.googleblog.com/2024/06/meet-captions.html"

WORKSPACE_FEED = f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Google Workspace Updates</title>
  <id>tag:blogger.com,1999:blog-1</id>
  <updated>2024-06-14T10:00:00Z</updated>
  <entry>
    <id>tag:blogger.com,1999:post-new</id>
    <title>Translated captions in Meet</title>
    <link rel="self" href="https://www.blogger.com/feeds/1/posts/default/new"/>
    <link rel="alternate" href="{NEW_LINK}"/>
    <published>2024-06-14T09:00:00Z</published>
    <content type="html">&lt;p&gt;Meet now offers translated captions.&lt;/p&gt;</content>
  </entry>
  <entry>
    <id>tag:blogger.com,1999:post-dup</id>
    <title>Already sent update</title>
    <link rel="alternate" href="{ARCHIVED_LINK}"/>
    <published>2024-06-13T09:00:00Z</published>
    <content type="html">Old news.</content>
  </entry>
  <entry>
    <id>tag:blogger.com,1999:post-old</id>
    <title>Stale update</title>
    <link rel="alternate" href="https://workspaceupdates.googleblog.com/2024/05/stale.html"/>
    <published>2024-05-01T09:00:00Z</published>
    <content type="html">Too old.</content>
  </entry>
</feed>
"""


def gemini_response(payload):
    part = SimpleNamespace(text=json.dumps(payload))
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    return SimpleNamespace(candidates=[candidate], usage_metadata=None)


@pytest.fixture
def environment(tmp_path, test_settings):
    db = DatabaseConnection(str(tmp_path / "e2e.db"))
    DatabaseSchema(db).create_tables()

    store = TabularStore(db)
    store.ensure_table(GWS.archive_table, PENDING_TABLE_HEADER)
    store.append_rows(GWS.archive_table, [
        ["2024-06-13T09:00:00+00:00", "Already sent update", ARCHIVED_LINK, "Meet", "General", "x"],
    ])

    secrets = PropertyStore(db, settings=test_settings)
    secrets.set_secret(test_settings.ai.credential_key, "e2e-key")

    yield SimpleNamespace(
        db=db,
        store=store,
        secrets=secrets,
        documents=MarkdownDocumentSink(test_settings.documents.output_dir),
        settings=test_settings,
    )

    db.close()


def test_only_new_in_window_item_is_processed(environment):
    """Stale and already-archived items are dropped; the new one yields one row and one document."""
    fetcher = Mock()
    fetcher.fetch.return_value = WORKSPACE_FEED

    model = Mock()
    model.generate_content.side_effect = [
        gemini_response({"section": "Meet", "subSection": "New Feature",
                         "summary": "Meet translates captions."}),
        gemini_response({"title": "Meet speaks your language", "body": "Today in Meet..."}),
    ]

    with patch("feedscribe.ai.providers.gemini_provider.genai") as genai:
        genai.GenerativeModel.return_value = model

        pipeline = ProcessingPipeline(
            settings=environment.settings,
            store=environment.store,
            documents=environment.documents,
            secrets=environment.secrets,
            fetcher=fetcher,
        )
        result = pipeline.run(FeedType.GWS, now=NOW)

        genai.configure.assert_called_once_with(api_key="e2e-key")

    assert result.stage == PipelineStage.DONE
    assert result.items_parsed == 3
    assert result.items_stale == 1
    assert result.items_duplicate == 1
    assert result.items_classified == 1
    assert model.generate_content.call_count == 2

    pending = environment.store.read_rows(GWS.pending_table)
    assert pending == [[
        "2024-06-14T09:00:00+00:00",
        "Translated captions in Meet",
        NEW_LINK,
        "Meet",
        "New Feature",
        "Meet translates captions.",
    ]]

    assert len(result.document_urls) == 1
    documents = list(Path(environment.settings.documents.output_dir).glob("*.md"))
    assert len(documents) == 1
    assert documents[0].read_text(encoding="utf-8").startswith("# Meet speaks your language")

    content_rows = environment.store.read_rows(CONTENT_TABLE_NAME)
    assert len(content_rows) == 1
    assert content_rows[0][1:4] == ["gws", "Meet", "Meet speaks your language"]
    assert content_rows[0][5] == "1"
