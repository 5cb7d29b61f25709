"""
Unit tests for ProcessingPipeline orchestrator.

Tests the stage sequence and its failure policy:
- Credential check before any I/O
- Fatal fetch/format errors mark the run aborted
- No-op runs when nothing survives filtering
- Persistence, grouping and one document per topic
- Archival of pending rows
"""

import json
import pytest
from unittest.mock import Mock

import sys
from pathlib import Path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from feedscribe.config.feed_types import DEFAULT_PROFILES, FeedType
from feedscribe.database.models import CONTENT_TABLE_NAME, LINK_COLUMN_INDEX, PENDING_TABLE_HEADER
from feedscribe.delivery.document_sink import MarkdownDocumentSink
from feedscribe.processing.pipeline import PipelineResult, PipelineStage, ProcessingPipeline
from feedscribe.storage import PropertyStore, TabularStore
from feedscribe.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    FeedFetchError,
    UnsupportedFeedFormatError,
)


GCP = DEFAULT_PROFILES[FeedType.GCP]


def classification(section, summary="summary"):
    return json.dumps({"section": section, "subSection": "New Feature", "summary": summary})


def generation(title):
    return json.dumps({"title": title, "body": f"Body for {title}"})


class TestProcessingPipeline:
    """Test ProcessingPipeline orchestration."""

    @pytest.fixture
    def store(self, memory_db):
        return TabularStore(memory_db)

    @pytest.fixture
    def secrets(self, memory_db, test_settings):
        props = PropertyStore(memory_db, settings=test_settings)
        props.set_secret("GEMINI_API_KEY", "test-key")
        return props

    @pytest.fixture
    def fetcher(self, rss_document):
        fetcher = Mock()
        fetcher.fetch.return_value = rss_document
        return fetcher

    @pytest.fixture
    def documents(self, test_settings):
        return MarkdownDocumentSink(test_settings.documents.output_dir)

    def build(self, test_settings, store, documents, secrets, fetcher, provider):
        return ProcessingPipeline(
            settings=test_settings,
            store=store,
            documents=documents,
            secrets=secrets,
            fetcher=fetcher,
            ai_provider=provider,
        )

    def test_full_run(self, test_settings, store, documents, secrets, fetcher,
                      scripted_provider, reference_now):
        provider = scripted_provider([
            classification("Compute", "New C4 machines."),
            classification("Data & Analytics", "Query queues."),
            generation("Compute news"),
            generation("Data news"),
        ])
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        result = pipeline.run(FeedType.GCP, now=reference_now)

        assert result.stage == PipelineStage.DONE
        assert result.success
        assert result.items_parsed == 2
        assert result.rows_persisted == 2
        assert result.topic_groups == 2
        assert result.documents_created == 2
        assert result.fallback_classifications == 0

        fetcher.fetch.assert_called_once_with(GCP.feed_url)
        rows = store.read_rows(GCP.pending_table)
        assert [row[3] for row in rows] == ["Compute", "Data & Analytics"]
        assert rows[0][5] == "New C4 machines."
        assert store.get_header(GCP.pending_table) == PENDING_TABLE_HEADER

        content_rows = store.read_rows(CONTENT_TABLE_NAME)
        assert [row[2] for row in content_rows] == ["Compute", "Data & Analytics"]
        assert [row[4] for row in content_rows] == result.document_urls
        assert all(row[1] == "gcp" for row in content_rows)

    def test_missing_credential_aborts_before_io(self, test_settings, store, documents,
                                                  memory_db, fetcher, scripted_provider):
        secrets = PropertyStore(memory_db, settings=test_settings)
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, scripted_provider())

        with pytest.raises(ConfigurationError) as exc_info:
            pipeline.run(FeedType.GCP)

        assert exc_info.value.error_code == ErrorCode.CREDENTIAL_MISSING
        fetcher.fetch.assert_not_called()
        assert store.list_tables() == []

    def test_unsupported_format_aborts_without_writes(self, test_settings, store, documents,
                                                      secrets, scripted_provider):
        fetcher = Mock()
        fetcher.fetch.return_value = "<html><body>maintenance</body></html>"
        provider = scripted_provider()
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        with pytest.raises(UnsupportedFeedFormatError):
            pipeline.run(FeedType.GCP)

        assert store.list_tables() == []
        assert provider.prompts == []

    def test_fetch_failure_propagates(self, test_settings, store, documents, secrets,
                                      scripted_provider):
        fetcher = Mock()
        fetcher.fetch.side_effect = FeedFetchError("boom", feed_url=GCP.feed_url)
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, scripted_provider())

        with pytest.raises(FeedFetchError):
            pipeline.run(FeedType.GCP)

    def test_nothing_new_is_a_no_op(self, test_settings, store, documents, secrets, fetcher,
                                    scripted_provider, reference_now):
        store.ensure_table(GCP.archive_table, PENDING_TABLE_HEADER)
        store.append_rows(GCP.archive_table, [
            ["", "", "https://cloud.google.com/compute/docs/release-notes#June_14_2024", "", "", ""],
            ["", "", "https://cloud.google.com/bigquery/docs/release-notes#June_13_2024", "", "", ""],
        ])
        provider = scripted_provider()
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        result = pipeline.run(FeedType.GCP, now=reference_now)

        assert result.stage == PipelineStage.DONE
        assert result.items_duplicate == 2
        assert result.rows_persisted == 0
        assert result.documents_created == 0
        assert provider.prompts == []
        assert store.row_count(GCP.pending_table) == 0

    def test_failed_services_still_persist_with_fallbacks(self, test_settings, store, documents,
                                                          secrets, fetcher, scripted_provider,
                                                          reference_now):
        provider = scripted_provider(default="not json")
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        result = pipeline.run(FeedType.GCP, now=reference_now)

        assert result.stage == PipelineStage.DONE
        assert result.fallback_classifications == 2
        assert result.rows_persisted == 2
        assert [row[3] for row in store.read_rows(GCP.pending_table)] == ["Unclassified", "Unclassified"]
        assert result.topic_groups == 1
        assert result.fallback_documents == 1

        content_rows = store.read_rows(CONTENT_TABLE_NAME)
        assert content_rows[0][3] == "Unclassified Update"

    def test_archive_pending(self, test_settings, store, documents, secrets, fetcher,
                             scripted_provider, reference_now):
        provider = scripted_provider(default=classification("Compute"))
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)
        pipeline.run(FeedType.GCP, now=reference_now)

        moved = pipeline.archive_pending(FeedType.GCP)

        assert moved == 2
        assert store.row_count(GCP.pending_table) == 0
        assert len(store.read_column(GCP.archive_table, LINK_COLUMN_INDEX)) == 2

        # Archived links are not picked up again
        second = pipeline.run(FeedType.GCP, now=reference_now)
        assert second.items_duplicate == 2
        assert second.rows_persisted == 0

    def test_run_all_covers_every_feed_type(self, test_settings, store, documents, secrets,
                                            fetcher, scripted_provider, reference_now):
        provider = scripted_provider(default=classification("Other"))
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        results = pipeline.run_all(now=reference_now)

        assert [result.feed_type for result in results] == list(FeedType)
        assert fetcher.fetch.call_count == len(FeedType)

    def test_run_all_continues_after_an_aborted_feed(self, test_settings, store, documents,
                                                     secrets, rss_document, scripted_provider,
                                                     reference_now):
        gws = DEFAULT_PROFILES[FeedType.GWS]

        def fetch(url):
            if url == gws.feed_url:
                raise FeedFetchError("503 Service Unavailable", feed_url=url)
            return rss_document

        fetcher = Mock()
        fetcher.fetch.side_effect = fetch
        provider = scripted_provider(default=classification("Compute"))
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, provider)

        results = pipeline.run_all(now=reference_now)

        assert [call.args[0] for call in fetcher.fetch.call_args_list] == [gws.feed_url, GCP.feed_url]
        aborted, completed = results
        assert aborted.feed_type == FeedType.GWS
        assert aborted.stage == PipelineStage.ABORTED
        assert "503" in aborted.error
        assert not aborted.success
        assert completed.feed_type == FeedType.GCP
        assert completed.success
        assert completed.rows_persisted == 2
        assert store.row_count(GCP.pending_table) == 2

    def test_run_all_records_missing_credential_per_feed(self, test_settings, store, documents,
                                                         memory_db, fetcher, scripted_provider):
        secrets = PropertyStore(memory_db, settings=test_settings)
        pipeline = self.build(test_settings, store, documents, secrets, fetcher, scripted_provider())

        results = pipeline.run_all()

        assert [result.stage for result in results] == [PipelineStage.ABORTED] * len(FeedType)
        assert all("[C003]" in result.error for result in results)
        fetcher.fetch.assert_not_called()


class TestPipelineResult:

    def test_efficiency_metrics(self):
        result = PipelineResult(
            feed_type=FeedType.GCP,
            items_parsed=4,
            items_classified=2,
            fallback_classifications=1,
            rows_persisted=2,
            documents_created=1,
        )

        assert result.efficiency_metrics == {
            'filter_reduction': 50.0,
            'classification_success_rate': 50.0,
            'items_per_document': 2.0,
        }

    def test_efficiency_metrics_of_empty_run(self):
        metrics = PipelineResult(feed_type=FeedType.GWS).efficiency_metrics

        assert metrics == {
            'filter_reduction': 0.0,
            'classification_success_rate': 0.0,
            'items_per_document': 0.0,
        }
