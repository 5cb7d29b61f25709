"""
Processing Pipeline Orchestrator
===============================

Runs one feed type end to end: fetch, parse, filter against the pending and
archived records, classify, persist, group by topic and generate one
document per topic. Stages run strictly in order with batch semantics.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from ..ai.classifier import Classifier
from ..ai.content_generator import ContentGenerator
from ..ai.providers.base import AIProvider
from ..ai.providers.gemini_provider import GeminiProvider
from ..config.feed_types import FeedProfile, FeedType, get_feed_profile
from ..config.settings import FeedScribeSettings
from ..database.models import (
    CONTENT_TABLE_HEADER,
    CONTENT_TABLE_NAME,
    LINK_COLUMN_INDEX,
    PENDING_TABLE_HEADER,
)
from ..delivery.document_sink import DocumentSink
from ..ingestion.feed_parser import FeedParser
from ..storage.property_store import PropertyStore
from ..storage.tabular_store import TabularStore
from ..utils.exceptions import ConfigurationError, ErrorCode, FeedScribeError
from ..utils.logging import StageTimer, get_logger_for_component
from .feed_fetcher import FeedFetcher
from .grouper import group_by_topic
from .item_filter import ItemFilter, build_prior_links


class PipelineStage(str, Enum):
    """Pipeline run states."""
    FETCHING = "fetching"
    PARSING = "parsing"
    FILTERING = "filtering"
    CLASSIFYING = "classifying"
    PERSISTING = "persisting"
    GROUPING = "grouping"
    GENERATING = "generating"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PipelineResult:
    """Outcome and metrics of one pipeline run."""
    feed_type: FeedType
    stage: PipelineStage = PipelineStage.FETCHING
    items_parsed: int = 0
    items_skipped: int = 0
    items_stale: int = 0
    items_duplicate: int = 0
    items_classified: int = 0
    fallback_classifications: int = 0
    rows_persisted: int = 0
    topic_groups: int = 0
    documents_created: int = 0
    fallback_documents: int = 0
    document_urls: List[str] = field(default_factory=list)
    stage_timings: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.stage == PipelineStage.DONE

    @property
    def processing_time_seconds(self) -> float:
        return sum(self.stage_timings.values())

    @property
    def efficiency_metrics(self) -> Dict[str, float]:
        """Share of parsed items filtered out, share classified without
        fallback (both percentages) and items per generated document."""
        return {
            'filter_reduction': ((self.items_parsed - self.items_classified) / self.items_parsed) * 100 if self.items_parsed > 0 else 0.0,
            'classification_success_rate': ((self.items_classified - self.fallback_classifications) / self.items_classified) * 100 if self.items_classified > 0 else 0.0,
            'items_per_document': self.rows_persisted / self.documents_created if self.documents_created > 0 else 0.0,
        }


class ProcessingPipeline:
    """Feed-to-document pipeline orchestrator."""

    def __init__(self, settings: FeedScribeSettings, store: TabularStore,
                 documents: DocumentSink, secrets: PropertyStore,
                 fetcher: Optional[FeedFetcher] = None,
                 parser: Optional[FeedParser] = None,
                 ai_provider: Optional[AIProvider] = None):
        """Initialize processing pipeline.

        Args:
            settings: Application settings
            store: Tabular store holding pending, archive and content tables
            documents: Sink for generated documents
            secrets: Secret store holding the AI credential
            fetcher: Feed fetcher (default: built from settings)
            parser: Feed parser (default: FeedParser())
            ai_provider: AI provider (default: Gemini, built per run from the
                stored credential)
        """
        self.settings = settings
        self.store = store
        self.documents = documents
        self.secrets = secrets
        self.fetcher = fetcher or FeedFetcher.from_settings(settings)
        self.parser = parser or FeedParser()
        self.ai_provider = ai_provider
        self.item_filter = ItemFilter()
        self.logger = get_logger_for_component("pipeline")

    def run(self, feed_type: FeedType, now: Optional[datetime] = None) -> PipelineResult:
        """Process one feed type.

        Args:
            feed_type: Feed variant to process
            now: Reference time for the recency window (default: now, UTC)

        Returns:
            PipelineResult ending at DONE

        Raises:
            ConfigurationError: If the AI credential is missing (before any I/O)
            FeedFetchError: If the feed cannot be downloaded
            UnsupportedFeedFormatError: If the document is neither RSS nor Atom
        """
        result = PipelineResult(feed_type=FeedType(feed_type))
        self._execute(result, now)
        return result

    def run_all(self, now: Optional[datetime] = None) -> List[PipelineResult]:
        """Run every feed type sequentially.

        Each feed type is an independent run: a fatal error aborts that run
        only and is recorded on its result. Every result is returned.
        """
        results = []
        for feed_type in FeedType:
            result = PipelineResult(feed_type=feed_type)
            try:
                self._execute(result, now)
            except FeedScribeError as e:
                result.stage = PipelineStage.ABORTED
                result.error = str(e)
                self.logger.error(f"{feed_type.value} run aborted, continuing with the next feed: {e}",
                                  extra=e.to_dict())
            results.append(result)
        return results

    def _execute(self, result: PipelineResult, now: Optional[datetime]) -> None:
        profile = get_feed_profile(result.feed_type, self.settings)
        now = now or datetime.now(timezone.utc)
        logger = get_logger_for_component("pipeline", feed_type=profile.feed_type.value)

        provider = self._resolve_provider()
        classifier = Classifier(provider, max_content_chars=self.settings.processing.max_content_chars)
        generator = ContentGenerator(provider)

        logger.info(f"Starting {profile.label} pipeline run ({profile.feed_url})")

        try:
            result.stage = PipelineStage.FETCHING
            with StageTimer(logger, "feed fetch") as perf:
                raw_xml = self.fetcher.fetch(profile.feed_url)
            result.stage_timings[PipelineStage.FETCHING.value] = perf.duration

            result.stage = PipelineStage.PARSING
            with StageTimer(logger, "feed parse") as perf:
                items = self.parser.parse(raw_xml, feed_type_hint=profile.feed_type.value)
            result.stage_timings[PipelineStage.PARSING.value] = perf.duration
            result.items_parsed = len(items)
            result.items_skipped = self.parser.last_skipped

            self._ensure_tables(profile)

            result.stage = PipelineStage.FILTERING
            with StageTimer(logger, "item filter") as perf:
                prior_links = build_prior_links(
                    self.store.read_column(profile.pending_table, LINK_COLUMN_INDEX),
                    self.store.read_column(profile.archive_table, LINK_COLUMN_INDEX),
                )
                fresh_items = self.item_filter.filter(
                    items, prior_links, self.settings.processing.window_days, now
                )
            result.stage_timings[PipelineStage.FILTERING.value] = perf.duration
            result.items_stale = self.item_filter.last_stats.stale_items
            result.items_duplicate = self.item_filter.last_stats.duplicate_items

            if not fresh_items:
                logger.info(f"No new {profile.label} items within the last "
                            f"{self.settings.processing.window_days} days")
                result.stage = PipelineStage.DONE
                return

            result.stage = PipelineStage.CLASSIFYING
            with StageTimer(logger, "classification") as perf:
                classified = classifier.classify_all(fresh_items, profile.feed_type)
            result.stage_timings[PipelineStage.CLASSIFYING.value] = perf.duration
            result.items_classified = len(classified)
            result.fallback_classifications = classifier.fallback_count

            result.stage = PipelineStage.PERSISTING
            with StageTimer(logger, "persist pending rows") as perf:
                result.rows_persisted = self.store.append_rows(
                    profile.pending_table, [item.to_row() for item in classified]
                )
            result.stage_timings[PipelineStage.PERSISTING.value] = perf.duration

            result.stage = PipelineStage.GROUPING
            groups = group_by_topic(classified, self.settings.processing.fallback_topic)
            result.topic_groups = len(groups)

            result.stage = PipelineStage.GENERATING
            with StageTimer(logger, "content generation") as perf:
                for topic, members in groups.items():
                    content = generator.generate(members, topic)
                    url = self.documents.create_document(content.title, content.body)
                    self.store.append_rows(CONTENT_TABLE_NAME, [[
                        datetime.now(timezone.utc).isoformat(),
                        profile.feed_type.value,
                        topic,
                        content.title,
                        url,
                        str(len(members)),
                    ]])
                    result.document_urls.append(url)
            result.stage_timings[PipelineStage.GENERATING.value] = perf.duration
            result.documents_created = len(result.document_urls)
            result.fallback_documents = generator.fallback_count

            result.stage = PipelineStage.DONE

        except Exception as e:
            logger.error(f"Pipeline aborted during {result.stage.value}: {e}")
            result.error = str(e)
            result.stage = PipelineStage.ABORTED
            raise

        logger.info(
            f"{profile.label} run complete: {result.items_parsed} parsed, "
            f"{result.rows_persisted} persisted, {result.documents_created} documents "
            f"({result.fallback_classifications} fallback classifications) "
            f"in {result.processing_time_seconds:.2f}s"
        )

    def archive_pending(self, feed_type: FeedType) -> int:
        """Move every pending row of a feed type to its archive table.

        Returns:
            Number of rows moved
        """
        profile = get_feed_profile(feed_type, self.settings)
        self._ensure_tables(profile)

        moved = self.store.move_all_rows(profile.pending_table, profile.archive_table)
        self.logger.info(f"Archived {moved} {profile.label} rows")
        return moved

    def _resolve_provider(self) -> AIProvider:
        credential_key = self.settings.ai.credential_key
        api_key = self.secrets.get_secret(credential_key)
        if not api_key:
            raise ConfigurationError(
                f"AI credential '{credential_key}' is not set",
                config_key=credential_key,
                error_code=ErrorCode.CREDENTIAL_MISSING,
                user_message=f"Set the {credential_key} secret before running the pipeline",
            )

        if self.ai_provider is not None:
            return self.ai_provider
        return GeminiProvider.from_settings(api_key, self.settings.ai)

    def _ensure_tables(self, profile: FeedProfile) -> None:
        self.store.ensure_table(profile.pending_table, PENDING_TABLE_HEADER)
        self.store.ensure_table(profile.archive_table, PENDING_TABLE_HEADER)
        self.store.ensure_table(CONTENT_TABLE_NAME, CONTENT_TABLE_HEADER)
