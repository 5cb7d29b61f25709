"""
FeedScribe Processing Module
===========================

Pipeline components for feed fetching, recency/duplicate filtering,
topic grouping and orchestration.
"""

from .feed_fetcher import FeedFetcher
from .item_filter import ItemFilter, FilterStats, build_prior_links
from .grouper import group_by_topic, to_topic_groups
from .pipeline import ProcessingPipeline, PipelineResult, PipelineStage

__all__ = [
    'FeedFetcher',
    'ItemFilter',
    'FilterStats',
    'build_prior_links',
    'group_by_topic',
    'to_topic_groups',
    'ProcessingPipeline',
    'PipelineResult',
    'PipelineStage',
]
