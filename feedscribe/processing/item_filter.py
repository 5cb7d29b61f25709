"""
Item Filter
===========

Recency window and duplicate suppression against previously recorded links.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set

from ..database.models import RawFeedItem
from ..utils.logging import get_logger_for_component


@dataclass
class FilterStats:
    """Statistics from one filter pass."""
    total_items: int = 0
    kept_items: int = 0
    stale_items: int = 0
    duplicate_items: int = 0

    @property
    def rejection_rate(self) -> float:
        """Percentage of items that were dropped."""
        if self.total_items == 0:
            return 0.0
        return ((self.total_items - self.kept_items) / self.total_items) * 100


def build_prior_links(pending_links: Iterable[str], archived_links: Iterable[str]) -> Set[str]:
    """Union of the pending and archived link sets."""
    return set(pending_links) | set(archived_links)


class ItemFilter:
    """Pure filter over raw items; no I/O."""

    def __init__(self):
        self.logger = get_logger_for_component("item_filter")
        self.last_stats = FilterStats()

    def filter(self, items: List[RawFeedItem], prior_links: Set[str],
               window_days: int, now: Optional[datetime] = None) -> List[RawFeedItem]:
        """Keep items that are recent and not already recorded.

        An item is kept iff ``published_at >= now - window_days`` (an item
        exactly on the boundary is kept) and its link is not in
        ``prior_links``. The duplicate check is exact string membership and
        independent of the date. Output order follows input order.

        Args:
            items: Parsed items
            prior_links: Links already present in the pending or archived records
            window_days: Trailing window length in days
            now: Reference time (default: current UTC time)

        Returns:
            Surviving items
        """
        if window_days < 0:
            raise ValueError("window_days must be non-negative")

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = now - timedelta(days=window_days)

        stats = FilterStats(total_items=len(items))
        kept = []

        for item in items:
            if item.link in prior_links:
                stats.duplicate_items += 1
                continue
            if item.published_at < cutoff:
                stats.stale_items += 1
                continue
            kept.append(item)

        stats.kept_items = len(kept)
        self.last_stats = stats

        self.logger.info(
            f"Filtered {stats.total_items} items: kept {stats.kept_items}, "
            f"stale {stats.stale_items}, duplicate {stats.duplicate_items} "
            f"(cutoff {cutoff.isoformat()})"
        )
        return kept
