"""
Feed Type Profiles
=================

Closed set of supported feed variants. Each variant carries its own feed URL,
storage table names, and classification taxonomy so the rest of the pipeline
never branches on a feed-type string.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import FeedScribeSettings


class FeedType(str, Enum):
    """Supported feed variants."""
    GWS = "gws"  # Google Workspace updates
    GCP = "gcp"  # Google Cloud release notes


@dataclass(frozen=True)
class Taxonomy:
    """Closed category vocabulary used by the classifier."""

    sections: Tuple[str, ...]
    sub_sections: Tuple[str, ...]
    section_catch_all: str = "Other"
    sub_section_catch_all: str = "General"

    def __post_init__(self):
        if self.section_catch_all not in self.sections:
            raise ValueError(f"Catch-all section '{self.section_catch_all}' missing from taxonomy")
        if self.sub_section_catch_all not in self.sub_sections:
            raise ValueError(f"Catch-all sub-section '{self.sub_section_catch_all}' missing from taxonomy")

    def normalize_section(self, value: str) -> str:
        """Map a section onto the vocabulary, falling back to the catch-all."""
        return value if value in self.sections else self.section_catch_all

    def normalize_sub_section(self, value: str) -> str:
        """Map a sub-section onto the vocabulary, falling back to the catch-all."""
        return value if value in self.sub_sections else self.sub_section_catch_all


@dataclass(frozen=True)
class FeedProfile:
    """Everything the pipeline needs to know about one feed variant."""

    feed_type: FeedType
    label: str
    feed_url: str
    pending_table: str
    archive_table: str
    taxonomy: Taxonomy


_CHANGE_TYPES = (
    "New Feature",
    "Improvement",
    "Deprecation",
    "Security",
    "Availability",
    "General",
)

GWS_TAXONOMY = Taxonomy(
    sections=(
        "Gmail",
        "Drive & Docs",
        "Meet",
        "Calendar",
        "Chat",
        "Admin Console",
        "Other",
    ),
    sub_sections=_CHANGE_TYPES,
)

GCP_TAXONOMY = Taxonomy(
    sections=(
        "Compute",
        "Data & Analytics",
        "AI & Machine Learning",
        "Networking",
        "Security & Identity",
        "Developer Tools",
        "Other",
    ),
    sub_sections=_CHANGE_TYPES,
)

DEFAULT_PROFILES: Dict[FeedType, FeedProfile] = {
    FeedType.GWS: FeedProfile(
        feed_type=FeedType.GWS,
        label="Google Workspace",
        feed_url="https://workspaceupdates.googleblog.com/feeds/posts/default",
        pending_table="GWS Pending",
        archive_table="GWS Archive",
        taxonomy=GWS_TAXONOMY,
    ),
    FeedType.GCP: FeedProfile(
        feed_type=FeedType.GCP,
        label="Google Cloud",
        feed_url="https://cloud.google.com/feeds/gcp-release-notes.xml",
        pending_table="GCP Pending",
        archive_table="GCP Archive",
        taxonomy=GCP_TAXONOMY,
    ),
}


def get_feed_profile(
    feed_type: FeedType, settings: Optional["FeedScribeSettings"] = None
) -> FeedProfile:
    """Resolve the profile for a feed type, applying configured URL overrides.

    Args:
        feed_type: Feed variant (enum member or its string value)
        settings: Settings carrying optional feed URL overrides

    Returns:
        FeedProfile for the variant
    """
    feed_type = FeedType(feed_type)
    profile = DEFAULT_PROFILES[feed_type]

    if settings is not None:
        override = settings.feeds.url_for(feed_type)
        if override and override != profile.feed_url:
            profile = FeedProfile(
                feed_type=profile.feed_type,
                label=profile.label,
                feed_url=override,
                pending_table=profile.pending_table,
                archive_table=profile.archive_table,
                taxonomy=profile.taxonomy,
            )

    return profile
