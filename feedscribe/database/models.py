"""
FeedScribe Data Models
=====================

Pydantic models for the items flowing through the pipeline. Every model is
frozen: once an item is created by a stage it is never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


PENDING_TABLE_HEADER = ["Date", "Title", "Link", "Section", "Sub-section", "Summary"]
LINK_COLUMN_INDEX = 2

CONTENT_TABLE_NAME = "Generated Content"
CONTENT_TABLE_HEADER = ["Created", "Feed Type", "Topic", "Title", "Document", "Items"]


class RawFeedItem(BaseModel):
    """Uniform representation of one RSS item or Atom entry."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="", description="Entry title")
    link: str = Field(default="", description="External identifier used for deduplication")
    published_at: datetime = Field(..., description="Publication timestamp (UTC)")
    content_text: str = Field(default="", description="HTML-stripped body text")

    @field_validator('published_at')
    @classmethod
    def ensure_timezone(cls, v):
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def __str__(self) -> str:
        return f"RawFeedItem({self.title[:50]})"


class Classification(BaseModel):
    """Classifier output for one item."""

    model_config = ConfigDict(frozen=True)

    section: str
    sub_section: str
    summary: str

    FALLBACK_SECTION: ClassVar[str] = "Unclassified"
    FALLBACK_SUB_SECTION: ClassVar[str] = "General"
    FALLBACK_SUMMARY: ClassVar[str] = "Analysis failed"

    @classmethod
    def fallback(cls) -> "Classification":
        """Deterministic value used whenever classification fails."""
        return cls(
            section=cls.FALLBACK_SECTION,
            sub_section=cls.FALLBACK_SUB_SECTION,
            summary=cls.FALLBACK_SUMMARY,
        )

    @property
    def is_fallback(self) -> bool:
        return self == Classification.fallback()

    def to_dict(self) -> dict:
        """Wire representation with the service's field names."""
        return {
            "section": self.section,
            "subSection": self.sub_section,
            "summary": self.summary,
        }


class ClassifiedItem(RawFeedItem):
    """A RawFeedItem annotated by the classifier."""

    section: str = Field(default="", description="Top-level category")
    sub_section: str = Field(default="", description="Change type within the section")
    summary: str = Field(default="", description="One-line summary")

    @classmethod
    def from_raw(cls, item: RawFeedItem, classification: Classification) -> "ClassifiedItem":
        """Combine a raw item with its classification."""
        return cls(
            title=item.title,
            link=item.link,
            published_at=item.published_at,
            content_text=item.content_text,
            section=classification.section,
            sub_section=classification.sub_section,
            summary=classification.summary,
        )

    def to_row(self) -> List[str]:
        """Row for the pending table, in PENDING_TABLE_HEADER order."""
        return [
            self.published_at.isoformat(),
            self.title,
            self.link,
            self.section,
            self.sub_section,
            self.summary,
        ]

    def __str__(self) -> str:
        return f"ClassifiedItem({self.section}/{self.sub_section}: {self.title[:50]})"


class GeneratedContent(BaseModel):
    """Narrative script produced for one topic group."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str


@dataclass
class TopicGroup:
    """Items sharing a topic key, in feed order."""
    topic_key: str
    items: List[ClassifiedItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)
