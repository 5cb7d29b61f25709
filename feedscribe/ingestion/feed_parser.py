"""
Feed Parser
===========

Normalizes RSS 2.0 and Atom documents into a uniform list of RawFeedItem.

The document format is decided by its root element (``<rss>`` or ``<feed>``);
entries are then read with feedparser. A broken entry is skipped without
affecting its siblings.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Union

import feedparser

from ..database.models import RawFeedItem
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import (
    ContentValidationError,
    ErrorCode,
    UnsupportedFeedFormatError,
)
from .content_cleaner import ContentCleaner


class FeedFormat(str, Enum):
    """Supported document formats."""
    RSS = "rss"
    ATOM = "atom"


_ROOT_FORMATS = {
    "rss": FeedFormat.RSS,
    "feed": FeedFormat.ATOM,
}

_SNIFF_CHUNK = 4096


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def detect_root_element(raw_xml: Union[str, bytes]) -> str:
    """Name of the document's root element, without namespace.

    Only the prefix of the document up to the root start tag is parsed.
    Whitespace before the XML declaration is ignored.

    Raises:
        UnsupportedFeedFormatError: If no root element can be read
    """
    raw_xml = raw_xml.lstrip()
    parser = ET.XMLPullParser(events=("start",))
    try:
        for offset in range(0, len(raw_xml), _SNIFF_CHUNK):
            parser.feed(raw_xml[offset:offset + _SNIFF_CHUNK])
            for _event, element in parser.read_events():
                return _local_name(element.tag)
    except ET.ParseError as e:
        raise UnsupportedFeedFormatError(
            f"Document is not well-formed XML: {e}"
        ) from e

    raise UnsupportedFeedFormatError("Document has no root element")


def detect_format(raw_xml: Union[str, bytes]) -> FeedFormat:
    """Decide RSS vs Atom from the root element name.

    Raises:
        UnsupportedFeedFormatError: For any root other than rss or feed
    """
    root_name = detect_root_element(raw_xml)
    feed_format = _ROOT_FORMATS.get(root_name)
    if feed_format is None:
        raise UnsupportedFeedFormatError(
            f"Unsupported feed root element <{root_name}>",
            root_name=root_name,
        )
    return feed_format


def resolve_atom_link(links: List[Any]) -> str:
    """Pick an Atom entry's link.

    The first ``rel="alternate"`` link wins; otherwise the first link present;
    otherwise the empty string.
    """
    if not links:
        return ""

    for link in links:
        if link.get("rel") == "alternate" and link.get("href"):
            return link["href"]

    return links[0].get("href", "") or ""


def _to_utc(time_tuple: Any) -> Optional[datetime]:
    if not time_tuple:
        return None
    try:
        return datetime(*time_tuple[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


class FeedParser:
    """RSS/Atom parser producing RawFeedItem sequences."""

    def __init__(self, cleaner: Optional[ContentCleaner] = None):
        """Initialize feed parser.

        Args:
            cleaner: HTML cleaner for entry bodies (default: ContentCleaner())
        """
        self.cleaner = cleaner or ContentCleaner()
        self.logger = get_logger_for_component("feed_parser")
        self.last_skipped = 0

    def parse(self, raw_xml: Union[str, bytes], feed_type_hint: Optional[str] = None) -> List[RawFeedItem]:
        """Parse a feed document into raw items.

        Args:
            raw_xml: Feed document, as text or as undecoded bytes
            feed_type_hint: Feed type, used for log context only

        Returns:
            One RawFeedItem per parsable entry, in document order

        Raises:
            UnsupportedFeedFormatError: If the root element is not rss or feed
        """
        raw_xml = raw_xml.lstrip()
        feed_format = detect_format(raw_xml)
        label = feed_type_hint or feed_format.value

        if isinstance(raw_xml, str):
            # Already decoded; the HTTP-style charset makes feedparser trust it
            parsed = feedparser.parse(
                raw_xml.encode("utf-8"),
                response_headers={"content-type": "application/xml; charset=utf-8"},
            )
        else:
            parsed = feedparser.parse(raw_xml)

        if parsed.bozo:
            # Recoverable markup problems; entries read so far are still usable
            self.logger.warning(
                f"Feed parsing warning ({label}): {parsed.get('bozo_exception')}"
            )

        items = []
        skipped = 0
        for position, entry in enumerate(parsed.entries):
            try:
                if feed_format == FeedFormat.RSS:
                    items.append(self._map_rss_item(entry))
                else:
                    items.append(self._map_atom_entry(entry))
            except Exception as e:
                skipped += 1
                self.logger.warning(
                    f"Skipping entry #{position} in {label} feed: {e}",
                    extra={"entry_title": entry.get("title", "Unknown")},
                )

        self.last_skipped = skipped
        self.logger.info(
            f"Parsed {len(items)} items from {feed_format.value} feed ({label}), "
            f"skipped {skipped}"
        )
        return items

    def _map_rss_item(self, entry: Any) -> RawFeedItem:
        published_at = _to_utc(entry.get("published_parsed"))
        if published_at is None:
            raise ContentValidationError(
                "RSS item has no parseable pubDate",
                item_link=entry.get("link"),
                error_code=ErrorCode.ENTRY_MISSING_DATE,
            )

        description = entry.get("description") or entry.get("summary") or ""

        return RawFeedItem(
            title=(entry.get("title") or "").strip(),
            link=(entry.get("link") or "").strip(),
            published_at=published_at,
            content_text=self.cleaner.extract_text_only(description),
        )

    def _map_atom_entry(self, entry: Any) -> RawFeedItem:
        published_at = _to_utc(entry.get("published_parsed")) or _to_utc(
            entry.get("updated_parsed")
        )
        if published_at is None:
            raise ContentValidationError(
                "Atom entry has neither a parseable published nor updated date",
                item_link=resolve_atom_link(entry.get("links", [])),
                error_code=ErrorCode.ENTRY_MISSING_DATE,
            )

        body = ""
        content = entry.get("content")
        if content:
            body = content[0].get("value", "")
        if not body:
            body = entry.get("summary") or ""

        return RawFeedItem(
            title=(entry.get("title") or "").strip(),
            link=resolve_atom_link(entry.get("links", [])).strip(),
            published_at=published_at,
            content_text=self.cleaner.extract_text_only(body),
        )
