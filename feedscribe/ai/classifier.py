"""
Item Classifier
===============

Assigns each item a section, sub-section and one-line summary using the AI
provider. Any failure yields the deterministic fallback classification; the
pipeline never aborts because of a classification error.
"""

from typing import Any, List

from .providers.base import AIProvider
from ..config.feed_types import FeedType, Taxonomy, get_feed_profile
from ..database.models import Classification, ClassifiedItem, RawFeedItem
from ..ingestion.content_cleaner import truncate
from ..utils.exceptions import AIError
from ..utils.logging import get_logger_for_component

DEFAULT_MAX_CONTENT_CHARS = 1000


class Classifier:
    """Per-item classification against a feed type's closed taxonomy."""

    def __init__(self, provider: AIProvider, max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS):
        self.provider = provider
        self.max_content_chars = max_content_chars
        self.logger = get_logger_for_component("classifier")
        self.fallback_count = 0

    def classify(self, title: str, content_text: str, feed_type: FeedType) -> Classification:
        """Classify one item.

        Args:
            title: Item title
            content_text: Plain-text body
            feed_type: Feed variant selecting the taxonomy

        Returns:
            Classification; ``Classification.fallback()`` on any failure
        """
        taxonomy = get_feed_profile(feed_type).taxonomy
        prompt = self._build_prompt(title, content_text, feed_type, taxonomy)

        try:
            payload = self.provider.invoke_json(prompt)
        except AIError as e:
            self.logger.warning(f"Classification failed for '{title[:60]}': {e}")
            self.fallback_count += 1
            return Classification.fallback()
        except Exception as e:
            self.logger.error(f"Unexpected classification error for '{title[:60]}': {e}", exc_info=True)
            self.fallback_count += 1
            return Classification.fallback()

        classification = self._parse_response(payload, taxonomy, title)
        if classification.is_fallback:
            self.fallback_count += 1
        return classification

    def classify_item(self, item: RawFeedItem, feed_type: FeedType) -> ClassifiedItem:
        classification = self.classify(item.title, item.content_text, feed_type)
        return ClassifiedItem.from_raw(item, classification)

    def classify_all(self, items: List[RawFeedItem], feed_type: FeedType) -> List[ClassifiedItem]:
        """Classify items one call at a time, preserving order."""
        return [self.classify_item(item, feed_type) for item in items]

    def _build_prompt(self, title: str, content_text: str, feed_type: FeedType,
                      taxonomy: Taxonomy) -> str:
        content = truncate(content_text or "", self.max_content_chars)
        sections = ", ".join(f'"{s}"' for s in taxonomy.sections)
        sub_sections = ", ".join(f'"{s}"' for s in taxonomy.sub_sections)
        label = get_feed_profile(feed_type).label

        return f"""You categorize {label} release notes.

Item title: {title}
Item content: {content}

Choose exactly one section from: {sections}
Choose exactly one sub-section from: {sub_sections}
Write a one-sentence summary of the change.

Respond with a JSON object only:
{{"section": "<section>", "subSection": "<sub-section>", "summary": "<summary>"}}"""

    def _parse_response(self, payload: Any, taxonomy: Taxonomy, title: str) -> Classification:
        if not isinstance(payload, dict):
            self.logger.warning(f"Classification response is not an object for '{title[:60]}'")
            return Classification.fallback()

        section = payload.get("section")
        sub_section = payload.get("subSection")
        summary = payload.get("summary")

        if not all(isinstance(value, str) for value in (section, sub_section, summary)):
            self.logger.warning(
                f"Classification response missing string fields for '{title[:60]}'",
                extra={"response_keys": sorted(payload.keys())},
            )
            return Classification.fallback()

        normalized_section = taxonomy.normalize_section(section)
        normalized_sub_section = taxonomy.normalize_sub_section(sub_section)
        if normalized_section != section or normalized_sub_section != sub_section:
            self.logger.warning(
                f"Out-of-vocabulary classification {section!r}/{sub_section!r} "
                f"coerced to {normalized_section!r}/{normalized_sub_section!r}"
            )

        return Classification(
            section=normalized_section,
            sub_section=normalized_sub_section,
            summary=summary.strip(),
        )
