"""
Content Generator
=================

Produces one narrative script per topic group. A failed or malformed
response falls back to a plain bullet list of the group's items.
"""

from typing import Any, Optional, Sequence

from .providers.base import AIProvider
from ..database.models import ClassifiedItem, GeneratedContent
from ..utils.logging import get_logger_for_component


def render_bullet_list(items: Sequence[ClassifiedItem]) -> str:
    """One ``- {title}: {summary} ({link})`` line per item."""
    return "\n".join(f"- {item.title}: {item.summary} ({item.link})" for item in items)


def fallback_content(items: Sequence[ClassifiedItem], topic_label: str) -> GeneratedContent:
    return GeneratedContent(title=f"{topic_label} Update", body=render_bullet_list(items))


class ContentGenerator:
    """Per-topic narrative generation."""

    def __init__(self, provider: AIProvider):
        self.provider = provider
        self.logger = get_logger_for_component("content_generator")
        self.fallback_count = 0

    def generate(self, items: Sequence[ClassifiedItem], topic_label: str) -> GeneratedContent:
        """Generate a title and narrative body for one topic group.

        Args:
            items: Items in the group, in feed order
            topic_label: Topic name used in the prompt and fallback title

        Returns:
            GeneratedContent from the model, or the bullet-list fallback
        """
        prompt = self._build_prompt(items, topic_label)

        try:
            payload = self.provider.invoke_json(prompt)
        except Exception as e:
            self.logger.warning(f"Content generation failed for topic '{topic_label}': {e}")
            self.fallback_count += 1
            return fallback_content(items, topic_label)

        content = self._parse_response(payload)
        if content is None:
            self.logger.warning(
                f"Content generation returned an unusable response for topic '{topic_label}'"
            )
            self.fallback_count += 1
            return fallback_content(items, topic_label)

        self.logger.info(f"Generated content for topic '{topic_label}': {content.title}")
        return content

    def _build_prompt(self, items: Sequence[ClassifiedItem], topic_label: str) -> str:
        return f"""You write a short video script about recent "{topic_label}" product updates.

Updates:
{render_bullet_list(items)}

Write a catchy title and a narrative script body. The body describes each
update and adds brief commentary on why it matters to administrators and
developers.

Respond with a JSON object only:
{{"title": "<title>", "body": "<script>"}}"""

    @staticmethod
    def _parse_response(payload: Any) -> Optional[GeneratedContent]:
        if not isinstance(payload, dict):
            return None

        title = payload.get("title")
        body = payload.get("body")
        if not isinstance(title, str) or not isinstance(body, str):
            return None
        if not title.strip() or not body.strip():
            return None

        return GeneratedContent(title=title.strip(), body=body.strip())
