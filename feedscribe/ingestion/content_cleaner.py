"""
Content Cleaner
===============

HTML-to-text extraction for feed entry bodies.
"""

import re
import html
from typing import Optional

from bs4 import BeautifulSoup

from ..utils.logging import get_logger_for_component


ELLIPSIS = "..."


class ContentCleaner:
    """Extracts readable plain text from feed HTML."""

    # Elements removed together with their content
    NON_CONTENT_ELEMENTS = [
        "script",
        "style",
        "iframe",
        "embed",
        "object",
        "form",
        "noscript",
        "template",
    ]

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)

    def __init__(self, parser: str = "html.parser"):
        """Initialize content cleaner.

        Args:
            parser: BeautifulSoup parser name (built-in parser by default)
        """
        self.parser = parser
        self.logger = get_logger_for_component("content_cleaner")

    def extract_text_only(self, html_content: Optional[str]) -> str:
        """
        Extract only text content from HTML, removing all markup.

        Args:
            html_content: HTML content to process

        Returns:
            Plain text with whitespace collapsed to single spaces
        """
        if not html_content or not html_content.strip():
            return ""

        try:
            soup = BeautifulSoup(html_content, self.parser)

            for element in soup(self.NON_CONTENT_ELEMENTS):
                element.decompose()

            text = soup.get_text(separator=" ", strip=True)
            text = self.WHITESPACE_PATTERN.sub(" ", text)
            return text.strip()

        except Exception as e:
            self.logger.warning(f"Failed to extract text, using fallback: {e}")
            return self._extract_text_fallback(html_content)

    def _extract_text_fallback(self, html_content: str) -> str:
        """Regex text extraction used when BeautifulSoup fails."""
        content = re.sub(
            r"<(script|style)[^>]*>.*?</\1>",
            "",
            html_content,
            flags=re.IGNORECASE | re.DOTALL,
        )
        content = re.sub(r"<[^>]+>", " ", content)
        content = html.unescape(content)
        content = self.WHITESPACE_PATTERN.sub(" ", content)
        return content.strip()


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, appending an ellipsis when cut."""
    if limit < 0:
        raise ValueError("limit must be non-negative")
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS
