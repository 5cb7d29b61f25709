"""
Feed Fetcher
============

Blocking HTTP(S) download of feed documents.
"""

import time
from typing import Optional

import requests

from ..config.settings import FeedScribeSettings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import FeedFetchError, ErrorCode


class FeedFetcher:
    """Downloads raw feed XML. No retry: a failed fetch fails the run."""

    def __init__(self, timeout: int = 30, session: Optional[requests.Session] = None,
                 user_agent: str = "FeedScribe/1.0"):
        """Initialize feed fetcher.

        Args:
            timeout: Request timeout in seconds
            session: requests session to reuse (created if omitted)
            user_agent: User-Agent header value
        """
        self.timeout = timeout
        self.logger = get_logger_for_component("feed_fetcher")

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": user_agent,
                "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
            }
        )

    @classmethod
    def from_settings(cls, settings: FeedScribeSettings) -> "FeedFetcher":
        return cls(
            timeout=settings.limits.request_timeout,
            user_agent=f"{settings.app_name}/{settings.version}",
        )

    def fetch(self, url: str) -> bytes:
        """Fetch a feed document.

        Args:
            url: Feed URL

        Returns:
            Undecoded response body; the parser honors the document's own
            encoding declaration

        Raises:
            FeedFetchError: On transport failure or non-success status
        """
        if not url or not url.startswith(("http://", "https://")):
            raise FeedFetchError(
                f"Invalid feed URL: {url!r}",
                feed_url=url,
                error_code=ErrorCode.FEED_INVALID_URL,
            )

        self.logger.info(f"Fetching feed: {url}")
        start_time = time.time()

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout as e:
            raise FeedFetchError(
                f"Request timeout after {self.timeout}s: {url}",
                feed_url=url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except requests.RequestException as e:
            raise FeedFetchError(f"Failed to fetch feed {url}: {e}", feed_url=url) from e

        body = response.content
        self.logger.debug(
            f"Feed fetched in {time.time() - start_time:.2f}s, size: {len(body)} bytes"
        )
        return body
