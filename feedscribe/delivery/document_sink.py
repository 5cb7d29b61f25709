"""
Document Sink
=============

Destination for generated scripts. Each call creates one new document and
returns a reference (URL) to it.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DeliveryError, ErrorCode

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 60


class DocumentSink(Protocol):
    """Anything that can create a titled document and return its URL."""

    def create_document(self, title: str, body: str) -> str:
        ...


def slugify(title: str) -> str:
    """Lowercase ASCII slug for file names; ``document`` if nothing remains."""
    slug = _SLUG_PATTERN.sub("-", title.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-") or "document"


class MarkdownDocumentSink:
    """Writes each document as a new markdown file."""

    def __init__(self, output_dir: str,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize markdown sink.

        Args:
            output_dir: Directory receiving the documents (created if missing)
            clock: Returns the current time; used in file names
        """
        self.output_dir = Path(output_dir)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger_for_component("document_sink")

    def create_document(self, title: str, body: str) -> str:
        """Create ``<slug>-<timestamp>.md`` and return its file URI.

        An existing file is never overwritten; a numeric suffix is added
        instead.

        Raises:
            DeliveryError: If the file cannot be written
        """
        stamp = self.clock().strftime("%Y%m%dT%H%M%S")
        base_name = f"{slugify(title)}-{stamp}"
        content = f"# {title}\n\n{body}\n"

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self._write_new(base_name, content)
        except OSError as e:
            raise DeliveryError(
                f"Failed to write document '{title}': {e}",
                title=title,
                error_code=ErrorCode.DELIVERY_FAILED,
            ) from e

        self.logger.info(f"Created document: {path.name}")
        return path.resolve().as_uri()

    def _write_new(self, base_name: str, content: str) -> Path:
        suffix = 0
        while True:
            name = base_name if suffix == 0 else f"{base_name}-{suffix}"
            path = self.output_dir / f"{name}.md"
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(content)
                return path
            except FileExistsError:
                suffix += 1
