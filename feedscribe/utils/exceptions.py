"""
FeedScribe Custom Exceptions
===========================

Exception hierarchy for FeedScribe with error codes, context information,
and operator-facing messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CREDENTIAL_MISSING = "C003"

    # Storage errors (D001-D099)
    DATABASE_SCHEMA = "D002"
    DATABASE_TRANSACTION = "D004"
    DATABASE_ERROR = "D006"
    TABLE_NOT_FOUND = "D007"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_UNSUPPORTED_FORMAT = "F007"

    # Content processing errors (P001-P099)
    CONTENT_INVALID = "P001"
    ENTRY_MISSING_DATE = "P005"

    # AI processing errors (A001-A099)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_INVALID_CREDENTIALS = "A009"

    # Delivery errors (L001-L099)
    DELIVERY_FAILED = "L001"


class FeedScribeError(Exception):
    """Base exception for all FeedScribe errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize FeedScribe error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: Operator-facing error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


def _passthrough(kwargs: Dict[str, Any], *consumed: str) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if k not in consumed}


class ConfigurationError(FeedScribeError):
    """Configuration-related errors. Always fatal for the current run."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for FeedScribeError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **_passthrough(kwargs, "context", "error_code", "user_message"),
        )


class StorageError(FeedScribeError):
    """Tabular store and property store errors."""

    def __init__(self, message: str, table: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if table:
            context["table"] = table

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DATABASE_ERROR),
            context=context,
            user_message=kwargs.get("user_message", "Storage operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedError(FeedScribeError):
    """Feed ingestion and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for FeedScribeError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_PARSE_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class FeedFetchError(FeedError):
    """Feed download errors (transport failure or non-success status)."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NETWORK_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class UnsupportedFeedFormatError(FeedError):
    """Document root is neither <rss> nor <feed>."""

    def __init__(self, message: str, root_name: Optional[str] = None, **kwargs):
        context = kwargs.pop("context", {})
        if root_name is not None:
            context["root_element"] = root_name
        kwargs.setdefault("error_code", ErrorCode.FEED_UNSUPPORTED_FORMAT)
        super().__init__(message, context=context, **kwargs)


class ProcessingError(FeedScribeError):
    """Content processing errors."""

    def __init__(self, message: str, item_link: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if item_link:
            context["item_link"] = item_link

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONTENT_INVALID),
            context=context,
            user_message=kwargs.get("user_message", "Item processing failed"),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class ContentValidationError(ProcessingError):
    """A single feed entry could not be mapped to an item."""

    pass


class AIError(FeedScribeError):
    """AI service errors (transport, status, or response shape)."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        """Initialize AI error.

        Args:
            message: Error message
            provider: AI provider name (e.g., 'gemini')
            **kwargs: Additional arguments for FeedScribeError
        """
        context = kwargs.get("context", {})
        if provider:
            context["ai_provider"] = provider

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.AI_API_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", "AI processing temporarily unavailable"
            ),
            recoverable=kwargs.get("recoverable", True),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


class DeliveryError(FeedScribeError):
    """Document creation errors."""

    def __init__(self, message: str, title: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if title:
            context["document_title"] = title

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DELIVERY_FAILED),
            context=context,
            user_message=kwargs.get("user_message", "Document creation failed"),
            recoverable=kwargs.get("recoverable", False),
            **_passthrough(kwargs, "context", "error_code", "user_message", "recoverable"),
        )


def get_user_friendly_message(exception: Exception) -> str:
    """Get operator-facing error message for any exception."""
    if isinstance(exception, FeedScribeError):
        return exception.user_message

    return "An unexpected error occurred. Check the logs for details."
