"""
FeedScribe Configuration System
==============================

Configuration management with environment variables and Pydantic models.
Environment variables (prefix ``FEEDSCRIBE_``, nested with ``__``) override
Field defaults.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.exceptions import ConfigurationError, ErrorCode
from .feed_types import FeedType


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProcessingSettings(BaseModel):
    """Processing pipeline configuration."""
    window_days: int = Field(default=14, ge=1, le=365, description="Trailing recency window in days")
    max_content_chars: int = Field(default=1000, ge=100, le=20000, description="Content characters sent to the classifier")
    fallback_topic: str = Field(default="Other", min_length=1, description="Topic key for items without a section")


class AISettings(BaseModel):
    """Classification/generation service configuration."""
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key (env fallback for the secret store)")
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini model name")
    credential_key: str = Field(default="GEMINI_API_KEY", description="Secret store key holding the API credential")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Sampling temperature")
    max_output_tokens: int = Field(default=2048, ge=64, le=8192, description="Maximum tokens per response")


class LimitsSettings(BaseModel):
    """Network limits."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="Feed fetch timeout in seconds")


class StorageSettings(BaseModel):
    """Tabular/property store configuration."""
    path: str = Field(default="data/feedscribe.db", description="SQLite database file path")


class DocumentSettings(BaseModel):
    """Generated document output."""
    output_dir: str = Field(default="output/documents", description="Directory for generated documents")


class FeedSettings(BaseModel):
    """Optional feed URL overrides per feed type."""
    gws_url: Optional[str] = Field(default=None, description="Override for the Google Workspace feed URL")
    gcp_url: Optional[str] = Field(default=None, description="Override for the Google Cloud feed URL")

    @field_validator('gws_url', 'gcp_url')
    @classmethod
    def validate_url(cls, v):
        """Only http(s) feed URLs are accepted."""
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Feed URL must start with http:// or https://")
        return v

    def url_for(self, feed_type: FeedType) -> Optional[str]:
        """Get the override URL for a feed type, if any."""
        if feed_type == FeedType.GWS:
            return self.gws_url
        elif feed_type == FeedType.GCP:
            return self.gcp_url
        return None


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/feedscribe.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging on the console")
    console_logging: bool = Field(default=True, description="Enable console logging")


class FeedScribeSettings(BaseSettings):
    """Main application settings."""

    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    ai: AISettings = Field(default_factory=AISettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    documents: DocumentSettings = Field(default_factory=DocumentSettings)
    feeds: FeedSettings = Field(default_factory=FeedSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="FeedScribe", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        env_prefix="FEEDSCRIBE_",
        extra="ignore",
    )

    def validate_configuration(self) -> None:
        """Validate paths the pipeline writes to.

        The AI credential is not checked here; it is resolved
        through the secret store at the start of each run.
        """
        errors = []

        for label, raw_path in (
            ("database path", self.storage.path),
            ("log file path", self.logging.file_path),
        ):
            if not raw_path:
                continue
            try:
                Path(raw_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid {label}: {e}")

        try:
            Path(self.documents.output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid document output directory: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> FeedScribeSettings:
    """Load settings from environment variables, ``.env`` and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = FeedScribeSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


_settings: Optional[FeedScribeSettings] = None


def get_settings(reload: bool = False) -> FeedScribeSettings:
    """Get the process-wide settings instance used by the CLI entry point.

    Args:
        reload: Force reload of settings

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
