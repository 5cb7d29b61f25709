"""
Base AI Provider Interface
=========================

Abstract base class for the text-generation service used by the classifier
and the content generator.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ...utils.exceptions import AIError, ErrorCode


class AIProviderType(str, Enum):
    """Available AI provider types."""
    GEMINI = "gemini"


@dataclass
class UsageStats:
    """Request accounting for one provider instance."""
    requests: int = 0
    failures: int = 0
    tokens_used: int = 0


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    def __init__(self, api_key: str, model_name: str, provider_type: AIProviderType):
        """Initialize AI provider.

        Args:
            api_key: API key for the provider
            model_name: Model name to use
            provider_type: Type of provider
        """
        self.api_key = api_key
        self.model_name = model_name
        self.provider_type = provider_type
        self.usage = UsageStats()

    @abstractmethod
    def invoke(self, prompt: str) -> str:
        """Send one prompt and return the first candidate's text.

        Raises:
            AIError: On transport failure or a response without text
        """
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """Test connection to the AI provider.

        Returns:
            True if connection successful, False otherwise
        """
        pass

    def invoke_json(self, prompt: str) -> Any:
        """Send a prompt and parse the response text as JSON.

        Raises:
            AIError: On transport failure or if the text is not valid JSON
        """
        text = self.invoke(prompt)
        try:
            return json.loads(_strip_code_fence(text))
        except (json.JSONDecodeError, TypeError) as e:
            raise AIError(
                f"Response is not valid JSON: {e}",
                provider=self.provider_type.value,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
                context={"response_preview": (text or "")[:200]},
            ) from e

    def __str__(self) -> str:
        return f"{self.provider_type.value}({self.model_name})"


def _strip_code_fence(text: Optional[str]) -> Optional[str]:
    """Remove a surrounding markdown code fence, if the model added one."""
    if not text:
        return text
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        if stripped.rstrip().endswith("```"):
            stripped = stripped.rstrip()[:-3]
    return stripped.strip()
