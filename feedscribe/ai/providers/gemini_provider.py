"""
Google Gemini AI provider implementation for FeedScribe.

Synchronous wrapper around ``google.generativeai`` that requests JSON output
and returns the first candidate's text.
"""

import time
from typing import Any, Optional

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from .base import AIProvider, AIProviderType
from ...config.settings import AISettings
from ...utils.exceptions import AIError, ErrorCode
from ...utils.logging import get_logger_for_component


class GeminiProvider(AIProvider):
    """Google Gemini provider. One request per call, no retry."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.5-flash",
                 temperature: float = 0.2, max_output_tokens: int = 2048):
        """Initialize Gemini provider.

        Args:
            api_key: Google Gemini API key
            model_name: Model to use
            temperature: Sampling temperature
            max_output_tokens: Maximum tokens per response

        Raises:
            AIError: If the API key is missing
        """
        if not api_key:
            raise AIError(
                "Gemini API key is required",
                provider=AIProviderType.GEMINI.value,
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            )

        super().__init__(api_key, model_name, AIProviderType.GEMINI)

        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            safety_settings={
                HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
            },
        )

        self.logger = get_logger_for_component("gemini_provider")
        self.logger.info(f"Gemini provider initialized with model: {model_name}")

    @classmethod
    def from_settings(cls, api_key: str, ai_settings: AISettings) -> "GeminiProvider":
        return cls(
            api_key=api_key,
            model_name=ai_settings.gemini_model,
            temperature=ai_settings.temperature,
            max_output_tokens=ai_settings.max_output_tokens,
        )

    def invoke(self, prompt: str) -> str:
        start_time = time.time()
        self.usage.requests += 1

        try:
            response = self._make_gemini_request(prompt)
        except Exception as e:
            self.usage.failures += 1
            raise AIError(
                f"Gemini request failed: {e}",
                provider=self.provider_type.value,
                error_code=ErrorCode.AI_API_ERROR,
            ) from e

        text = self._first_candidate_text(response)
        if not text:
            self.usage.failures += 1
            raise AIError(
                "Gemini response has no candidate text",
                provider=self.provider_type.value,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata:
            self.usage.tokens_used += getattr(usage_metadata, "total_token_count", 0) or 0

        self.logger.debug(
            f"Gemini response received in {int((time.time() - start_time) * 1000)}ms "
            f"({len(text)} chars)"
        )
        return text

    def test_connection(self) -> bool:
        """Test Gemini API connection and authentication."""
        try:
            self.logger.info("Testing Gemini connection...")
            result = self.invoke_json('Respond with the JSON object {"status": "ok"}')
            success = isinstance(result, dict) and result.get("status") == "ok"

            if success:
                self.logger.info("Gemini connection test successful")
            else:
                self.logger.warning("Gemini connection test failed - unexpected response")
            return success

        except AIError as e:
            self.logger.error(f"Gemini connection test failed: {e}")
            return False

    def _make_gemini_request(self, prompt: str) -> Any:
        return self.model.generate_content(
            prompt,
            generation_config=genai.types.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                response_mime_type="application/json",
            ),
        )

    @staticmethod
    def _first_candidate_text(response: Any) -> Optional[str]:
        """Concatenated text parts of the first candidate, or None."""
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return None

        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        text = "".join(getattr(part, "text", "") or "" for part in parts)
        return text or None
