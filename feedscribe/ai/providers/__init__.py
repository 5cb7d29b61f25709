"""
AI Providers Package
===================

Text-generation service providers.
"""

from .base import AIProvider, AIProviderType, UsageStats
from .gemini_provider import GeminiProvider

__all__ = [
    "AIProvider",
    "AIProviderType",
    "UsageStats",
    "GeminiProvider",
]
