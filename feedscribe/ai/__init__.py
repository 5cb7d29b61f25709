"""
FeedScribe AI Package
====================

Classification and content generation backed by the AI provider.
"""

from .classifier import Classifier
from .content_generator import ContentGenerator, render_bullet_list
from .providers import AIProvider, GeminiProvider

__all__ = [
    "Classifier",
    "ContentGenerator",
    "render_bullet_list",
    "AIProvider",
    "GeminiProvider",
]
