"""
FeedScribe Storage Layer
=======================

Narrow store interfaces the pipeline persists through:
- TabularStore: named tables of rows (pending, archive, generated content)
- PropertyStore: key/value configuration and secrets
"""

from .tabular_store import TabularStore
from .property_store import PropertyStore

__all__ = [
    "TabularStore",
    "PropertyStore",
]
