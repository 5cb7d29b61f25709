"""
Topic Grouper
=============

Partitions classified items by section for per-topic content generation.
"""

from typing import Dict, List, Sequence

from ..database.models import ClassifiedItem, TopicGroup

DEFAULT_TOPIC = "Other"


def group_by_topic(items: Sequence[ClassifiedItem],
                   fallback_topic: str = DEFAULT_TOPIC) -> Dict[str, List[ClassifiedItem]]:
    """Group items by section.

    Groups appear in order of each topic's first occurrence and items keep
    their input order within a group. Items with an empty section go to
    ``fallback_topic``.
    """
    groups: Dict[str, List[ClassifiedItem]] = {}
    for item in items:
        key = (item.section or "").strip() or fallback_topic
        groups.setdefault(key, []).append(item)
    return groups


def to_topic_groups(groups: Dict[str, List[ClassifiedItem]]) -> List[TopicGroup]:
    return [TopicGroup(topic_key=key, items=list(members)) for key, members in groups.items()]
