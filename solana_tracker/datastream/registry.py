from __future__ import annotations
from typing import Dict, Iterator, List, Optional

from .rooms import TopicKind, classify_topic


class SubscriptionRegistry:
    """Desired topics, independent of transport state. Replayed on every reconnect."""

    def __init__(self) -> None:
        self._topics: Dict[str, TopicKind] = {}

    def add(self, topic: str) -> bool:
        """Returns True when the topic was not desired before."""
        if not topic:
            raise ValueError("topic must be a non-empty string")
        if topic in self._topics:
            return False
        self._topics[topic] = classify_topic(topic)
        return True

    def discard(self, topic: str) -> bool:
        return self._topics.pop(topic, None) is not None

    def kind_of(self, topic: str) -> TopicKind:
        kind = self._topics.get(topic)
        return kind if kind is not None else classify_topic(topic)

    def topics(self, kind: Optional[TopicKind] = None) -> List[str]:
        if kind is None:
            return list(self._topics)
        return [t for t, k in self._topics.items() if k is kind]

    def clear(self) -> None:
        self._topics.clear()

    def __contains__(self, topic: object) -> bool:
        return topic in self._topics

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._topics))

    def __len__(self) -> int:
        return len(self._topics)
