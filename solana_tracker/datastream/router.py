from __future__ import annotations
import logging
from typing import Any, List, Optional

from .dedup import DeliveryDeduplicator
from .listeners import Listener, ListenerHandle, ListenerMap
from .rooms import is_price_by_pool, price_by_token_topic
from .schema import Envelope
from .telemetry import telemetry

logger = logging.getLogger(__name__)


class TopicRouter:
    """Dispatches data envelopes to the listeners registered for their topic."""

    def __init__(self, deduplicator: Optional[DeliveryDeduplicator] = None) -> None:
        self._listeners = ListenerMap("TopicRouter")
        self.deduplicator = deduplicator

    def add(self, topic: str, listener: Listener) -> ListenerHandle:
        return self._listeners.add(topic, listener)

    def listener_count(self, topic: Optional[str] = None) -> int:
        return self._listeners.count(topic)

    def dispatch(self, envelope: Envelope) -> int:
        """
        Deliver one envelope; returns the number of items that passed dedup.
        List payloads fan out item by item, in list order.
        """
        if not envelope.is_data:
            return 0
        payload = envelope.payload
        items: List[Any] = payload if isinstance(payload, list) else [payload]
        by_pool = is_price_by_pool(envelope.topic)
        delivered = 0
        for item in items:
            if self.deduplicator is not None and not self.deduplicator.accept(item):
                telemetry.incr("datastream_duplicates_dropped_total", 1)
                logger.debug("dropping duplicate delivery on %s", envelope.topic)
                continue
            delivered += 1
            self._listeners.notify(envelope.topic, item)
            if by_pool and isinstance(item, dict):
                synthesized = price_by_token_topic(item.get("token"))
                if synthesized:
                    self._listeners.notify(synthesized, item)
        return delivered
