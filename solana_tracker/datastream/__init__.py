"""
Datastream - live updates over two self-healing WebSocket channels
"""

from .client import Datastream, DatastreamState
from .config import DatastreamConfig
from .dedup import DeliveryDeduplicator
from .events import EventHub, LifecycleEvent
from .listeners import ListenerHandle
from .registry import SubscriptionRegistry
from .rooms import DatastreamRoom, TopicKind, build_topic, classify_topic
from .router import TopicRouter
from .schema import (
    Envelope,
    HolderUpdate,
    PoolUpdate,
    PriceUpdate,
    TokenMetadata,
    TokenTransaction,
    WalletTransaction,
)
from .subscriptions import SubscribeResponse
from .transport import ChannelState, TransportConnection

__all__ = [
    "Datastream",
    "DatastreamState",
    "DatastreamConfig",
    "DeliveryDeduplicator",
    "EventHub",
    "LifecycleEvent",
    "ListenerHandle",
    "SubscriptionRegistry",
    "DatastreamRoom",
    "TopicKind",
    "build_topic",
    "classify_topic",
    "TopicRouter",
    "Envelope",
    "HolderUpdate",
    "PoolUpdate",
    "PriceUpdate",
    "TokenMetadata",
    "TokenTransaction",
    "WalletTransaction",
    "SubscribeResponse",
    "ChannelState",
    "TransportConnection",
]
