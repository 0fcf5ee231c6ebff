from __future__ import annotations
from enum import Enum
from typing import Optional


class DatastreamRoom(str, Enum):
    """Topic families published by the Datastream service."""
    # Token/pool updates
    LATEST = "latest"
    # Price updates
    PRICE_BY_TOKEN = "price-by-token"
    PRICE_BY_POOL = "price"
    # Transactions
    TOKEN_TRANSACTIONS = "transaction"
    WALLET_TRANSACTIONS = "wallet"
    # Pump.fun stages
    GRADUATING = "graduating"
    GRADUATED = "graduated"
    # Metadata and holders
    METADATA = "metadata"
    HOLDERS = "holders"
    # Token changes
    TOKEN_CHANGES = "token"
    POOL_CHANGES = "pool"


class TopicKind(Enum):
    GENERAL = "general"
    TRANSACTION = "transaction"


TOPIC_DELIMITER = ":"
PRICE_BY_POOL_PREFIX = DatastreamRoom.PRICE_BY_POOL.value + TOPIC_DELIMITER


def build_topic(room: DatastreamRoom, *params: object) -> str:
    parts = [room.value]
    parts.extend(str(p) for p in params if p is not None and p != "")
    return TOPIC_DELIMITER.join(parts)


def classify_topic(topic: str) -> TopicKind:
    """Token transaction feeds travel on the dedicated transaction channel."""
    family = topic.split(TOPIC_DELIMITER, 1)[0]
    if family == DatastreamRoom.TOKEN_TRANSACTIONS.value:
        return TopicKind.TRANSACTION
    return TopicKind.GENERAL


def is_price_by_pool(topic: str) -> bool:
    return topic.startswith(PRICE_BY_POOL_PREFIX)


def price_by_token_topic(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return build_topic(DatastreamRoom.PRICE_BY_TOKEN, token)
