"""
Typed subscription helpers

    ds.subscribe.latest().on(handle_pool)
    ds.subscribe.price.token(mint).on(handle_price)
    ds.subscribe.tx.wallet(wallet).on(handle_trade)
    ds.subscribe("custom:room").on(handler)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .listeners import ListenerHandle
from .rooms import DatastreamRoom, build_topic

if TYPE_CHECKING:
    from .client import Datastream


@dataclass
class SubscribeResponse:
    room: str
    _datastream: "Datastream" = field(repr=False, compare=False)

    def on(self, callback: Callable[[Any], None]) -> ListenerHandle:
        """
        Register a listener for this room. List payloads arrive one item per call.
        The returned handle removes only this listener; the room stays joined
        until Datastream.unsubscribe(room).
        """
        return self._datastream.listen(self.room, callback)

    def leave(self) -> None:
        """Release the room itself (all listeners stay registered but receive nothing)."""
        self._datastream.unsubscribe(self.room)


class PriceSubscriptions:
    def __init__(self, datastream: "Datastream") -> None:
        self._ds = datastream

    def token(self, token_address: str) -> SubscribeResponse:
        """Price updates for a token's primary/largest pool."""
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.PRICE_BY_TOKEN, token_address))

    def all_pools_for_token(self, token_address: str) -> SubscribeResponse:
        """Price updates for a token across all of its pools."""
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.PRICE_BY_POOL, token_address))

    def pool(self, pool_id: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.PRICE_BY_POOL, pool_id))


class TransactionSubscriptions:
    def __init__(self, datastream: "Datastream") -> None:
        self._ds = datastream

    def token(self, token_address: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.TOKEN_TRANSACTIONS, token_address))

    def pool(self, token_address: str, pool_id: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.TOKEN_TRANSACTIONS, token_address, pool_id))

    def wallet(self, wallet_address: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.WALLET_TRANSACTIONS, wallet_address))


class SubscriptionMethods:
    def __init__(self, datastream: "Datastream") -> None:
        self._ds = datastream
        self.price = PriceSubscriptions(datastream)
        self.tx = TransactionSubscriptions(datastream)

    def __call__(self, room: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(room)

    def latest(self) -> SubscribeResponse:
        return self._ds.subscribe_topic(DatastreamRoom.LATEST.value)

    def graduating(self, market_cap_threshold_sol: Optional[Union[int, float]] = None) -> SubscribeResponse:
        if market_cap_threshold_sol:
            return self._ds.subscribe_topic(build_topic(DatastreamRoom.GRADUATING, "sol", market_cap_threshold_sol))
        return self._ds.subscribe_topic(DatastreamRoom.GRADUATING.value)

    def graduated(self) -> SubscribeResponse:
        return self._ds.subscribe_topic(DatastreamRoom.GRADUATED.value)

    def metadata(self, token_address: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.METADATA, token_address))

    def holders(self, token_address: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.HOLDERS, token_address))

    def token(self, token_address: str) -> SubscribeResponse:
        """Changes to a token on any pool."""
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.TOKEN_CHANGES, token_address))

    def pool(self, pool_id: str) -> SubscribeResponse:
        return self._ds.subscribe_topic(build_topic(DatastreamRoom.POOL_CHANGES, pool_id))
