from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

from ..config.settings import Settings, get_settings
from ..exceptions import ConfigurationError


@dataclass
class DatastreamConfig:
    """Connection options for a Datastream. Delays are in seconds."""
    ws_url: str
    auto_reconnect: bool = True
    reconnect_delay: float = 2.5
    reconnect_delay_max: float = 4.5
    randomization_factor: float = 0.5
    dedup_max_entries: Optional[int] = None
    ping_interval: Optional[float] = 20.0
    ping_timeout: Optional[float] = 20.0

    def __post_init__(self) -> None:
        if not self.ws_url:
            raise ConfigurationError("ws_url is required (found on your Solana Tracker dashboard)")
        for name in ("reconnect_delay", "reconnect_delay_max", "randomization_factor"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        if self.dedup_max_entries is not None and self.dedup_max_entries < 0:
            raise ConfigurationError("dedup_max_entries must be >= 0")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "DatastreamConfig":
        settings = settings or get_settings()
        base = dict(
            ws_url=settings.DATASTREAM_WS_URL,
            auto_reconnect=settings.DATASTREAM_AUTO_RECONNECT,
            reconnect_delay=settings.DATASTREAM_RECONNECT_DELAY,
            reconnect_delay_max=settings.DATASTREAM_RECONNECT_DELAY_MAX,
            randomization_factor=settings.DATASTREAM_RANDOMIZATION_FACTOR,
            dedup_max_entries=settings.DATASTREAM_DEDUP_MAX_ENTRIES or None,
            ping_interval=settings.DATASTREAM_PING_INTERVAL,
            ping_timeout=settings.DATASTREAM_PING_TIMEOUT,
        )
        base.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**base)
