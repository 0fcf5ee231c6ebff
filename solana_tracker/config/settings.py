import os
from dataclasses import dataclass
from typing import Optional

from solana_tracker.utils.helpers import parse_bool, parse_int, parse_float


@dataclass
class Settings:
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_PATH: str = "logs/solana_tracker.log"

    # Data API (REST)
    SOLANA_TRACKER_API_KEY: Optional[str] = None
    DATA_API_BASE_URL: str = "https://data.solanatracker.io"
    DATA_API_TIMEOUT: float = 30.0
    DATA_API_DISABLE_LOGS: bool = False

    # Datastream (WebSocket)
    DATASTREAM_WS_URL: str = ""
    DATASTREAM_AUTO_RECONNECT: bool = True
    DATASTREAM_RECONNECT_DELAY: float = 2.5  # seconds
    DATASTREAM_RECONNECT_DELAY_MAX: float = 4.5  # seconds
    DATASTREAM_RANDOMIZATION_FACTOR: float = 0.5
    DATASTREAM_DEDUP_MAX_ENTRIES: int = 0  # 0 = unbounded for the session
    DATASTREAM_PING_INTERVAL: float = 20.0
    DATASTREAM_PING_TIMEOUT: float = 20.0


_settings: Optional[Settings] = None


def _load_from_env(settings: Settings) -> None:
    env = os.environ

    def set_if(name: str, cast):
        if name in env and env[name] != "":
            setattr(settings, name, cast(env[name]))

    set_if("LOG_LEVEL", str)
    set_if("LOG_PATH", str)

    set_if("SOLANA_TRACKER_API_KEY", str)
    set_if("DATA_API_BASE_URL", str)
    set_if("DATA_API_TIMEOUT", lambda v: parse_float(v, settings.DATA_API_TIMEOUT))
    set_if("DATA_API_DISABLE_LOGS", lambda v: parse_bool(v, settings.DATA_API_DISABLE_LOGS))

    set_if("DATASTREAM_WS_URL", str)
    set_if("DATASTREAM_AUTO_RECONNECT", lambda v: parse_bool(v, settings.DATASTREAM_AUTO_RECONNECT))
    set_if("DATASTREAM_RECONNECT_DELAY", lambda v: parse_float(v, settings.DATASTREAM_RECONNECT_DELAY))
    set_if("DATASTREAM_RECONNECT_DELAY_MAX", lambda v: parse_float(v, settings.DATASTREAM_RECONNECT_DELAY_MAX))
    set_if("DATASTREAM_RANDOMIZATION_FACTOR", lambda v: parse_float(v, settings.DATASTREAM_RANDOMIZATION_FACTOR))
    set_if("DATASTREAM_DEDUP_MAX_ENTRIES", lambda v: parse_int(v, settings.DATASTREAM_DEDUP_MAX_ENTRIES))
    set_if("DATASTREAM_PING_INTERVAL", lambda v: parse_float(v, settings.DATASTREAM_PING_INTERVAL))
    set_if("DATASTREAM_PING_TIMEOUT", lambda v: parse_float(v, settings.DATASTREAM_PING_TIMEOUT))


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
        _load_from_env(_settings)
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
