"""
Solana Tracker client: the Data API over REST and the Datastream over WebSockets
"""

from .config import Settings, get_settings, reset_settings
from .data_api import DataApiClient
from .datastream import Datastream, DatastreamConfig
from .exceptions import (
    ConfigurationError,
    DataApiError,
    DatastreamError,
    MalformedMessageError,
    RateLimitError,
    SolanaTrackerError,
    ValidationError,
)
from .utils.logger import setup_logging

__version__ = "0.0.3"

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "DataApiClient",
    "Datastream",
    "DatastreamConfig",
    "ConfigurationError",
    "DataApiError",
    "DatastreamError",
    "MalformedMessageError",
    "RateLimitError",
    "SolanaTrackerError",
    "ValidationError",
    "setup_logging",
]
