from __future__ import annotations
import re
from typing import Iterable, Optional, Sequence

from ..exceptions import ValidationError

# base58, the length range of Solana public keys
_PUBLIC_KEY_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

TRENDING_TIMEFRAMES = ("5m", "15m", "30m", "1h", "2h", "3h", "4h", "5h", "6h", "12h", "24h")
VOLUME_TIMEFRAMES = ("5m", "15m", "30m", "1h", "6h", "12h", "24h")
TOP_TRADER_SORTS = ("total", "winPercentage")

MAX_MULTI_TOKENS = 20
MAX_MULTI_PRICES = 100


def validate_public_key(address: Optional[str], param_name: str) -> str:
    if not address or not isinstance(address, str) or not _PUBLIC_KEY_RE.match(address):
        raise ValidationError(f"Invalid {param_name}: {address}")
    return address


def validate_public_keys(addresses: Sequence[str], param_name: str, limit: int) -> list:
    if len(addresses) > limit:
        raise ValidationError(f"Maximum of {limit} tokens per request")
    return [validate_public_key(a, param_name) for a in addresses]


def validate_page(page: int, low: int = 1, high: int = 10) -> int:
    if not isinstance(page, int) or page < low or page > high:
        raise ValidationError(f"Page must be between {low} and {high}")
    return page


def validate_choice(value: Optional[str], allowed: Iterable[str], label: str) -> Optional[str]:
    allowed = tuple(allowed)
    if value and value not in allowed:
        raise ValidationError(f"Invalid {label}. Must be one of: {', '.join(allowed)}")
    return value
