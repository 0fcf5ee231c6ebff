from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MESSAGE_KIND = "message"


@dataclass(frozen=True)
class Envelope:
    kind: str
    topic: str
    payload: Any

    @property
    def is_data(self) -> bool:
        return self.kind == MESSAGE_KIND

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "Envelope":
        if not isinstance(raw, dict):
            raise ValueError(f"envelope must be an object, got {type(raw).__name__}")
        kind = str(raw.get("type") or "")
        topic = raw.get("room")
        if kind == MESSAGE_KIND and not isinstance(topic, str):
            raise ValueError("message envelope without room")
        return cls(kind=kind, topic=topic or "", payload=raw.get("data"))


def _fget(raw: Dict[str, Any], key: str) -> Optional[float]:
    try:
        v = raw.get(key)
        return None if v is None else float(v)
    except (TypeError, ValueError):
        return None


def _iget(raw: Dict[str, Any], key: str) -> Optional[int]:
    try:
        v = raw.get(key)
        return None if v is None else int(v)
    except (TypeError, ValueError):
        return None


def _quote_usd(raw: Any) -> Dict[str, Optional[float]]:
    raw = raw if isinstance(raw, dict) else {}
    return {"quote": _fget(raw, "quote"), "usd": _fget(raw, "usd")}


@dataclass
class PriceUpdate:
    price: Optional[float]
    price_quote: Optional[float]
    pool: str
    token: str
    time: Optional[int]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PriceUpdate":
        return cls(
            price=_fget(raw, "price"),
            price_quote=_fget(raw, "price_quote"),
            pool=str(raw.get("pool") or ""),
            token=str(raw.get("token") or ""),
            time=_iget(raw, "time"),
            raw=raw,
        )


@dataclass
class TokenTransaction:
    tx: str
    amount: Optional[float]
    price_usd: Optional[float]
    volume: Optional[float]
    type: str
    wallet: str
    time: Optional[int]
    program: str
    volume_sol: Optional[float] = None
    pools: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_buy(self) -> bool:
        return self.type == "buy"

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "TokenTransaction":
        return cls(
            tx=str(raw.get("tx") or ""),
            amount=_fget(raw, "amount"),
            price_usd=_fget(raw, "priceUsd"),
            volume=_fget(raw, "volume"),
            type=str(raw.get("type") or ""),
            wallet=str(raw.get("wallet") or ""),
            time=_iget(raw, "time"),
            program=str(raw.get("program") or ""),
            volume_sol=_fget(raw, "volumeSol"),
            pools=[str(p) for p in raw.get("pools") or []],
            raw=raw,
        )


@dataclass
class WalletTransaction:
    tx: str
    amount: Optional[float]
    price_usd: Optional[float]
    sol_volume: Optional[float]
    volume: Optional[float]
    type: str
    wallet: str
    time: Optional[int]
    program: str
    token_from: Optional[Dict[str, Any]] = None
    token_to: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "WalletTransaction":
        token = raw.get("token") or {}
        return cls(
            tx=str(raw.get("tx") or ""),
            amount=_fget(raw, "amount"),
            price_usd=_fget(raw, "priceUsd"),
            sol_volume=_fget(raw, "solVolume"),
            volume=_fget(raw, "volume"),
            type=str(raw.get("type") or ""),
            wallet=str(raw.get("wallet") or ""),
            time=_iget(raw, "time"),
            program=str(raw.get("program") or ""),
            token_from=token.get("from") if isinstance(token, dict) else None,
            token_to=token.get("to") if isinstance(token, dict) else None,
            raw=raw,
        )


@dataclass
class HolderUpdate:
    total: Optional[int]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "HolderUpdate":
        return cls(total=_iget(raw, "total"), raw=raw)


@dataclass
class PoolUpdate:
    pool_id: str
    token_address: str
    market: str
    quote_token: str
    liquidity: Dict[str, Optional[float]]
    price: Dict[str, Optional[float]]
    market_cap: Dict[str, Optional[float]]
    token_supply: Optional[float]
    lp_burn: Optional[float]
    decimals: Optional[int]
    last_updated: Optional[int]
    deployer: Optional[str] = None
    created_at: Optional[int] = None
    curve_percentage: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "PoolUpdate":
        return cls(
            pool_id=str(raw.get("poolId") or ""),
            token_address=str(raw.get("tokenAddress") or ""),
            market=str(raw.get("market") or ""),
            quote_token=str(raw.get("quoteToken") or ""),
            liquidity=_quote_usd(raw.get("liquidity")),
            price=_quote_usd(raw.get("price")),
            market_cap=_quote_usd(raw.get("marketCap")),
            token_supply=_fget(raw, "tokenSupply"),
            lp_burn=_fget(raw, "lpBurn"),
            decimals=_iget(raw, "decimals"),
            last_updated=_iget(raw, "lastUpdated"),
            deployer=raw.get("deployer"),
            created_at=_iget(raw, "createdAt"),
            curve_percentage=_fget(raw, "curvePercentage"),
            raw=raw,
        )


@dataclass
class TokenMetadata:
    name: str
    symbol: str
    mint: str
    decimals: Optional[int]
    uri: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    twitter: Optional[str] = None
    telegram: Optional[str] = None
    website: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "TokenMetadata":
        return cls(
            name=str(raw.get("name") or ""),
            symbol=str(raw.get("symbol") or ""),
            mint=str(raw.get("mint") or ""),
            decimals=_iget(raw, "decimals"),
            uri=raw.get("uri"),
            description=raw.get("description"),
            image=raw.get("image"),
            twitter=raw.get("twitter"),
            telegram=raw.get("telegram"),
            website=raw.get("website"),
            raw=raw,
        )
