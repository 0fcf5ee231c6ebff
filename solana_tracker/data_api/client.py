from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config.settings import Settings, get_settings
from ..exceptions import ConfigurationError, DataApiError, RateLimitError
from ..utils.helpers import clean_params, parse_int
from .validation import (
    MAX_MULTI_PRICES,
    MAX_MULTI_TOKENS,
    TOP_TRADER_SORTS,
    TRENDING_TIMEFRAMES,
    VOLUME_TIMEFRAMES,
    validate_choice,
    validate_page,
    validate_public_key,
    validate_public_keys,
)

logger = logging.getLogger(__name__)

JSON = Any


def _flags(**flags: Optional[bool]) -> Dict[str, str]:
    # Only set flags are sent, as "true"
    return {k: "true" for k, v in flags.items() if v}


def _trade_params(cursor: Optional[int], show_meta: bool, parse_jupiter: bool, hide_arb: bool) -> Dict[str, str]:
    params = clean_params({"cursor": cursor or None})
    params.update(_flags(showMeta=show_meta, parseJupiter=parse_jupiter, hideArb=hide_arb))
    return params


def _chart_params(
    interval: Optional[str],
    time_from: Optional[int],
    time_to: Optional[int],
    market_cap: bool = False,
    remove_outliers: Optional[bool] = None,
) -> Dict[str, str]:
    params = clean_params({"type": interval or None, "time_from": time_from or None, "time_to": time_to or None})
    params.update(_flags(marketCap=market_cap))
    if remove_outliers is False:
        params["removeOutliers"] = "false"
    return params


class DataApiClient:
    """
    Solana Tracker Data API client.

    Inputs are validated before any request is made (ValidationError). HTTP 429
    raises RateLimitError with the server's Retry-After; other failures raise
    DataApiError. Nothing is retried automatically.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        settings: Optional[Settings] = None,
        disable_logs: Optional[bool] = None,
    ) -> None:
        settings = settings or get_settings()
        self.api_key = api_key or settings.SOLANA_TRACKER_API_KEY
        if not self.api_key:
            raise ConfigurationError("api_key is required (SOLANA_TRACKER_API_KEY)")
        self.base_url = (base_url or settings.DATA_API_BASE_URL).rstrip("/")
        self.disable_logs = settings.DATA_API_DISABLE_LOGS if disable_logs is None else disable_logs
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout or settings.DATA_API_TIMEOUT)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "DataApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def perform(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[JSON] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> JSON:
        """Send one request and return the decoded JSON body."""
        request_headers = {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        request_headers.update(headers or {})
        url = f"{self.base_url}{endpoint}"
        try:
            response = self._http.request(
                method,
                url,
                params=params or None,
                json=body,
                headers=request_headers,
            )
        except httpx.HTTPError as e:
            logger.debug("request to %s failed: %s", endpoint, e)
            raise DataApiError("An unexpected error occurred") from e

        if response.status_code == 429:
            retry_after = parse_int(response.headers.get("Retry-After"))
            if not self.disable_logs:
                logger.warning("Rate limit exceeded for %s. Retry after: %s seconds", endpoint, retry_after or 1)
            raise RateLimitError("Rate limit exceeded", retry_after)
        if not response.is_success:
            raise DataApiError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise DataApiError("Invalid JSON in API response", response.status_code) from e

    # === Tokens ===

    def get_token_info(self, token_address: str) -> JSON:
        """Comprehensive information about a token."""
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/tokens/{token_address}")

    def get_token_by_pool(self, pool_address: str) -> JSON:
        validate_public_key(pool_address, "poolAddress")
        return self.perform(f"/tokens/by-pool/{pool_address}")

    def get_token_holders(self, token_address: str) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/tokens/{token_address}/holders")

    def get_top_holders(self, token_address: str) -> JSON:
        """Top 20 holders of a token."""
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/tokens/{token_address}/holders/top")

    def get_ath_price(self, token_address: str) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/tokens/{token_address}/ath")

    def get_tokens_by_deployer(self, wallet: str) -> JSON:
        validate_public_key(wallet, "wallet")
        return self.perform(f"/deployer/{wallet}")

    def search_tokens(self, params: Optional[Dict[str, Any]] = None, **filters: Any) -> JSON:
        """
        Search tokens. Filters use the API's own names, e.g.
        search_tokens(query="bonk", minLiquidity=10_000, sortBy="volume").
        """
        merged = dict(params or {})
        merged.update(filters)
        return self.perform("/search", params=clean_params(merged))

    def get_latest_tokens(self, page: int = 1) -> JSON:
        validate_page(page, 1, 10)
        return self.perform("/tokens/latest", params={"page": str(page)})

    def get_multiple_tokens(self, token_addresses: Sequence[str]) -> JSON:
        tokens = validate_public_keys(token_addresses, "tokenAddress", MAX_MULTI_TOKENS)
        return self.perform("/tokens/multi", method="POST", body={"tokens": tokens})

    def get_trending_tokens(self, timeframe: Optional[str] = None) -> JSON:
        validate_choice(timeframe, TRENDING_TIMEFRAMES, "timeframe")
        return self.perform(f"/tokens/trending/{timeframe}" if timeframe else "/tokens/trending")

    def get_tokens_by_volume(self, timeframe: Optional[str] = None) -> JSON:
        validate_choice(timeframe, VOLUME_TIMEFRAMES, "timeframe")
        return self.perform(f"/tokens/volume/{timeframe}" if timeframe else "/tokens/volume")

    def get_token_overview(self) -> JSON:
        """Latest, graduating and graduated tokens in one call."""
        return self.perform("/tokens/multi/all")

    def get_graduated_tokens(self) -> JSON:
        return self.perform("/tokens/multi/graduated")

    # === Prices ===

    def get_price(self, token_address: str, price_changes: bool = False) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        params = {"token": token_address}
        params.update(_flags(priceChanges=price_changes))
        return self.perform("/price", params=params)

    def get_price_history(self, token_address: str) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform("/price/history", params={"token": token_address})

    def get_price_at_timestamp(self, token_address: str, timestamp: int) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            "/price/history/timestamp",
            params={"token": token_address, "timestamp": str(timestamp)},
        )

    def get_price_range(self, token_address: str, time_from: int, time_to: int) -> JSON:
        """Lowest and highest price between two unix timestamps."""
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            "/price/history/range",
            params={"token": token_address, "time_from": str(time_from), "time_to": str(time_to)},
        )

    def post_price(self, token_address: str, price_changes: bool = False) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            "/price",
            method="POST",
            body={"token": token_address, "priceChanges": bool(price_changes)},
        )

    def get_multiple_prices(self, token_addresses: Sequence[str], price_changes: bool = False) -> JSON:
        tokens = validate_public_keys(token_addresses, "tokenAddress", MAX_MULTI_PRICES)
        params = {"tokens": ",".join(tokens)}
        params.update(_flags(priceChanges=price_changes))
        return self.perform("/price/multi", params=params)

    def post_multiple_prices(self, token_addresses: Sequence[str], price_changes: bool = False) -> JSON:
        tokens = validate_public_keys(token_addresses, "tokenAddress", MAX_MULTI_PRICES)
        return self.perform(
            "/price/multi",
            method="POST",
            body={"tokens": tokens, "priceChanges": bool(price_changes)},
        )

    # === Wallets ===

    def get_wallet_basic(self, owner: str) -> JSON:
        validate_public_key(owner, "owner")
        return self.perform(f"/wallet/{owner}/basic")

    def get_wallet(self, owner: str) -> JSON:
        validate_public_key(owner, "owner")
        return self.perform(f"/wallet/{owner}")

    def get_wallet_page(self, owner: str, page: int) -> JSON:
        validate_public_key(owner, "owner")
        return self.perform(f"/wallet/{owner}/page/{page}")

    def get_wallet_trades(
        self,
        owner: str,
        cursor: Optional[int] = None,
        show_meta: bool = False,
        parse_jupiter: bool = False,
        hide_arb: bool = False,
    ) -> JSON:
        validate_public_key(owner, "owner")
        return self.perform(
            f"/wallet/{owner}/trades",
            params=_trade_params(cursor, show_meta, parse_jupiter, hide_arb),
        )

    # === Trades ===

    def get_token_trades(
        self,
        token_address: str,
        cursor: Optional[int] = None,
        show_meta: bool = False,
        parse_jupiter: bool = False,
        hide_arb: bool = False,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            f"/trades/{token_address}",
            params=_trade_params(cursor, show_meta, parse_jupiter, hide_arb),
        )

    def get_pool_trades(
        self,
        token_address: str,
        pool_address: str,
        cursor: Optional[int] = None,
        show_meta: bool = False,
        parse_jupiter: bool = False,
        hide_arb: bool = False,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        validate_public_key(pool_address, "poolAddress")
        return self.perform(
            f"/trades/{token_address}/{pool_address}",
            params=_trade_params(cursor, show_meta, parse_jupiter, hide_arb),
        )

    def get_user_pool_trades(
        self,
        token_address: str,
        pool_address: str,
        owner: str,
        cursor: Optional[int] = None,
        show_meta: bool = False,
        parse_jupiter: bool = False,
        hide_arb: bool = False,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        validate_public_key(pool_address, "poolAddress")
        validate_public_key(owner, "owner")
        return self.perform(
            f"/trades/{token_address}/{pool_address}/{owner}",
            params=_trade_params(cursor, show_meta, parse_jupiter, hide_arb),
        )

    def get_user_token_trades(
        self,
        token_address: str,
        owner: str,
        cursor: Optional[int] = None,
        show_meta: bool = False,
        parse_jupiter: bool = False,
        hide_arb: bool = False,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        validate_public_key(owner, "owner")
        return self.perform(
            f"/trades/{token_address}/by-wallet/{owner}",
            params=_trade_params(cursor, show_meta, parse_jupiter, hide_arb),
        )

    # === Charts ===

    def get_chart_data(
        self,
        token_address: str,
        interval: Optional[str] = None,
        time_from: Optional[int] = None,
        time_to: Optional[int] = None,
        market_cap: bool = False,
        remove_outliers: Optional[bool] = None,
    ) -> JSON:
        """
        OHLCV candles for a token.

        interval: candle size such as "1s", "1m", "1h", "1d" (sent as ``type``)
        market_cap: chart market cap instead of price
        remove_outliers: pass False to keep outliers (server default removes them)
        """
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            f"/chart/{token_address}",
            params=_chart_params(interval, time_from, time_to, market_cap, remove_outliers),
        )

    def get_pool_chart_data(
        self,
        token_address: str,
        pool_address: str,
        interval: Optional[str] = None,
        time_from: Optional[int] = None,
        time_to: Optional[int] = None,
        market_cap: bool = False,
        remove_outliers: Optional[bool] = None,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        validate_public_key(pool_address, "poolAddress")
        return self.perform(
            f"/chart/{token_address}/{pool_address}",
            params=_chart_params(interval, time_from, time_to, market_cap, remove_outliers),
        )

    def get_holders_chart(
        self,
        token_address: str,
        interval: Optional[str] = None,
        time_from: Optional[int] = None,
        time_to: Optional[int] = None,
    ) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(
            f"/holders/chart/{token_address}",
            params=_chart_params(interval, time_from, time_to),
        )

    # === PnL ===

    def get_wallet_pnl(
        self,
        wallet: str,
        show_historic_pnl: bool = False,
        holding_check: bool = False,
        hide_details: bool = False,
    ) -> JSON:
        validate_public_key(wallet, "wallet")
        return self.perform(
            f"/pnl/{wallet}",
            params=_flags(showHistoricPnL=show_historic_pnl, holdingCheck=holding_check, hideDetails=hide_details),
        )

    def get_first_buyers(self, token_address: str) -> List[JSON]:
        """First 100 buyers of a token, with PnL."""
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/first-buyers/{token_address}")

    def get_token_pnl(self, wallet: str, token_address: str) -> JSON:
        validate_public_key(wallet, "wallet")
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/pnl/{wallet}/{token_address}")

    # === Top Traders ===

    def get_top_traders(
        self,
        page: Optional[int] = None,
        expand_pnl: bool = False,
        sort_by: Optional[str] = None,
    ) -> JSON:
        validate_choice(sort_by, TOP_TRADER_SORTS, "sortBy")
        params = _flags(expandPnL=expand_pnl)
        if sort_by:
            params["sortBy"] = sort_by
        endpoint = f"/top-traders/all/{page}" if page else "/top-traders/all"
        return self.perform(endpoint, params=params)

    def get_token_top_traders(self, token_address: str) -> List[JSON]:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/top-traders/{token_address}")

    # === Stats ===

    def get_token_stats(self, token_address: str) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        return self.perform(f"/stats/{token_address}")

    def get_pool_stats(self, token_address: str, pool_address: str) -> JSON:
        validate_public_key(token_address, "tokenAddress")
        validate_public_key(pool_address, "poolAddress")
        return self.perform(f"/stats/{token_address}/{pool_address}")
