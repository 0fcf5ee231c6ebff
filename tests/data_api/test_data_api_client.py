import json
import logging

import httpx
import pytest

from solana_tracker.config.settings import Settings
from solana_tracker.data_api import DataApiClient
from solana_tracker.exceptions import ConfigurationError, DataApiError, RateLimitError, ValidationError

BASE = "https://data.example.test"
MINT = "So11111111111111111111111111111111111111112"
POOL = "7qbRF6YsyGuLUVs6Y1q64bdVrfe4ZcUUz1JRdoVNUJnm"
WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


class Recorder:
    def __init__(self, status=200, body=None, headers=None):
        self.requests = []
        self.status = status
        self.body = {"ok": True} if body is None else body
        self.headers = headers or {}

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body, headers=self.headers)

    @property
    def last(self):
        return self.requests[-1]


def make_client(handler, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return DataApiClient(api_key="test-key", base_url=BASE, http_client=http, settings=Settings(), **kwargs)


def test_request_carries_api_key_and_returns_json():
    rec = Recorder(body={"token": {"symbol": "SOL"}})
    client = make_client(rec)
    data = client.get_token_info(MINT)
    assert data == {"token": {"symbol": "SOL"}}
    assert rec.last.method == "GET"
    assert rec.last.url.path == f"/tokens/{MINT}"
    assert rec.last.headers["x-api-key"] == "test-key"
    assert rec.last.headers["content-type"] == "application/json"


def test_rate_limit_raises_with_retry_after(caplog):
    client = make_client(Recorder(status=429, headers={"Retry-After": "7"}))
    with caplog.at_level(logging.WARNING):
        with pytest.raises(RateLimitError) as exc:
            client.get_token_holders(MINT)
    assert exc.value.retry_after == 7
    assert exc.value.status == 429
    assert exc.value.code == "RATE_LIMIT_EXCEEDED"
    assert "Rate limit exceeded" in caplog.text


def test_rate_limit_warning_suppressed_when_logs_disabled(caplog):
    client = make_client(Recorder(status=429), disable_logs=True)
    with caplog.at_level(logging.WARNING):
        with pytest.raises(RateLimitError) as exc:
            client.get_token_overview()
    assert exc.value.retry_after is None
    assert "Rate limit" not in caplog.text


def test_http_error_status():
    client = make_client(Recorder(status=500, body={"error": "boom"}))
    with pytest.raises(DataApiError) as exc:
        client.get_graduated_tokens()
    assert str(exc.value) == "API request failed: 500 Internal Server Error"
    assert exc.value.status == 500
    assert not isinstance(exc.value, RateLimitError)


def test_transport_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(DataApiError) as exc:
        client.get_token_stats(MINT)
    assert str(exc.value) == "An unexpected error occurred"
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


def test_invalid_input_never_reaches_network():
    rec = Recorder()
    client = make_client(rec)
    with pytest.raises(ValidationError) as exc:
        client.get_token_info("not-a-key")
    assert exc.value.status == 400
    assert exc.value.code == "VALIDATION_ERROR"
    with pytest.raises(ValidationError):
        client.get_pool_stats(MINT, "0OIl" * 10)
    with pytest.raises(ValidationError):
        client.get_latest_tokens(11)
    with pytest.raises(ValidationError):
        client.get_multiple_tokens([MINT] * 21)
    with pytest.raises(ValidationError):
        client.get_multiple_prices([MINT] * 101)
    with pytest.raises(ValidationError):
        client.get_trending_tokens("2d")
    with pytest.raises(ValidationError):
        client.get_tokens_by_volume("2h")
    with pytest.raises(ValidationError):
        client.get_top_traders(sort_by="luck")
    assert rec.requests == []


def test_missing_api_key():
    with pytest.raises(ConfigurationError):
        DataApiClient(settings=Settings())


def test_price_queries():
    rec = Recorder()
    client = make_client(rec)
    client.get_price(MINT, price_changes=True)
    assert rec.last.url.path == "/price"
    assert dict(rec.last.url.params) == {"token": MINT, "priceChanges": "true"}

    client.get_multiple_prices([MINT, POOL])
    assert rec.last.url.path == "/price/multi"
    assert dict(rec.last.url.params) == {"tokens": f"{MINT},{POOL}"}

    client.get_price_range(MINT, 1700000000, 1700003600)
    assert dict(rec.last.url.params) == {"token": MINT, "time_from": "1700000000", "time_to": "1700003600"}


def test_post_bodies():
    rec = Recorder()
    client = make_client(rec)
    client.post_multiple_prices([MINT], price_changes=True)
    assert rec.last.method == "POST"
    assert json.loads(rec.last.content) == {"tokens": [MINT], "priceChanges": True}

    client.get_multiple_tokens([MINT, POOL])
    assert rec.last.url.path == "/tokens/multi"
    assert json.loads(rec.last.content) == {"tokens": [MINT, POOL]}


def test_search_drops_unset_filters():
    rec = Recorder()
    client = make_client(rec)
    client.search_tokens({"query": "bonk"}, minLiquidity=1000, freezeAuthority=None, lpBurn=True)
    assert rec.last.url.path == "/search"
    assert dict(rec.last.url.params) == {"query": "bonk", "minLiquidity": "1000", "lpBurn": "true"}


def test_trade_flags_only_sent_when_set():
    rec = Recorder()
    client = make_client(rec)
    client.get_token_trades(MINT, cursor=5, show_meta=True)
    assert dict(rec.last.url.params) == {"cursor": "5", "showMeta": "true"}

    client.get_user_token_trades(MINT, WALLET, hide_arb=True)
    assert rec.last.url.path == f"/trades/{MINT}/by-wallet/{WALLET}"
    assert dict(rec.last.url.params) == {"hideArb": "true"}

    client.get_wallet_trades(WALLET)
    assert rec.last.url.path == f"/wallet/{WALLET}/trades"
    assert dict(rec.last.url.params) == {}


def test_chart_params():
    rec = Recorder()
    client = make_client(rec)
    client.get_chart_data(MINT, interval="1m", time_from=10, market_cap=True)
    assert dict(rec.last.url.params) == {"type": "1m", "time_from": "10", "marketCap": "true"}

    client.get_pool_chart_data(MINT, POOL, remove_outliers=False)
    assert rec.last.url.path == f"/chart/{MINT}/{POOL}"
    assert dict(rec.last.url.params) == {"removeOutliers": "false"}


def test_path_variants():
    rec = Recorder()
    client = make_client(rec)
    client.get_trending_tokens()
    assert rec.last.url.path == "/tokens/trending"
    client.get_trending_tokens("1h")
    assert rec.last.url.path == "/tokens/trending/1h"
    client.get_top_traders(page=2, expand_pnl=True, sort_by="total")
    assert rec.last.url.path == "/top-traders/all/2"
    assert dict(rec.last.url.params) == {"expandPnL": "true", "sortBy": "total"}
    client.get_wallet_pnl(WALLET, show_historic_pnl=True)
    assert rec.last.url.path == f"/pnl/{WALLET}"
    assert dict(rec.last.url.params) == {"showHistoricPnL": "true"}
    client.get_token_pnl(WALLET, MINT)
    assert rec.last.url.path == f"/pnl/{WALLET}/{MINT}"
    client.get_user_pool_trades(MINT, POOL, WALLET)
    assert rec.last.url.path == f"/trades/{MINT}/{POOL}/{WALLET}"


def test_base_url_trailing_slash_and_context_manager():
    rec = Recorder()
    http = httpx.Client(transport=httpx.MockTransport(rec))
    with DataApiClient(api_key="k", base_url=BASE + "/", http_client=http, settings=Settings()) as client:
        client.get_first_buyers(MINT)
    assert str(rec.last.url) == f"{BASE}/first-buyers/{MINT}"
    # caller-owned http client stays open
    assert not http.is_closed
