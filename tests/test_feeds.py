from decimal import Decimal

import pytest
import requests

from btcfolio.infrastructure.cache import TTLCache
from btcfolio.infrastructure.coingecko import client as coingecko_client
from btcfolio.infrastructure.coingecko.client import CoinGeckoClient
from btcfolio.infrastructure.exchange_rate import client as exchange_rate_client
from btcfolio.infrastructure.exchange_rate.client import ExchangeRateClient


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status}")

    def json(self):
        return self.payload


class FakeClock:
    def __init__(self):
        self.now = 1_000_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(path=None, clock=clock)


def _install(monkeypatch, module, responses):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append(url)
        result = responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(module.requests, "get", fake_get)
    return calls


PRICE_PAYLOAD = {"bitcoin": {"usd": 64000.5, "usd_24h_change": -1.25, "brl": 350000, "brl_24h_change": 0.5}}


def test_price_is_cached_within_ttl(monkeypatch, cache, clock):
    calls = _install(monkeypatch, coingecko_client, [FakeResponse(PRICE_PAYLOAD)])
    client = CoinGeckoClient(cache=cache)

    quote = client.get_quote("USD")
    assert quote.price == Decimal("64000.5")
    assert quote.change_24h == Decimal("-1.25")

    clock.now += 30
    assert client.get_btc_price("USD") == Decimal("64000.5")
    assert len(calls) == 1


def test_price_falls_back_to_last_known_quote(monkeypatch, cache, clock):
    calls = _install(monkeypatch, coingecko_client, [
        FakeResponse(PRICE_PAYLOAD),
        requests.exceptions.ConnectionError("offline"),
    ])
    client = CoinGeckoClient(cache=cache)
    assert client.get_btc_price("BRL") == Decimal("350000")

    clock.now += 120
    assert client.get_btc_price("BRL") == Decimal("350000")
    assert len(calls) == 2


def test_price_uses_default_without_any_quote(monkeypatch, cache):
    _install(monkeypatch, coingecko_client, [FakeResponse({}, status=503)])
    client = CoinGeckoClient(cache=cache)
    assert client.get_btc_price("USD") == Decimal("100000")


def test_price_rejects_payload_without_currency(monkeypatch, cache):
    _install(monkeypatch, coingecko_client, [FakeResponse({"bitcoin": {"eur": 1}})])
    client = CoinGeckoClient(cache=cache)
    assert client.get_btc_price("USD") == Decimal("100000")


def test_exchange_rate_cached_for_thirty_minutes(monkeypatch, cache, clock):
    calls = _install(monkeypatch, exchange_rate_client, [
        FakeResponse({"rates": {"BRL": 5.12}}),
        FakeResponse({"rates": {"BRL": 5.3}}),
    ])
    client = ExchangeRateClient(cache=cache)
    assert client.get_usd_brl() == Decimal("5.12")

    clock.now += 29 * 60
    assert client.get_usd_brl() == Decimal("5.12")

    clock.now += 2 * 60
    assert client.get_usd_brl() == Decimal("5.3")
    assert len(calls) == 2


def test_exchange_rate_fallbacks(monkeypatch, cache, clock):
    _install(monkeypatch, exchange_rate_client, [
        FakeResponse({"rates": {}}),
        FakeResponse({"rates": {"BRL": 5.2}}),
        requests.exceptions.Timeout("slow"),
    ])
    client = ExchangeRateClient(cache=cache)
    assert client.get_usd_brl() == Decimal("5.5")
    assert client.get_usd_brl(force=True) == Decimal("5.2")
    assert client.get_usd_brl(force=True) == Decimal("5.2")


def test_cache_persists_to_file(tmp_path, clock):
    path = str(tmp_path / "cache.json")
    TTLCache(path, clock=clock).set("k", {"a": "1"}, ttl=60)

    reloaded = TTLCache(path, clock=clock)
    assert reloaded.get("k") == {"a": "1"}

    clock.now += 60
    assert reloaded.get("k") is None
    assert reloaded.get_stale("k") == {"a": "1"}

    reloaded.invalidate("k")
    assert TTLCache(path, clock=clock).get_stale("k") is None


def test_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    assert TTLCache(str(path)).get("anything") is None
