from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from btcfolio.config.settings import settings
from btcfolio.config.logging import get_logger
from btcfolio.core.exceptions import DataSourceError
from btcfolio.core.models import PriceQuote
from btcfolio.infrastructure.cache import TTLCache
from .mapper import CoinGeckoMapper

logger = get_logger(__name__)


class CoinGeckoClient:
    """
    BTC spot price feed.
    Quotes are cached for PRICE_CACHE_TTL_SECONDS. When the API fails the last
    cached quote is served, and without one a configured default price.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        self.base_url = settings.COINGECKO_URL
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.ttl = settings.PRICE_CACHE_TTL_SECONDS
        self.cache = cache if cache is not None else TTLCache(settings.CACHE_FILE)

    def _request(self) -> Dict[str, Any]:
        params = {
            "ids": "bitcoin",
            "vs_currencies": "usd,brl",
            "include_24hr_change": "true",
        }
        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"CoinGecko Connection Error: {e}")
            raise DataSourceError(f"Failed to connect to CoinGecko: {e}")
        except ValueError as e:
            raise DataSourceError(f"CoinGecko returned invalid JSON: {e}")

    def fetch_quote(self, currency: str = "USD") -> PriceQuote:
        """Always hits the API. Raises DataSourceError on failure."""
        quote = CoinGeckoMapper.to_price_quote(self._request(), currency)
        self.cache.set(self._cache_key(currency), CoinGeckoMapper.to_cache(quote), self.ttl)
        return quote

    def get_quote(self, currency: str = "USD", force: bool = False) -> PriceQuote:
        key = self._cache_key(currency)
        if not force:
            cached = self.cache.get(key)
            if cached:
                return CoinGeckoMapper.from_cache(cached)

        try:
            return self.fetch_quote(currency)
        except DataSourceError as e:
            stale = self.cache.get_stale(key)
            if stale:
                logger.warning(f"Using last known BTC price, feed unavailable: {e}")
                return CoinGeckoMapper.from_cache(stale)
            logger.warning(f"No cached BTC price, using default {settings.FALLBACK_BTC_PRICE}: {e}")
            return PriceQuote(
                price=settings.FALLBACK_BTC_PRICE,
                change_24h=Decimal("0"),
                currency=currency.upper(),
                timestamp=datetime.fromtimestamp(0, timezone.utc),
            )

    def get_btc_price(self, currency: str = "USD") -> Decimal:
        return self.get_quote(currency).price

    @staticmethod
    def _cache_key(currency: str) -> str:
        return f"btc_price_{currency.lower()}"
