from decimal import Decimal, InvalidOperation
from typing import Optional

import requests

from btcfolio.config.settings import settings
from btcfolio.config.logging import get_logger
from btcfolio.core.exceptions import DataSourceError
from btcfolio.infrastructure.cache import TTLCache

logger = get_logger(__name__)

CACHE_KEY = "usd_brl_rate"


class ExchangeRateClient:
    """
    USD -> BRL rate (BRL per USD) from exchangerate-api.
    Cached for EXCHANGE_RATE_CACHE_TTL_SECONDS, falls back to the last known
    rate and finally to FALLBACK_USD_BRL_RATE.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        self.url = settings.EXCHANGE_RATE_URL
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.ttl = settings.EXCHANGE_RATE_CACHE_TTL_SECONDS
        self.cache = cache if cache is not None else TTLCache(settings.CACHE_FILE)

    def fetch_usd_brl(self) -> Decimal:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Exchange rate Connection Error: {e}")
            raise DataSourceError(f"Failed to fetch exchange rate: {e}")
        except ValueError as e:
            raise DataSourceError(f"Exchange rate API returned invalid JSON: {e}")

        raw_rate = (data.get("rates") or {}).get("BRL")
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation:
            raise DataSourceError(f"Exchange rate API returned no BRL rate: {raw_rate!r}")
        if not rate.is_finite() or rate <= 0:
            raise DataSourceError(f"Exchange rate API returned an invalid BRL rate: {raw_rate!r}")

        self.cache.set(CACHE_KEY, str(rate), self.ttl)
        return rate

    def get_usd_brl(self, force: bool = False) -> Decimal:
        if not force:
            cached = self.cache.get(CACHE_KEY)
            if cached:
                return Decimal(cached)

        try:
            return self.fetch_usd_brl()
        except DataSourceError as e:
            stale = self.cache.get_stale(CACHE_KEY)
            if stale:
                logger.warning(f"Using last known USD/BRL rate, feed unavailable: {e}")
                return Decimal(stale)
            logger.warning(f"No cached USD/BRL rate, using default {settings.FALLBACK_USD_BRL_RATE}: {e}")
            return settings.FALLBACK_USD_BRL_RATE
