import sys
from decimal import Decimal
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Global application settings.
    Read from environment variables (.env) and validated by type.
    """
    # Display preferences
    DEFAULT_CURRENCY: str = "USD"
    TZ: str = "America/Sao_Paulo"

    # Futures fee schedule (percent of notional)
    FUTURES_FIXED_FEE_PERCENT: Decimal = Decimal("0.055")
    FUTURES_DAILY_FEE_PERCENT: Decimal = Decimal("0.0026")

    # Price feed (CoinGecko)
    COINGECKO_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    PRICE_CACHE_TTL_SECONDS: int = 60
    FALLBACK_BTC_PRICE: Decimal = Decimal("100000")

    # Exchange rate feed
    EXCHANGE_RATE_URL: str = "https://api.exchangerate-api.com/v4/latest/USD"
    EXCHANGE_RATE_CACHE_TTL_SECONDS: int = 1800
    FALLBACK_USD_BRL_RATE: Decimal = Decimal("5.5")

    HTTP_TIMEOUT_SECONDS: int = 10

    # Local files
    CACHE_FILE: str = ".btcfolio_cache.json"
    DATA_FILE: str = "btcfolio_data.json"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

# Singleton Instance
try:
    settings = Settings()
except Exception as e:
    # logging depends on settings, so report straight to stderr
    print(f"CRITICAL: Failed to load configuration. Invalid env vars? {e}", file=sys.stderr)
    raise
