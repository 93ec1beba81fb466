from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from btcfolio.core.exceptions import DataSourceError
from btcfolio.core.models import PriceQuote


class CoinGeckoMapper:
    """
    Turns the CoinGecko simple-price payload into PriceQuote objects.
    """

    @staticmethod
    def to_price_quote(raw: Dict[str, Any], currency: str) -> PriceQuote:
        """
        raw looks like {"bitcoin": {"usd": 67000.1, "usd_24h_change": -1.2, "brl": ...}}
        """
        key = currency.lower()
        bitcoin = raw.get("bitcoin") or {}
        if key not in bitcoin:
            raise DataSourceError(f"CoinGecko response has no {currency} price")
        try:
            price = Decimal(str(bitcoin[key]))
            change = Decimal(str(bitcoin.get(f"{key}_24h_change") or 0))
        except InvalidOperation:
            raise DataSourceError(f"CoinGecko returned a non numeric price: {bitcoin[key]!r}")
        return PriceQuote(
            price=price,
            change_24h=change,
            currency=currency.upper(),
            timestamp=datetime.now(timezone.utc),
        )

    @staticmethod
    def to_cache(quote: PriceQuote) -> Dict[str, str]:
        return {
            "price": str(quote.price),
            "change_24h": str(quote.change_24h),
            "currency": quote.currency,
            "timestamp": quote.timestamp.isoformat(),
        }

    @staticmethod
    def from_cache(entry: Dict[str, str]) -> PriceQuote:
        return PriceQuote(
            price=Decimal(entry["price"]),
            change_24h=Decimal(entry["change_24h"]),
            currency=entry["currency"],
            timestamp=datetime.fromisoformat(entry["timestamp"]),
        )
