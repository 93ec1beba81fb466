from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Dict

from btcfolio.core.models import SATS_PER_BTC
from btcfolio.services.number_utils import to_decimal

FIELDS = ("btc", "sats", "usd", "brl")

_EIGHT_PLACES = Decimal("0.00000001")
_TWO_PLACES = Decimal("0.01")


def _empty() -> Dict[str, str]:
    return {field: "" for field in FIELDS}


def _btc(value: Decimal) -> str:
    return format(value.quantize(_EIGHT_PLACES, rounding=ROUND_HALF_UP), "f")


def _sats(value_btc: Decimal) -> str:
    return str(int((value_btc * SATS_PER_BTC).to_integral_value(rounding=ROUND_FLOOR)))


def _fiat(value: Decimal) -> str:
    return format(value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), "f")


def convert_amount(field: str, value: str, btc_usd: Decimal, usd_brl: Decimal) -> Dict[str, str]:
    """
    Converter between BTC, satoshis, USD and BRL.
    Given one edited field, fill in the other three. The edited field keeps
    the text the user typed.
    """
    if field not in FIELDS:
        raise ValueError(f"Unknown converter field: {field}")

    amount = to_decimal(value)
    if amount is None or btc_usd <= 0 or usd_brl <= 0:
        return _empty()

    if field == "btc":
        amount_btc = amount
    elif field == "sats":
        amount_btc = amount / SATS_PER_BTC
    elif field == "usd":
        amount_btc = amount / btc_usd
    else:
        amount_btc = amount / (btc_usd * usd_brl)

    amount_usd = amount_btc * btc_usd
    result = {
        "btc": _btc(amount_btc),
        "sats": _sats(amount_btc),
        "usd": _fiat(amount_usd),
        "brl": _fiat(amount_usd * usd_brl),
    }
    result[field] = value
    return result
