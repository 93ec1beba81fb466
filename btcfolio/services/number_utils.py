"""
Currency-aware parsing and formatting of numbers typed into, or shown by,
the transaction and futures forms.

BRL uses a comma as decimal separator and dots for grouping (1.234,56);
everything else uses the en-US convention (1,234.56). Internally all values
are canonical dot-decimal strings or Decimals.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP
from typing import Optional, Union

from btcfolio.core.models import Currency

NumericInput = Union[str, int, float, Decimal, None]

_BRL_INPUT = re.compile(r"^\d*,?\d*$")
_DOT_INPUT = re.compile(r"^\d*\.?\d*$")

FIELD_FIAT = "fiat"
FIELD_BTC = "btc"
FIELD_SATS = "sats"


def locale_for(currency: str) -> str:
    return "pt-BR" if currency == Currency.BRL else "en-US"


def validate_decimal_input(value: str, currency: str) -> bool:
    """
    Keystroke gate for numeric fields.
    BRL accepts digits with at most one comma, other currencies at most one dot.
    Empty input is always valid so the field can be cleared.
    """
    if not value:
        return True
    pattern = _BRL_INPUT if currency == Currency.BRL else _DOT_INPUT
    return bool(pattern.match(value))


def _truncate_fraction(value: str, decimals: int) -> str:
    integer, sep, fraction = value.partition(".")
    if not sep:
        return integer
    if decimals <= 0:
        return integer or "0"
    return f"{integer}.{fraction[:decimals]}"


def normalize_decimal_input(value: str, currency: str, decimals: int = 2) -> str:
    """
    Convert user input into a canonical dot-decimal string.

    The fractional part is truncated, not rounded, to `decimals` digits so a
    half-typed "12.345" does not jump to "12.35". Output of this function is
    accepted unchanged when fed back in (normalization is idempotent).

    Returns "" for empty or non-numeric input.
    """
    if not value:
        return ""
    value = value.strip()

    if currency == Currency.BRL:
        if "," in value:
            cleaned = value.replace(".", "").replace(",", ".", 1)
        elif re.fullmatch(rf"\d*\.\d{{0,{max(decimals, 0)}}}", value):
            # already canonical (our own output)
            cleaned = value
        else:
            cleaned = value.replace(".", "")
    else:
        cleaned = value.replace(",", "")

    if not _DOT_INPUT.match(cleaned) or not any(ch.isdigit() for ch in cleaned):
        return ""
    return _truncate_fraction(cleaned, decimals)


def parse_decimal(value: str, currency: str = Currency.USD, decimals: int = 2) -> Optional[Decimal]:
    """Normalize and parse; None when the input carries no number."""
    normalized = normalize_decimal_input(value, currency, decimals)
    if not normalized:
        return None
    try:
        return Decimal(normalized)
    except InvalidOperation:
        return None


def to_decimal(value: NumericInput) -> Optional[Decimal]:
    """Loose conversion for display helpers: dot-decimal strings, ints, floats."""
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


def plain_decimal_string(value: Decimal) -> str:
    """Render without exponent or grouping, dropping trailing zeros."""
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


def _group(value: Decimal, places: int, locale: str) -> str:
    text = f"{value:,.{places}f}"
    if locale == "pt-BR":
        text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return text


def format_fiat_value(value: NumericInput, locale: str = "en-US") -> str:
    """Fiat amount floored to 2 decimals with locale grouping."""
    number = to_decimal(value)
    if number is None:
        return ""
    floored = number.quantize(Decimal("0.01"), rounding=ROUND_FLOOR)
    return _group(floored, 2, locale)


def format_btc_value(value: NumericInput, locale: str = "en-US") -> str:
    """BTC amount floored to 8 decimals with locale grouping."""
    number = to_decimal(value)
    if number is None:
        return ""
    floored = number.quantize(Decimal("0.00000001"), rounding=ROUND_FLOOR)
    return _group(floored, 8, locale)


def format_input_value(value: str, field_type: str, market: str = Currency.USD) -> str:
    if not value:
        return ""

    locale = locale_for(market)
    if field_type == FIELD_FIAT:
        return format_fiat_value(value, locale)
    if field_type == FIELD_BTC:
        return format_btc_value(value, locale)
    if field_type == FIELD_SATS:
        # whole satoshis only
        sats = to_decimal(value)
        if sats is None:
            return ""
        return str(int(sats.to_integral_value(rounding=ROUND_FLOOR)))
    return value


def get_input_placeholder(field_type: str, currency: str) -> str:
    is_brl = currency == Currency.BRL
    if field_type == FIELD_FIAT:
        return "0,00" if is_brl else "0.00"
    if field_type == FIELD_BTC:
        return "0,00000000" if is_brl else "0.00000000"
    if field_type == FIELD_SATS:
        return "0"
    return ""


def format_currency_direct(amount: NumericInput, currency: str) -> str:
    """
    Amount with currency prefix, e.g. "US$ 1,234.56" or "R$ 1.234,56".
    """
    number = to_decimal(amount)
    if number is None:
        number = Decimal("0")
    prefix = "R$" if currency == Currency.BRL else "US$"
    rounded = number.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{prefix} {_group(rounded, 2, locale_for(currency))}"
