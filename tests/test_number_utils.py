from decimal import Decimal

import pytest

from btcfolio.services.number_utils import (
    format_btc_value,
    format_currency_direct,
    format_fiat_value,
    format_input_value,
    get_input_placeholder,
    normalize_decimal_input,
    parse_decimal,
    validate_decimal_input,
)


@pytest.mark.parametrize("value,currency,expected", [
    ("", "BRL", True),
    ("1234,56", "BRL", True),
    (",5", "BRL", True),
    ("1234.56", "BRL", False),
    ("12,3,4", "BRL", False),
    ("1234.56", "USD", True),
    ("1,234", "USD", False),
    ("12a", "USD", False),
])
def test_validate_decimal_input(value, currency, expected):
    assert validate_decimal_input(value, currency) is expected


def test_normalize_brl_grouped_input():
    assert normalize_decimal_input("1.234,56", "BRL") == "1234.56"


def test_normalize_usd_strips_grouping():
    assert normalize_decimal_input("1,234.56", "USD") == "1234.56"


def test_normalize_truncates_instead_of_rounding():
    assert normalize_decimal_input("12.345", "USD") == "12.34"
    assert normalize_decimal_input("0,999", "BRL") == "0.99"


def test_normalize_empty_and_garbage():
    assert normalize_decimal_input("", "USD") == ""
    assert normalize_decimal_input("abc", "USD") == ""
    assert normalize_decimal_input(",", "BRL") == ""


def test_normalize_keeps_partial_input():
    assert normalize_decimal_input("12,", "BRL") == "12."
    assert normalize_decimal_input("12.", "USD") == "12."


def test_normalize_brl_dots_without_comma_are_grouping():
    assert normalize_decimal_input("1.234", "BRL") == "1234"
    assert normalize_decimal_input("1.234.567", "BRL") == "1234567"


def test_normalize_btc_precision():
    assert normalize_decimal_input("0,12345678", "BRL", decimals=8) == "0.12345678"
    assert normalize_decimal_input("0.123456789", "USD", decimals=8) == "0.12345678"
    assert normalize_decimal_input("1500.9", "USD", decimals=0) == "1500"


@pytest.mark.parametrize("currency", ["USD", "BRL"])
@pytest.mark.parametrize("value", [
    "0", "12", "12,", "1234,56", "1.234,567", "0,5", "1,234.5", "98765.4321", ".5", "1.234.567,891",
])
def test_normalize_is_idempotent(value, currency):
    once = normalize_decimal_input(value, currency)
    assert normalize_decimal_input(once, currency) == once


def test_parse_decimal():
    assert parse_decimal("1.234,56", "BRL") == Decimal("1234.56")
    assert parse_decimal("", "USD") is None
    assert parse_decimal("n/a", "USD") is None


def test_format_fiat_value_floors():
    assert format_fiat_value(1234.567) == "1,234.56"
    assert format_fiat_value("1234.567", "pt-BR") == "1.234,56"
    assert format_fiat_value("") == ""
    assert format_fiat_value("abc") == ""


def test_format_btc_value_floors():
    assert format_btc_value("0.123456789") == "0.12345678"
    assert format_btc_value(Decimal("1234.5"), "pt-BR") == "1.234,50000000"


def test_format_input_value():
    assert format_input_value("1500.9", "sats") == "1500"
    assert format_input_value("1234.5", "fiat", "BRL") == "1.234,50"
    assert format_input_value("0.5", "btc") == "0.50000000"
    assert format_input_value("", "fiat") == ""


def test_placeholders():
    assert get_input_placeholder("fiat", "BRL") == "0,00"
    assert get_input_placeholder("btc", "USD") == "0.00000000"
    assert get_input_placeholder("sats", "BRL") == "0"


def test_format_currency_direct():
    assert format_currency_direct(Decimal("1234.5"), "BRL") == "R$ 1.234,50"
    assert format_currency_direct(Decimal("1234.5"), "USD") == "US$ 1,234.50"
    assert format_currency_direct(Decimal("-10"), "USD") == "US$ -10.00"
