from decimal import Decimal

import pytest

from btcfolio.services.converter import convert_amount

BTC_USD = Decimal("60000")
USD_BRL = Decimal("5")


def test_from_btc():
    values = convert_amount("btc", "0.5", BTC_USD, USD_BRL)
    assert values == {"btc": "0.5", "sats": "50000000", "usd": "30000.00", "brl": "150000.00"}


def test_from_sats():
    values = convert_amount("sats", "1000", BTC_USD, USD_BRL)
    assert values["btc"] == "0.00001000"
    assert values["usd"] == "0.60"
    assert values["brl"] == "3.00"


def test_from_brl():
    values = convert_amount("brl", "300", BTC_USD, USD_BRL)
    assert values["usd"] == "60.00"
    assert values["btc"] == "0.00100000"
    assert values["sats"] == "100000"


def test_invalid_input_clears_everything():
    assert convert_amount("usd", "abc", BTC_USD, USD_BRL) == {"btc": "", "sats": "", "usd": "", "brl": ""}
    assert convert_amount("usd", "10", Decimal("0"), USD_BRL)["btc"] == ""


def test_unknown_field():
    with pytest.raises(ValueError):
        convert_amount("eur", "1", BTC_USD, USD_BRL)


def test_single_sat_is_not_scientific():
    assert convert_amount("sats", "1", BTC_USD, USD_BRL)["btc"] == "0.00000001"
