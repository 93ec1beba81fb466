from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from btcfolio.core.models import Currency, InterlinkedValues, SATS_PER_BTC
from btcfolio.services.number_utils import parse_decimal, plain_decimal_string

FIELD_TOTAL_SPENT = "total_spent"
FIELD_QUANTITY = "quantity"
FIELD_PRICE_PER_COIN = "price_per_coin"

UNIT_BTC = "BTC"
UNIT_SATS = "SATS"

_ZERO = Decimal("0")


def _render(value: Decimal, currency: str) -> str:
    # derived values are written back in the same convention the user types
    text = plain_decimal_string(value)
    return text.replace(".", ",") if currency == Currency.BRL else text


def _positive_or_empty(value: Optional[Decimal], currency: str) -> str:
    if value is None or not value.is_finite() or value <= 0:
        return ""
    return _render(value, currency)


def calculate_interlinked_values(
    changed_field: str,
    total_spent: str,
    quantity: str,
    price_per_coin: str,
    quantity_unit: str = UNIT_BTC,
    currency: str = Currency.USD,
) -> InterlinkedValues:
    """
    Keep `total_spent = quantity * price_per_coin` across the three trade
    form fields, solving for at most one field per call.

    The field just edited and whichever other fields are filled decide what is
    derived:
      - total edited, quantity known         -> price
      - quantity edited, total known         -> price
      - quantity edited, only price known    -> total
      - price edited, quantity known         -> total
      - price edited, only total known       -> quantity

    Derived values that are not strictly positive come back as "".
    Quantity is given in BTC or satoshis according to `quantity_unit`.
    """
    if changed_field not in (FIELD_TOTAL_SPENT, FIELD_QUANTITY, FIELD_PRICE_PER_COIN):
        raise ValueError(f"Unknown field: {changed_field}")

    quantity_decimals = 0 if quantity_unit == UNIT_SATS else 8
    total_num = parse_decimal(total_spent, currency) or _ZERO
    quantity_num = parse_decimal(quantity, currency, quantity_decimals) or _ZERO
    price_num = parse_decimal(price_per_coin, currency) or _ZERO

    quantity_btc = quantity_num
    if quantity_unit == UNIT_SATS and quantity_num > 0:
        quantity_btc = quantity_num / SATS_PER_BTC

    result = {
        FIELD_TOTAL_SPENT: total_spent,
        FIELD_QUANTITY: quantity,
        FIELD_PRICE_PER_COIN: price_per_coin,
    }

    if changed_field == FIELD_TOTAL_SPENT:
        if quantity_btc > 0:
            result[FIELD_PRICE_PER_COIN] = _positive_or_empty(total_num / quantity_btc, currency)

    elif changed_field == FIELD_QUANTITY:
        if total_num > 0:
            price = total_num / quantity_btc if quantity_btc > 0 else None
            result[FIELD_PRICE_PER_COIN] = _positive_or_empty(price, currency)
        elif price_num > 0:
            result[FIELD_TOTAL_SPENT] = _positive_or_empty(quantity_btc * price_num, currency)

    else:
        if quantity_btc > 0:
            result[FIELD_TOTAL_SPENT] = _positive_or_empty(quantity_btc * price_num, currency)
        elif total_num > 0 and price_num > 0:
            derived = total_num / price_num
            if quantity_unit == UNIT_SATS:
                derived = (derived * SATS_PER_BTC).to_integral_value(rounding=ROUND_FLOOR)
            if derived > 0:
                result[FIELD_QUANTITY] = _render(derived, currency)

    return InterlinkedValues(
        total_spent=result[FIELD_TOTAL_SPENT],
        quantity=result[FIELD_QUANTITY],
        price_per_coin=result[FIELD_PRICE_PER_COIN],
    )
