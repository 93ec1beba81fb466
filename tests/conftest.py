from datetime import datetime, timezone
from decimal import Decimal

import pytest

from btcfolio.core.models import (
    Direction,
    Future,
    FutureStatus,
    Transaction,
    TransactionType,
    TransferType,
)


@pytest.fixture
def make_transaction():
    def _make(type_, quantity, total_spent="0", price_per_coin="0", market="USD",
              fees=None, transfer_type=None, date=None, id_="t1"):
        return Transaction(
            id=id_,
            type=TransactionType(type_),
            quantity=Decimal(quantity),
            total_spent=Decimal(total_spent),
            price_per_coin=Decimal(price_per_coin),
            market=market,
            date=date or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            fees=Decimal(fees) if fees is not None else None,
            transfer_type=TransferType(transfer_type) if transfer_type else None,
        )
    return _make


@pytest.fixture
def make_future():
    def _make(direction="LONG", entry_price="50000", quantity_usd="1000", status="OPEN",
              buy_date=None, leverage="1", id_="f1", **stored):
        return Future(
            id=id_,
            direction=Direction(direction),
            entry_price=Decimal(entry_price),
            quantity_usd=Decimal(quantity_usd),
            status=FutureStatus(status),
            buy_date=buy_date or datetime(2024, 3, 1, tzinfo=timezone.utc),
            leverage=Decimal(leverage),
            **{k: Decimal(v) for k, v in stored.items()},
        )
    return _make
