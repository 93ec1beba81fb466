from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

SATS_PER_BTC = Decimal("100000000")

# One satoshi; balances below this are treated as zero
DUST_THRESHOLD = Decimal("0.00000001")


class Currency(str, Enum):
    USD = "USD"
    BRL = "BRL"


class TransactionType(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    TRANSFER = "Transfer"


class TransferType(str, Enum):
    IN = "in"
    OUT = "out"


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class FutureStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    STOP = "STOP"
    CANCELLED = "CANCELLED"


class GPStyle(str, Enum):
    """How a gain/loss figure is rendered."""
    GAIN = "gain"
    LOSS = "loss"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Transaction:
    """
    One movement of BTC (buy, sell or transfer).
    Quantity is always non-negative; direction comes from `type`
    (and `transfer_type` for transfers).
    """
    id: str
    type: TransactionType
    quantity: Decimal          # BTC
    total_spent: Decimal       # fiat cost (Buy) or proceeds (Sell), in `market`
    price_per_coin: Decimal    # fiat unit price at trade time, in `market`
    market: str                # fiat currency the trade was denominated in
    date: datetime             # UTC

    fees: Optional[Decimal] = None
    notes: Optional[str] = None
    transfer_type: Optional[TransferType] = None

    @property
    def fees_or_zero(self) -> Decimal:
        return self.fees if self.fees is not None else Decimal("0")


@dataclass(frozen=True)
class Future:
    """
    One leveraged futures order.
    `percent_gain`, `percent_fee`, `fees_paid` and `net_pl_sats` are only
    stored once the order is CLOSED.
    """
    id: str
    direction: Direction
    entry_price: Decimal
    quantity_usd: Decimal      # notional
    status: FutureStatus
    buy_date: datetime         # UTC

    leverage: Decimal = Decimal("1")
    exit_price: Optional[Decimal] = None
    target_price: Optional[Decimal] = None
    close_date: Optional[datetime] = None
    percent_gain: Optional[Decimal] = None
    percent_fee: Optional[Decimal] = None
    fees_paid: Optional[Decimal] = None      # USD
    net_pl_sats: Optional[Decimal] = None

    def is_open(self) -> bool:
        return self.status == FutureStatus.OPEN


@dataclass(frozen=True)
class TransactionGP:
    value: Decimal
    style: GPStyle


@dataclass(frozen=True)
class PortfolioMetrics:
    """
    Aggregate view of a transaction list at a given price and exchange rate.
    Recomputed on demand, never stored.
    """
    total_btc: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    net_cost: Decimal
    current_value: Decimal
    gain_loss: Decimal
    avg_cost_basis: Decimal


@dataclass(frozen=True)
class FutureMetrics:
    percent_gain: Optional[Decimal]
    percent_fee: Optional[Decimal]
    net_gain_percent: Optional[Decimal]
    net_pl_sats: Optional[Decimal]
    fees_paid: Optional[Decimal]
    days_open: Optional[int] = None


@dataclass(frozen=True)
class FuturesStats:
    total_open_positions: int
    total_closed_positions: int
    total_unrealized_pl: Decimal
    total_realized_pl: Decimal
    total_fees_usd: Decimal
    total_pl: Decimal


@dataclass(frozen=True)
class InterlinkedValues:
    """String values of the three linked trade form fields."""
    total_spent: str
    quantity: str
    price_per_coin: str


@dataclass(frozen=True)
class PriceQuote:
    price: Decimal
    change_24h: Decimal
    currency: str
    timestamp: datetime
