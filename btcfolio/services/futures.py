import dataclasses
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from btcfolio.config.settings import settings
from btcfolio.core.exceptions import BusinessLogicError
from btcfolio.core.models import (
    Direction,
    Future,
    FutureMetrics,
    FuturesStats,
    FutureStatus,
    SATS_PER_BTC,
)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_SECONDS_PER_DAY = 86400

MAX_LEVERAGE = Decimal("125")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_open(buy_date: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since `buy_date`; never negative."""
    now = now or _utcnow()
    elapsed = (now - buy_date).total_seconds()
    return max(int(elapsed // _SECONDS_PER_DAY), 0)


def fee_percent(
    days: int,
    fixed_fee: Optional[Decimal] = None,
    daily_fee: Optional[Decimal] = None,
) -> Decimal:
    """Opening fee plus funding accrued per day held, as a percent of notional."""
    fixed_fee = settings.FUTURES_FIXED_FEE_PERCENT if fixed_fee is None else fixed_fee
    daily_fee = settings.FUTURES_DAILY_FEE_PERCENT if daily_fee is None else daily_fee
    return fixed_fee + daily_fee * days


def unrealized_gain_percent(
    direction: Direction,
    entry_price: Decimal,
    current_price: Decimal,
    leverage: Decimal = Decimal("1"),
) -> Decimal:
    """LONG gains when price rises, SHORT when it falls."""
    if direction == Direction.LONG:
        delta = current_price - entry_price
    else:
        delta = entry_price - current_price
    return delta / entry_price * _HUNDRED * leverage


def reference_exit_price(future: Future) -> Optional[Decimal]:
    return future.exit_price if future.exit_price is not None else future.target_price


class FuturesService:
    @staticmethod
    def calculate_future_metrics(
        future: Future,
        current_price: Decimal,
        now: Optional[datetime] = None,
    ) -> FutureMetrics:
        """
        Live metrics for an OPEN order, stored metrics for everything else.

        Closed orders keep the figures fixed by the closing workflow; they are
        never recomputed from the current price.
        """
        if not future.is_open():
            net_gain = None
            if future.percent_gain is not None and future.percent_fee is not None:
                net_gain = future.percent_gain - future.percent_fee
            return FutureMetrics(
                percent_gain=future.percent_gain,
                percent_fee=future.percent_fee,
                net_gain_percent=net_gain,
                net_pl_sats=future.net_pl_sats,
                fees_paid=future.fees_paid,
            )

        days = days_open(future.buy_date, now)
        if future.entry_price <= 0 or current_price <= 0:
            # no valid price to measure against
            return FutureMetrics(
                percent_gain=None,
                percent_fee=None,
                net_gain_percent=None,
                net_pl_sats=None,
                fees_paid=None,
                days_open=days,
            )

        total_fee_percent = fee_percent(days)
        gain_percent = unrealized_gain_percent(
            future.direction, future.entry_price, current_price, future.leverage
        )
        net_gain_percent = gain_percent - total_fee_percent
        net_pl_usd = future.quantity_usd * net_gain_percent / _HUNDRED
        net_pl_sats = net_pl_usd / current_price * SATS_PER_BTC

        return FutureMetrics(
            percent_gain=gain_percent,
            percent_fee=total_fee_percent,
            net_gain_percent=net_gain_percent,
            net_pl_sats=net_pl_sats,
            fees_paid=future.quantity_usd * total_fee_percent / _HUNDRED,
            days_open=days,
        )

    @staticmethod
    def calculate_futures_stats(
        futures: Iterable[Future],
        current_price: Decimal,
        now: Optional[datetime] = None,
    ) -> FuturesStats:
        """
        Totals across OPEN (live) and CLOSED (stored) orders, valued in USD
        at the current price. STOP and CANCELLED orders are ignored.
        """
        open_count = 0
        closed_count = 0
        unrealized = _ZERO
        realized = _ZERO
        fees = _ZERO

        for future in futures:
            if future.status == FutureStatus.OPEN:
                open_count += 1
                metrics = FuturesService.calculate_future_metrics(future, current_price, now)
                unrealized += (metrics.net_pl_sats or _ZERO) / SATS_PER_BTC * current_price
                fees += metrics.fees_paid or _ZERO
            elif future.status == FutureStatus.CLOSED:
                closed_count += 1
                realized += (future.net_pl_sats or _ZERO) / SATS_PER_BTC * current_price

        return FuturesStats(
            total_open_positions=open_count,
            total_closed_positions=closed_count,
            total_unrealized_pl=unrealized,
            total_realized_pl=realized,
            total_fees_usd=fees,
            total_pl=unrealized + realized,
        )

    @staticmethod
    def estimate_exit_price(future: Future, net_pl_sats: Decimal, current_price: Decimal) -> Decimal:
        """Back out the exit price implied by a realized net P&L."""
        net_pl_usd = net_pl_sats / SATS_PER_BTC * current_price
        percent_change = net_pl_usd / future.quantity_usd * _HUNDRED / future.leverage
        if future.direction == Direction.LONG:
            return future.entry_price * (1 + percent_change / _HUNDRED)
        return future.entry_price * (1 - percent_change / _HUNDRED)

    @staticmethod
    def close_future(
        future: Future,
        net_pl_sats: Decimal,
        fees_paid_sats: Decimal,
        current_price: Decimal,
        close_date: Optional[datetime] = None,
    ) -> Future:
        """
        Freeze an OPEN order into a CLOSED one.
        The realized figures come from the exchange (in satoshis); fees are
        stored in USD at the closing price.
        """
        if not future.is_open():
            raise BusinessLogicError(f"Future {future.id} is {future.status.value}, only OPEN orders can be closed")
        if current_price <= 0:
            raise BusinessLogicError("Closing price must be greater than zero")

        close_date = close_date or _utcnow()
        exit_price = FuturesService.estimate_exit_price(future, net_pl_sats, current_price)
        fees_paid = fees_paid_sats / SATS_PER_BTC * current_price

        # snapshot percentages so that percent_gain - percent_fee is the realized net
        percent_fee = fee_percent(days_open(future.buy_date, close_date))
        net_pl_usd = net_pl_sats / SATS_PER_BTC * current_price
        percent_gain = net_pl_usd / future.quantity_usd * _HUNDRED + percent_fee

        return dataclasses.replace(
            future,
            status=FutureStatus.CLOSED,
            exit_price=exit_price,
            target_price=exit_price,
            close_date=close_date,
            fees_paid=fees_paid,
            net_pl_sats=net_pl_sats,
            percent_gain=percent_gain,
            percent_fee=percent_fee,
        )


def _positive(value: Any) -> bool:
    try:
        return Decimal(str(value)) > 0
    except InvalidOperation:
        return False


def validate_future_data(data: Dict[str, Any]) -> List[str]:
    """
    Check a raw order (form or backend row) before it is saved.
    Returns a list of human readable problems, empty when valid.
    """
    errors: List[str] = []

    if not data.get("direction"):
        errors.append("Direction is required (LONG or SHORT)")

    if not _positive(data.get("entry_price")):
        errors.append("Entry price must be greater than zero")

    if not _positive(data.get("quantity_usd")):
        errors.append("Quantity in USD must be greater than zero")

    leverage = data.get("leverage")
    try:
        leverage_ok = leverage is not None and 1 <= Decimal(str(leverage)) <= MAX_LEVERAGE
    except InvalidOperation:
        leverage_ok = False
    if not leverage_ok:
        errors.append("Leverage must be between 1x and 125x")

    if not data.get("buy_date"):
        errors.append("Buy date is required")

    if not data.get("status"):
        errors.append("Status is required")

    if data.get("target_price") not in (None, "") and not _positive(data.get("target_price")):
        errors.append("Target price must be greater than zero")

    if data.get("exit_price") not in (None, "") and not _positive(data.get("exit_price")):
        errors.append("Exit price must be greater than zero")

    return errors
