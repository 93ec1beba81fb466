from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

import pandas as pd

from btcfolio.core.models import (
    Future,
    FutureMetrics,
    FuturesStats,
    GPStyle,
    PortfolioMetrics,
    Transaction,
    TransactionGP,
)
from btcfolio.services.number_utils import format_btc_value, format_currency_direct, locale_for
from btcfolio.services.timezone import format_date

_GP_MARKS = {
    GPStyle.GAIN: "▲",
    GPStyle.LOSS: "▼",
    GPStyle.NEUTRAL: "·",
}


def _signed(value: Decimal, currency: str) -> str:
    sign = '+' if value > 0 else ''
    return f"{sign}{format_currency_direct(value, currency)}"


def _percent(value: Decimal) -> str:
    rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = '+' if rounded > 0 else ''
    return f"{sign}{rounded}%"


def _sats(value: Decimal) -> str:
    whole = int(value.to_integral_value(rounding=ROUND_HALF_UP))
    sign = '+' if whole > 0 else ''
    return f"{sign}{whole:,} sats"


class ReportFormatter:
    @staticmethod
    def format_portfolio_report(metrics: PortfolioMetrics, currency: str, btc_price: Decimal) -> str:
        """
        Portfolio summary block for the terminal.
        """
        locale = locale_for(currency)
        lines = ["📊 Portfolio"]
        lines.append(f"BTC price: {format_currency_direct(btc_price, currency)}")
        lines.append(f"Holdings: {format_btc_value(metrics.total_btc, locale)} BTC")
        lines.append(f"Current value: {format_currency_direct(metrics.current_value, currency)}")
        lines.append("")
        lines.append(f"Total cost: {format_currency_direct(metrics.total_cost, currency)}")
        lines.append(f"Total revenue: {format_currency_direct(metrics.total_revenue, currency)}")
        lines.append(f"Net cost: {format_currency_direct(metrics.net_cost, currency)}")
        # a negative cost basis is meaningful (sells returned more than was spent)
        lines.append(f"Average cost basis: {format_currency_direct(metrics.avg_cost_basis, currency)}")
        lines.append(f"Gain/Loss: {_signed(metrics.gain_loss, currency)}")
        return "\n".join(lines)

    @staticmethod
    def format_transaction_rows(
        transactions: Sequence[Transaction],
        gps: Sequence[TransactionGP],
        currency: str,
    ) -> str:
        locale = locale_for(currency)
        lines: List[str] = ["🧾 Transactions"]
        for i, (t, gp) in enumerate(zip(transactions, gps), 1):
            label = t.type.value
            if t.transfer_type:
                label = f"{label} {t.transfer_type.value}"
            lines.append(
                f"{i}) {format_date(t.date)} {label} "
                f"{format_btc_value(t.quantity, locale)} BTC "
                f"{_GP_MARKS[gp.style]} {_signed(gp.value, currency)}"
            )
        return "\n".join(lines)

    @staticmethod
    def format_futures_report(
        stats: FuturesStats,
        futures: Sequence[Future] = (),
        metrics: Sequence[FutureMetrics] = (),
    ) -> str:
        lines = ["📈 Futures"]
        lines.append(f"Open: {stats.total_open_positions}  Closed: {stats.total_closed_positions}")
        lines.append(f"Unrealized P&L: {_signed(stats.total_unrealized_pl, 'USD')}")
        lines.append(f"Realized P&L: {_signed(stats.total_realized_pl, 'USD')}")
        lines.append(f"Fees (open): {format_currency_direct(stats.total_fees_usd, 'USD')}")
        lines.append(f"Total P&L: {_signed(stats.total_pl, 'USD')}")

        if futures:
            lines.append("")
            for i, (f, m) in enumerate(zip(futures, metrics), 1):
                parts = [f"{i}) {f.direction.value} {f.status.value} @ {f.entry_price}"]
                if m.net_gain_percent is not None:
                    parts.append(_percent(m.net_gain_percent))
                if m.net_pl_sats is not None:
                    parts.append(_sats(m.net_pl_sats))
                if m.days_open is not None:
                    parts.append(f"{m.days_open}d")
                lines.append(" ".join(parts))
        return "\n".join(lines)

    @staticmethod
    def format_monthly_pl(monthly: pd.Series) -> str:
        """Realized P&L per month, oldest first."""
        lines = ["🗓️ Monthly realized P&L"]
        if monthly.empty:
            lines.append("No closed orders yet")
        for month_end, pnl in monthly.items():
            lines.append(f"{month_end:%Y-%m}: {_signed(Decimal(str(round(float(pnl), 2))), 'USD')}")
        return "\n".join(lines)

    @staticmethod
    def format_no_records(kind: str) -> str:
        return f"No {kind} recorded yet 💤"

